"""Medication Schedule integration for Home Assistant."""
from __future__ import annotations

import logging
from datetime import datetime

import voluptuous as vol

from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, ServiceCall, ServiceResponse, SupportsResponse
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers import config_validation as cv
from homeassistant.helpers.dispatcher import async_dispatcher_send

from .clock import DoseClock, current_time
from .const import (
    ATTR_DOSAGE,
    ATTR_DOSE_ID,
    ATTR_INFO,
    ATTR_MEDICATION_ID,
    ATTR_NAME,
    ATTR_TIMES,
    AVATARS,
    CONF_API_KEY,
    CONF_AVATAR,
    CONF_LANGUAGE,
    CONF_PROFILE_NAME,
    DEFAULT_AVATAR,
    DEFAULT_LANGUAGE,
    DOMAIN,
    SERVICE_ADD_MEDICATION,
    SERVICE_DELETE_MEDICATION,
    SERVICE_GET_MEDICATION_INFO,
    SERVICE_REPLACE_PROFILE,
    SERVICE_RESET_DOSES,
    SERVICE_TOGGLE_DOSE,
    SERVICE_UPDATE_MEDICATION,
    SERVICES,
    SIGNAL_CLOCK_TICK,
)
from .exceptions import DoseNotFound, MedicationNotFound
from .info import async_fetch_medication_info
from .manager import ScheduleManager
from .models import Profile
from .schedule import parse_times

_LOGGER = logging.getLogger(__name__)

PLATFORMS = ["sensor"]

_TIMES = vol.All(vol.Any(cv.string, [cv.string]), parse_times, vol.Length(min=1, msg="At least one time is required"))
_NAME = vol.All(cv.string, vol.Strip, vol.Length(min=1))

ADD_MEDICATION_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_NAME): _NAME,
        vol.Optional(ATTR_DOSAGE, default=""): vol.All(cv.string, vol.Strip),
        vol.Required(ATTR_TIMES): _TIMES,
    }
)
UPDATE_MEDICATION_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_MEDICATION_ID): cv.string,
        vol.Optional(ATTR_NAME): _NAME,
        vol.Optional(ATTR_DOSAGE): vol.All(cv.string, vol.Strip),
        vol.Optional(ATTR_TIMES): _TIMES,
    }
)
DELETE_MEDICATION_SCHEMA = vol.Schema({vol.Required(ATTR_MEDICATION_ID): cv.string})
TOGGLE_DOSE_SCHEMA = vol.Schema(
    {
        vol.Required(ATTR_MEDICATION_ID): cv.string,
        vol.Required(ATTR_DOSE_ID): cv.string,
    }
)
REPLACE_PROFILE_SCHEMA = vol.Schema(
    {
        vol.Required(CONF_PROFILE_NAME): _NAME,
        vol.Optional(CONF_AVATAR, default=DEFAULT_AVATAR): vol.In(AVATARS),
    }
)
GET_INFO_SCHEMA = vol.Schema(
    vol.All(
        {
            vol.Exclusive(ATTR_MEDICATION_ID, "medication"): cv.string,
            vol.Exclusive(ATTR_NAME, "medication"): _NAME,
        },
        cv.has_at_least_one_key(ATTR_MEDICATION_ID, ATTR_NAME),
    )
)


async def async_setup_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Set up Medication Schedule from a config entry."""
    manager = ScheduleManager(hass)
    await manager.async_load()
    if manager.profile is None:
        await manager.async_set_profile(
            Profile(
                name=entry.data.get(CONF_PROFILE_NAME) or entry.title,
                avatar=entry.data.get(CONF_AVATAR, DEFAULT_AVATAR),
            )
        )

    clock = DoseClock(hass)
    hass.data[DOMAIN] = {"manager": manager, "clock": clock, "entry": entry}

    async def _on_tick(now: datetime) -> None:
        await manager.async_reconcile(now)
        async_dispatcher_send(hass, SIGNAL_CLOCK_TICK, current_time(now))

    entry.async_on_unload(clock.async_add_listener(_on_tick))
    entry.async_on_unload(clock.async_stop)

    await hass.config_entries.async_forward_entry_setups(entry, PLATFORMS)
    _LOGGER.debug("%s: sensor platform forwarded for entry %s", DOMAIN, entry.entry_id)

    await clock.async_start()
    _async_register_services(hass)
    return True


def _manager(hass: HomeAssistant) -> ScheduleManager:
    data = hass.data.get(DOMAIN)
    if not data:
        raise HomeAssistantError("Medication Schedule is not loaded")
    return data["manager"]


def _async_register_services(hass: HomeAssistant) -> None:
    if hass.services.has_service(DOMAIN, SERVICE_TOGGLE_DOSE):
        return

    async def add_medication(call: ServiceCall) -> ServiceResponse:
        med = await _manager(hass).async_add_medication(
            call.data[ATTR_NAME], call.data[ATTR_DOSAGE], call.data[ATTR_TIMES]
        )
        return med.as_dict()

    async def update_medication(call: ServiceCall) -> None:
        await _manager(hass).async_update_medication(
            call.data[ATTR_MEDICATION_ID],
            name=call.data.get(ATTR_NAME),
            dosage=call.data.get(ATTR_DOSAGE),
            times=call.data.get(ATTR_TIMES),
        )

    async def delete_medication(call: ServiceCall) -> None:
        await _manager(hass).async_delete_medication(call.data[ATTR_MEDICATION_ID])

    async def toggle_dose(call: ServiceCall) -> None:
        med_id = call.data[ATTR_MEDICATION_ID]
        dose_id = call.data[ATTR_DOSE_ID]
        result = await _manager(hass).async_toggle(med_id, dose_id)
        if not result.found:
            raise DoseNotFound(f"Dose not found: {med_id}/{dose_id}")

    async def reset_doses(call: ServiceCall) -> None:
        await _manager(hass).async_reset_now()

    async def replace_profile(call: ServiceCall) -> None:
        profile = Profile(name=call.data[CONF_PROFILE_NAME], avatar=call.data[CONF_AVATAR])
        await _manager(hass).async_replace_profile(profile)
        entry: ConfigEntry = hass.data[DOMAIN]["entry"]
        hass.config_entries.async_update_entry(
            entry,
            title=profile.name,
            data={CONF_PROFILE_NAME: profile.name, CONF_AVATAR: profile.avatar},
        )

    async def get_medication_info(call: ServiceCall) -> ServiceResponse:
        manager = _manager(hass)
        name = call.data.get(ATTR_NAME)
        if name is None:
            med = manager.get(call.data[ATTR_MEDICATION_ID])
            if med is None:
                raise MedicationNotFound(f"Medication not found: {call.data[ATTR_MEDICATION_ID]}")
            name = med.name
        entry: ConfigEntry = hass.data[DOMAIN]["entry"]
        text = await async_fetch_medication_info(
            hass,
            name,
            entry.options.get(CONF_API_KEY),
            entry.options.get(CONF_LANGUAGE, DEFAULT_LANGUAGE),
        )
        return {ATTR_NAME: name, ATTR_INFO: text}

    hass.services.async_register(
        DOMAIN, SERVICE_ADD_MEDICATION, add_medication, ADD_MEDICATION_SCHEMA, SupportsResponse.OPTIONAL
    )
    hass.services.async_register(DOMAIN, SERVICE_UPDATE_MEDICATION, update_medication, UPDATE_MEDICATION_SCHEMA)
    hass.services.async_register(DOMAIN, SERVICE_DELETE_MEDICATION, delete_medication, DELETE_MEDICATION_SCHEMA)
    hass.services.async_register(DOMAIN, SERVICE_TOGGLE_DOSE, toggle_dose, TOGGLE_DOSE_SCHEMA)
    hass.services.async_register(DOMAIN, SERVICE_RESET_DOSES, reset_doses)
    hass.services.async_register(DOMAIN, SERVICE_REPLACE_PROFILE, replace_profile, REPLACE_PROFILE_SCHEMA)
    hass.services.async_register(
        DOMAIN, SERVICE_GET_MEDICATION_INFO, get_medication_info, GET_INFO_SCHEMA, SupportsResponse.ONLY
    )
    _LOGGER.debug("%s: services registered", DOMAIN)


async def async_unload_entry(hass: HomeAssistant, entry: ConfigEntry) -> bool:
    """Unload a config entry."""
    ok = await hass.config_entries.async_unload_platforms(entry, PLATFORMS)
    if not ok:
        return False
    for svc in SERVICES:
        if hass.services.has_service(DOMAIN, svc):
            hass.services.async_remove(DOMAIN, svc)
    hass.data.pop(DOMAIN, None)
    return True


async def async_remove_entry(hass: HomeAssistant, entry: ConfigEntry) -> None:
    """Removing the profile removes its medications too."""
    await ScheduleManager(hass).async_remove()
