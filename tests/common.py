from datetime import datetime

from pytest_homeassistant_custom_component.common import MockConfigEntry

from homeassistant.helpers import entity_registry as er
from homeassistant.util import dt as dt_util

from custom_components.medication_schedule.const import (
    CONF_API_KEY,
    CONF_AVATAR,
    CONF_LANGUAGE,
    CONF_PROFILE_NAME,
    DOMAIN,
)


def local_time(hour: int, minute: int, day: int = 18) -> datetime:
    return datetime(2026, 10, day, hour, minute, tzinfo=dt_util.get_default_time_zone())


async def setup_entry(hass, api_key: str = "", language: str = "pt-BR"):
    entry = MockConfigEntry(
        domain=DOMAIN,
        data={CONF_PROFILE_NAME: "Maria", CONF_AVATAR: "👵"},
        options={CONF_API_KEY: api_key, CONF_LANGUAGE: language},
        title="Maria",
        unique_id=DOMAIN,
    )
    entry.add_to_hass(hass)
    await hass.config_entries.async_setup(entry.entry_id)
    await hass.async_block_till_done()
    return entry


def entity_id_for(hass, entry, suffix: str) -> str | None:
    return er.async_get(hass).async_get_entity_id("sensor", DOMAIN, f"{entry.entry_id}_{suffix}")
