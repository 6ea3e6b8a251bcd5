"""Sensor platform for Medication Schedule."""
from __future__ import annotations

import logging
from typing import Any, Optional

from homeassistant.components.sensor import SensorDeviceClass, SensorEntity
from homeassistant.config_entries import ConfigEntry
from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers import entity_registry as er
from homeassistant.helpers.dispatcher import async_dispatcher_connect
from homeassistant.helpers.entity_platform import AddEntitiesCallback
from homeassistant.util import dt as dt_util

from .clock import current_time
from .const import (
    ATTR_AVATAR,
    ATTR_CURRENT_TIME,
    ATTR_DOSAGE,
    ATTR_DOSES,
    ATTR_MEDICATION_ID,
    ATTR_NAME,
    ATTR_NEXT_DOSE,
    ATTR_ORDER,
    ATTR_RANK,
    DOMAIN,
    SIGNAL_CLOCK_TICK,
    SIGNAL_MEDICATIONS_UPDATED,
)
from .manager import ScheduleManager
from .models import Medication
from .schedule import DoseStatus, next_dose_key, next_pending_time, order_medications, summarize

_LOGGER = logging.getLogger(__name__)


def _device_info(entry: ConfigEntry) -> dict[str, Any]:
    return {
        "identifiers": {(DOMAIN, entry.entry_id)},
        "name": "Medication Schedule",
    }


async def async_setup_entry(
    hass: HomeAssistant, entry: ConfigEntry, async_add_entities: AddEntitiesCallback
) -> None:
    manager: ScheduleManager = hass.data[DOMAIN]["manager"]
    tracked: dict[str, MedicationSensor] = {}

    @callback
    def _sync_entities() -> None:
        current_ids = {med.id for med in manager.medications}
        new = [MedicationSensor(manager, entry, med.id) for med in manager.medications if med.id not in tracked]
        for entity in new:
            tracked[entity.medication_id] = entity
        if new:
            async_add_entities(new)

        registry = er.async_get(hass)
        for med_id in [m for m in tracked if m not in current_ids]:
            entity = tracked.pop(med_id)
            _LOGGER.debug("Removing sensor for deleted medication %s", med_id)
            if entity.entity_id and registry.async_get(entity.entity_id):
                registry.async_remove(entity.entity_id)
            else:
                hass.async_create_task(entity.async_remove(force_remove=True))

    async_add_entities([ScheduleSensor(manager, entry)])
    _sync_entities()
    entry.async_on_unload(async_dispatcher_connect(hass, SIGNAL_MEDICATIONS_UPDATED, _sync_entities))


class _ScheduleEntity(SensorEntity):
    """Base: re-renders on every clock tick and every collection change."""

    _attr_has_entity_name = True
    _attr_should_poll = False

    def __init__(self, manager: ScheduleManager, entry: ConfigEntry) -> None:
        self._manager = manager
        self._attr_device_info = _device_info(entry)

    @property
    def current_time(self) -> str:
        return current_time(dt_util.now())

    async def async_added_to_hass(self) -> None:
        @callback
        def _refresh(*_: Any) -> None:
            self.async_write_ha_state()

        self.async_on_remove(async_dispatcher_connect(self.hass, SIGNAL_CLOCK_TICK, _refresh))
        self.async_on_remove(async_dispatcher_connect(self.hass, SIGNAL_MEDICATIONS_UPDATED, _refresh))


class MedicationSensor(_ScheduleEntity):
    """One medication; state is its most urgent dose status."""

    _attr_device_class = SensorDeviceClass.ENUM
    _attr_options = [s.value for s in DoseStatus]
    _attr_translation_key = "medication"

    def __init__(self, manager: ScheduleManager, entry: ConfigEntry, medication_id: str) -> None:
        super().__init__(manager, entry)
        self.medication_id = medication_id
        self._attr_unique_id = f"{entry.entry_id}_{medication_id}"
        med = manager.get(medication_id)
        self._attr_name = med.name if med else None

    @property
    def _medication(self) -> Optional[Medication]:
        return self._manager.get(self.medication_id)

    @property
    def available(self) -> bool:
        return self._medication is not None

    @property
    def name(self):
        med = self._medication
        return med.name if med else self._attr_name

    @property
    def icon(self):
        status = self.native_value
        if status == DoseStatus.TAKEN:
            return "mdi:check-circle"
        if status == DoseStatus.OVERDUE:
            return "mdi:alert-circle"
        if status == DoseStatus.DUE:
            return "mdi:alarm"
        return "mdi:pill"

    @property
    def native_value(self):
        med = self._medication
        if med is None:
            return None
        now = self.current_time
        status = summarize(dose.status(now) for dose in med.doses)
        return status.value if status else None

    @property
    def extra_state_attributes(self):
        med = self._medication
        if med is None:
            return {}
        now = self.current_time
        ordered = order_medications(self._manager.medications, now)
        rank = next(i for i, m in enumerate(ordered, start=1) if m.id == med.id)
        return {
            ATTR_MEDICATION_ID: med.id,
            ATTR_DOSAGE: med.dosage,
            ATTR_DOSES: [
                {**dose.as_dict(), "status": dose.status(now).value} for dose in med.sorted_doses()
            ],
            ATTR_NEXT_DOSE: next_dose_key(med, now),
            ATTR_RANK: rank,
        }


class ScheduleSensor(_ScheduleEntity):
    """Overview: next actionable dose time and the display order."""

    _attr_icon = "mdi:clock-outline"
    _attr_translation_key = "schedule"

    def __init__(self, manager: ScheduleManager, entry: ConfigEntry) -> None:
        super().__init__(manager, entry)
        self._attr_unique_id = f"{entry.entry_id}_schedule"

    @property
    def native_value(self):
        now = self.current_time
        pending = [t for t in (next_pending_time(m, now) for m in self._manager.medications) if t]
        return min(pending) if pending else None

    @property
    def extra_state_attributes(self):
        now = self.current_time
        profile = self._manager.profile
        return {
            ATTR_CURRENT_TIME: now,
            ATTR_NAME: profile.name if profile else None,
            ATTR_AVATAR: profile.avatar if profile else None,
            ATTR_ORDER: [
                {ATTR_MEDICATION_ID: med.id, ATTR_NAME: med.name, ATTR_NEXT_DOSE: next_dose_key(med, now)}
                for med in order_medications(self._manager.medications, now)
            ],
        }
