"""Owner of the profile and medication collection, backed by HA storage."""
from __future__ import annotations

import logging
from dataclasses import replace
from datetime import datetime
from typing import Any

import voluptuous as vol

from homeassistant.core import HomeAssistant
from homeassistant.exceptions import HomeAssistantError
from homeassistant.helpers.dispatcher import async_dispatcher_send
from homeassistant.helpers.storage import Store
from homeassistant.util import dt as dt_util

from .const import MEDICATIONS_STORE_KEY, PROFILE_STORE_KEY, SIGNAL_MEDICATIONS_UPDATED, STORE_VERSION
from .exceptions import MedicationNotFound, StoreUnavailable
from .models import Medication, Profile
from .schedule import ToggleResult, reset_all_taken, toggle_dose, trigger_daily_reset_if_needed

_LOGGER = logging.getLogger(__name__)


class ScheduleManager:
    """Holds the single active profile and its medications.

    Every mutation replaces ``medications`` with a new tuple, persists it and
    notifies listeners through ``SIGNAL_MEDICATIONS_UPDATED``.
    """

    def __init__(self, hass: HomeAssistant) -> None:
        self.hass = hass
        self._profile_store: Store = Store(hass, STORE_VERSION, PROFILE_STORE_KEY)
        self._medications_store: Store = Store(hass, STORE_VERSION, MEDICATIONS_STORE_KEY)
        self.profile: Profile | None = None
        self.medications: tuple[Medication, ...] = ()
        self.last_reset_day: str | None = None

    async def async_load(self) -> None:
        profile_data = await self._async_read(self._profile_store)
        if profile_data:
            try:
                self.profile = Profile.from_dict(profile_data)
            except vol.Invalid as err:
                _LOGGER.warning("Ignoring stored profile: %s", err)
                self.profile = None

        data = await self._async_read(self._medications_store) or {}
        if not isinstance(data, dict):
            _LOGGER.warning("Ignoring stored medications: unexpected %s", type(data).__name__)
            data = {}
        raw = data.get("medications", [])
        medications: list[Medication] = []
        seen: set[str] = set()
        if isinstance(raw, list):
            for item in raw:
                try:
                    med = Medication.from_dict(item)
                except vol.Invalid as err:
                    _LOGGER.warning("Skipping stored medication: %s", err)
                    continue
                if med.id in seen:
                    continue
                seen.add(med.id)
                medications.append(med)
        else:
            _LOGGER.warning("Ignoring stored medications: not a list")
        self.medications = tuple(medications)
        last = data.get("last_reset_day")
        self.last_reset_day = last if isinstance(last, str) else None
        _LOGGER.debug("Loaded %d medications, last reset %s", len(self.medications), self.last_reset_day)

    async def _async_read(self, store: Store) -> Any:
        try:
            return await self._async_read_raw(store)
        except StoreUnavailable as err:
            _LOGGER.warning("%s; using defaults", err)
            return None

    @staticmethod
    async def _async_read_raw(store: Store) -> Any:
        try:
            return await store.async_load()
        except (HomeAssistantError, OSError, ValueError, NotImplementedError) as err:
            # NotImplementedError: stored version this release cannot migrate
            raise StoreUnavailable(f"Cannot read {store.key}: {err}") from err

    async def _async_write(self, store: Store, data: dict[str, Any]) -> None:
        try:
            await store.async_save(data)
        except (HomeAssistantError, OSError) as err:
            _LOGGER.warning("Cannot write %s: %s", store.key, err)

    async def _async_save_medications(self) -> None:
        await self._async_write(
            self._medications_store,
            {
                "medications": [m.as_dict() for m in self.medications],
                "last_reset_day": self.last_reset_day,
            },
        )

    def _notify(self) -> None:
        async_dispatcher_send(self.hass, SIGNAL_MEDICATIONS_UPDATED)

    async def _async_commit(self, medications: tuple[Medication, ...]) -> None:
        self.medications = medications
        await self._async_save_medications()
        self._notify()

    def get(self, medication_id: str) -> Medication | None:
        for med in self.medications:
            if med.id == medication_id:
                return med
        return None

    async def async_set_profile(self, profile: Profile) -> None:
        self.profile = profile
        await self._async_write(self._profile_store, profile.as_dict())
        self._notify()

    async def async_replace_profile(self, profile: Profile) -> None:
        """Swap in a new profile; its predecessor's medications go with it."""
        _LOGGER.debug("Replacing profile, clearing %d medications", len(self.medications))
        self.profile = profile
        await self._async_write(self._profile_store, profile.as_dict())
        await self._async_commit(())

    async def async_reconcile(self, now: datetime) -> bool:
        """Run the daily reset for the calendar day of ``now``."""
        result = trigger_daily_reset_if_needed(self.medications, now.date().isoformat(), self.last_reset_day)
        if result.last_reset_day == self.last_reset_day and not result.fired:
            return False
        self.last_reset_day = result.last_reset_day
        if result.fired:
            _LOGGER.debug("Daily reset for %s", result.last_reset_day)
            await self._async_commit(result.medications)
        else:
            await self._async_save_medications()
        return result.fired

    async def async_reset_now(self) -> None:
        self.last_reset_day = dt_util.now().date().isoformat()
        await self._async_commit(reset_all_taken(self.medications))

    async def async_toggle(self, medication_id: str, dose_id: str) -> ToggleResult:
        result = toggle_dose(self.medications, medication_id, dose_id)
        if result.found:
            await self._async_commit(result.medications)
        return result

    async def async_add_medication(self, name: str, dosage: str, times: list[str]) -> Medication:
        med = Medication.create(name, dosage, times)
        await self._async_commit((*self.medications, med))
        return med

    async def async_update_medication(
        self,
        medication_id: str,
        *,
        name: str | None = None,
        dosage: str | None = None,
        times: list[str] | None = None,
    ) -> Medication:
        current = self.get(medication_id)
        if current is None:
            raise MedicationNotFound(f"Medication not found: {medication_id}")
        updated = current
        if times is not None:
            updated = updated.with_times(times)
        if name is not None:
            updated = replace(updated, name=name)
        if dosage is not None:
            updated = replace(updated, dosage=dosage)
        await self._async_commit(tuple(updated if m.id == medication_id else m for m in self.medications))
        return updated

    async def async_delete_medication(self, medication_id: str) -> None:
        if self.get(medication_id) is None:
            raise MedicationNotFound(f"Medication not found: {medication_id}")
        await self._async_commit(tuple(m for m in self.medications if m.id != medication_id))

    async def async_remove(self) -> None:
        """Drop all persisted state."""
        self.profile = None
        self.medications = ()
        self.last_reset_day = None
        await self._profile_store.async_remove()
        await self._medications_store.async_remove()
