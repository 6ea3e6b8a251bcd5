"""Errors raised at the edges of Medication Schedule."""
from __future__ import annotations

import voluptuous as vol

from homeassistant.exceptions import HomeAssistantError


class MalformedTime(vol.Invalid):
    """A scheduled time is not a valid 24-hour HH:MM value."""


class MedicationNotFound(HomeAssistantError):
    """No medication with the given id."""


class DoseNotFound(HomeAssistantError):
    """No dose slot for the given medication/dose id pair."""


class StoreUnavailable(HomeAssistantError):
    """Persisted state could not be read or written."""
