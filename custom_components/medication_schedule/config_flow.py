"""Config flow for Medication Schedule: creates the single active profile."""
from __future__ import annotations

import voluptuous as vol
from homeassistant import config_entries
from homeassistant.core import callback

from .const import (
    AVATARS,
    CONF_API_KEY,
    CONF_AVATAR,
    CONF_LANGUAGE,
    CONF_PROFILE_NAME,
    DEFAULT_AVATAR,
    DEFAULT_LANGUAGE,
    DOMAIN,
    LANGUAGES,
)


class MedicationScheduleConfigFlow(config_entries.ConfigFlow, domain=DOMAIN):
    VERSION = 1

    async def async_step_user(self, user_input=None):
        errors = {}
        await self.async_set_unique_id(DOMAIN)
        self._abort_if_unique_id_configured()

        if user_input is not None:
            name = (user_input.get(CONF_PROFILE_NAME) or "").strip()
            avatar = user_input.get(CONF_AVATAR, DEFAULT_AVATAR)
            api_key = (user_input.get(CONF_API_KEY) or "").strip()
            if not name:
                errors[CONF_PROFILE_NAME] = "required"
            else:
                return self.async_create_entry(
                    title=name,
                    data={CONF_PROFILE_NAME: name, CONF_AVATAR: avatar},
                    options={CONF_API_KEY: api_key, CONF_LANGUAGE: DEFAULT_LANGUAGE},
                )

        schema = vol.Schema(
            {
                vol.Required(CONF_PROFILE_NAME): str,
                vol.Required(CONF_AVATAR, default=DEFAULT_AVATAR): vol.In(AVATARS),
                vol.Optional(CONF_API_KEY, default=""): str,
            }
        )
        return self.async_show_form(step_id="user", data_schema=schema, errors=errors)

    @staticmethod
    @callback
    def async_get_options_flow(config_entry: config_entries.ConfigEntry) -> config_entries.OptionsFlow:
        return MedicationScheduleOptionsFlow()


class MedicationScheduleOptionsFlow(config_entries.OptionsFlow):
    """Lookup settings; the profile itself is replaced through a service."""

    async def async_step_init(self, user_input=None):
        if user_input is not None:
            return self.async_create_entry(
                title="",
                data={
                    CONF_API_KEY: (user_input.get(CONF_API_KEY) or "").strip(),
                    CONF_LANGUAGE: user_input.get(CONF_LANGUAGE, DEFAULT_LANGUAGE),
                },
            )

        options = self.config_entry.options
        schema = vol.Schema(
            {
                vol.Optional(CONF_API_KEY, default=options.get(CONF_API_KEY, "")): str,
                vol.Optional(CONF_LANGUAGE, default=options.get(CONF_LANGUAGE, DEFAULT_LANGUAGE)): vol.In(LANGUAGES),
            }
        )
        return self.async_show_form(step_id="init", data_schema=schema)
