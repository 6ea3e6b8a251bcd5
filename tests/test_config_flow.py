import pytest

from homeassistant import data_entry_flow

from custom_components.medication_schedule.const import (
    CONF_API_KEY,
    CONF_AVATAR,
    CONF_LANGUAGE,
    CONF_PROFILE_NAME,
    DOMAIN,
)

from .common import setup_entry


@pytest.mark.asyncio
async def test_config_flow_creates_profile(hass):
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": "user"}
    )
    assert result["type"] == data_entry_flow.FlowResultType.FORM

    user_input = {CONF_PROFILE_NAME: "  Maria ", CONF_AVATAR: "💖", CONF_API_KEY: ""}
    result2 = await hass.config_entries.flow.async_configure(
        result["flow_id"], user_input=user_input
    )
    assert result2["type"] == data_entry_flow.FlowResultType.CREATE_ENTRY
    assert result2["title"] == "Maria"
    assert result2["data"] == {CONF_PROFILE_NAME: "Maria", CONF_AVATAR: "💖"}
    assert result2["options"] == {CONF_API_KEY: "", CONF_LANGUAGE: "pt-BR"}
    await hass.async_block_till_done()

    manager = hass.data[DOMAIN]["manager"]
    assert manager.profile.name == "Maria"
    assert manager.profile.avatar == "💖"


@pytest.mark.asyncio
async def test_config_flow_requires_name(hass):
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": "user"}
    )
    result2 = await hass.config_entries.flow.async_configure(
        result["flow_id"], user_input={CONF_PROFILE_NAME: "   ", CONF_AVATAR: "👵"}
    )
    assert result2["type"] == data_entry_flow.FlowResultType.FORM
    assert result2["errors"][CONF_PROFILE_NAME] == "required"


@pytest.mark.asyncio
async def test_single_profile(hass):
    await setup_entry(hass)
    result = await hass.config_entries.flow.async_init(
        DOMAIN, context={"source": "user"}
    )
    assert result["type"] == data_entry_flow.FlowResultType.ABORT
    assert result["reason"] == "already_configured"
