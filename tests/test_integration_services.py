import pytest
import voluptuous as vol

from pytest_homeassistant_custom_component.common import async_fire_time_changed

from homeassistant.exceptions import HomeAssistantError

from custom_components.medication_schedule.const import DOMAIN

from .common import entity_id_for, local_time, setup_entry


async def _add(hass, name, times, dosage=""):
    return await hass.services.async_call(
        DOMAIN,
        "add_medication",
        {"name": name, "dosage": dosage, "times": times},
        blocking=True,
        return_response=True,
    )


@pytest.mark.asyncio
async def test_medication_sensor_follows_clock_and_toggle(hass, freezer):
    freezer.move_to(local_time(8, 58))
    entry = await setup_entry(hass)

    med = await _add(hass, "Aspirina", "9:00, 20:00", dosage="100mg")
    await hass.async_block_till_done()
    assert [d["time"] for d in med["doses"]] == ["09:00", "20:00"]

    eid = entity_id_for(hass, entry, med["id"])
    assert eid is not None
    state = hass.states.get(eid)
    assert state.state == "due"
    assert state.attributes["dosage"] == "100mg"
    assert [d["status"] for d in state.attributes["doses"]] == ["due", "upcoming"]
    assert state.attributes["next_dose"] == "09:00"
    assert state.attributes["rank"] == 1

    # Window closes at 09:15
    freezer.move_to(local_time(9, 15))
    async_fire_time_changed(hass)
    await hass.async_block_till_done()
    assert hass.states.get(eid).state == "overdue"

    await hass.services.async_call(
        DOMAIN,
        "toggle_dose",
        {"medication_id": med["id"], "dose_id": med["doses"][0]["id"]},
        blocking=True,
    )
    await hass.async_block_till_done()
    state = hass.states.get(eid)
    assert state.state == "upcoming"
    assert [d["status"] for d in state.attributes["doses"]] == ["taken", "upcoming"]


@pytest.mark.asyncio
async def test_toggle_unknown_dose_raises(hass, freezer):
    freezer.move_to(local_time(8, 0))
    await setup_entry(hass)
    med = await _add(hass, "Aspirina", "9:00")

    with pytest.raises(HomeAssistantError):
        await hass.services.async_call(
            DOMAIN,
            "toggle_dose",
            {"medication_id": med["id"], "dose_id": "missing"},
            blocking=True,
        )
    with pytest.raises(HomeAssistantError):
        await hass.services.async_call(
            DOMAIN,
            "delete_medication",
            {"medication_id": "missing"},
            blocking=True,
        )


@pytest.mark.asyncio
async def test_malformed_time_rejected(hass, freezer):
    freezer.move_to(local_time(8, 0))
    entry = await setup_entry(hass)
    with pytest.raises((vol.Invalid, HomeAssistantError)):
        await _add(hass, "Aspirina", "25:00")
    with pytest.raises((vol.Invalid, HomeAssistantError)):
        await _add(hass, "Aspirina", "")
    assert hass.data[DOMAIN]["manager"].medications == ()
    assert entity_id_for(hass, entry, "schedule") is not None


@pytest.mark.asyncio
async def test_schedule_sensor_orders_medications(hass, freezer):
    freezer.move_to(local_time(9, 0))
    entry = await setup_entry(hass)
    a = await _add(hass, "A", "10:00")
    b = await _add(hass, "B", "9:30")
    await hass.async_block_till_done()

    schedule = hass.states.get(entity_id_for(hass, entry, "schedule"))
    assert schedule.state == "09:30"
    assert schedule.attributes["name"] == "Maria"
    assert schedule.attributes["current_time"] == "09:00"
    assert [m["name"] for m in schedule.attributes["order"]] == ["B", "A"]
    assert hass.states.get(entity_id_for(hass, entry, a["id"])).attributes["rank"] == 2

    await hass.services.async_call(
        DOMAIN,
        "toggle_dose",
        {"medication_id": b["id"], "dose_id": b["doses"][0]["id"]},
        blocking=True,
    )
    await hass.async_block_till_done()
    schedule = hass.states.get(entity_id_for(hass, entry, "schedule"))
    assert schedule.state == "10:00"
    assert [m["name"] for m in schedule.attributes["order"]] == ["A", "B"]


@pytest.mark.asyncio
async def test_edit_and_delete_medication(hass, freezer):
    freezer.move_to(local_time(7, 0))
    entry = await setup_entry(hass)
    med = await _add(hass, "Aspirina", "9:00")
    await hass.async_block_till_done()
    eid = entity_id_for(hass, entry, med["id"])

    await hass.services.async_call(
        DOMAIN,
        "update_medication",
        {"medication_id": med["id"], "dosage": "200mg", "times": ["9:00", "21:00"]},
        blocking=True,
    )
    await hass.async_block_till_done()
    state = hass.states.get(eid)
    assert state.attributes["dosage"] == "200mg"
    assert [d["time"] for d in state.attributes["doses"]] == ["09:00", "21:00"]
    assert state.attributes["doses"][0]["id"] == med["doses"][0]["id"]

    await hass.services.async_call(DOMAIN, "delete_medication", {"medication_id": med["id"]}, blocking=True)
    await hass.async_block_till_done()
    assert hass.states.get(eid) is None
    assert entity_id_for(hass, entry, med["id"]) is None


@pytest.mark.asyncio
async def test_daily_reset_on_day_change(hass, freezer):
    freezer.move_to(local_time(21, 0))
    entry = await setup_entry(hass)
    med = await _add(hass, "Aspirina", "20:00")
    await hass.services.async_call(
        DOMAIN,
        "toggle_dose",
        {"medication_id": med["id"], "dose_id": med["doses"][0]["id"]},
        blocking=True,
    )
    await hass.async_block_till_done()
    eid = entity_id_for(hass, entry, med["id"])
    assert hass.states.get(eid).state == "taken"

    freezer.move_to(local_time(0, 0, day=19))
    async_fire_time_changed(hass)
    await hass.async_block_till_done()
    assert hass.states.get(eid).state == "upcoming"
    manager = hass.data[DOMAIN]["manager"]
    assert manager.last_reset_day == "2026-10-19"
    assert not manager.medications[0].doses[0].taken


@pytest.mark.asyncio
async def test_reset_doses_service(hass, freezer):
    freezer.move_to(local_time(21, 0))
    await setup_entry(hass)
    med = await _add(hass, "Aspirina", "20:00")
    await hass.services.async_call(
        DOMAIN,
        "toggle_dose",
        {"medication_id": med["id"], "dose_id": med["doses"][0]["id"]},
        blocking=True,
    )
    await hass.services.async_call(DOMAIN, "reset_doses", {}, blocking=True)
    manager = hass.data[DOMAIN]["manager"]
    assert not manager.medications[0].doses[0].taken


@pytest.mark.asyncio
async def test_replace_profile_clears_medications(hass, freezer):
    freezer.move_to(local_time(8, 0))
    entry = await setup_entry(hass)
    med = await _add(hass, "Aspirina", "9:00")
    await hass.async_block_till_done()

    await hass.services.async_call(
        DOMAIN, "replace_profile", {"name": "João", "avatar": "👴"}, blocking=True
    )
    await hass.async_block_till_done()
    assert hass.data[DOMAIN]["manager"].medications == ()
    assert entry.title == "João"
    assert entity_id_for(hass, entry, med["id"]) is None
    schedule = hass.states.get(entity_id_for(hass, entry, "schedule"))
    assert schedule.attributes["avatar"] == "👴"
    assert schedule.attributes["order"] == []


@pytest.mark.asyncio
async def test_info_disabled_without_key(hass, freezer):
    freezer.move_to(local_time(8, 0))
    await setup_entry(hass)
    med = await _add(hass, "Aspirina", "9:00")

    response = await hass.services.async_call(
        DOMAIN,
        "get_medication_info",
        {"medication_id": med["id"]},
        blocking=True,
        return_response=True,
    )
    assert response["name"] == "Aspirina"
    assert "desativado" in response["info"]

    with pytest.raises(HomeAssistantError):
        await hass.services.async_call(
            DOMAIN,
            "get_medication_info",
            {"medication_id": "missing"},
            blocking=True,
            return_response=True,
        )


@pytest.mark.asyncio
async def test_unload_stops_clock(hass, freezer):
    freezer.move_to(local_time(8, 0))
    entry = await setup_entry(hass)
    clock = hass.data[DOMAIN]["clock"]
    assert clock.running

    assert await hass.config_entries.async_unload(entry.entry_id)
    await hass.async_block_till_done()
    assert not clock.running
    assert DOMAIN not in hass.data
    assert not hass.services.has_service(DOMAIN, "toggle_dose")
