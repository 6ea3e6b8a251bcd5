"""Recurring wall-clock source driving status refresh and the daily reset."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Optional

from homeassistant.core import HomeAssistant, callback
from homeassistant.helpers.event import async_track_time_interval
from homeassistant.util import dt as dt_util

from .const import CLOCK_INTERVAL, DOMAIN

_LOGGER = logging.getLogger(__name__)

TickListener = Callable[[datetime], Optional[Awaitable[None]]]


def current_time(now: datetime) -> str:
    return now.strftime("%H:%M")


class DoseClock:
    """Owns one cancellable repeating timer and the listeners it wakes."""

    def __init__(self, hass: HomeAssistant, interval: timedelta = CLOCK_INTERVAL) -> None:
        if interval > timedelta(minutes=1):
            raise ValueError("Clock interval must not exceed one minute")
        self.hass = hass
        self._interval = interval
        self._listeners: list[TickListener] = []
        self._unsub: Optional[Callable[[], None]] = None

    @property
    def running(self) -> bool:
        return self._unsub is not None

    @callback
    def async_add_listener(self, listener: TickListener) -> Callable[[], None]:
        self._listeners.append(listener)

        @callback
        def _remove() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _remove

    async def async_start(self) -> None:
        if self._unsub is not None:
            return
        await self._async_tick()
        self._unsub = async_track_time_interval(
            self.hass, self._async_tick, self._interval, name=f"{DOMAIN} clock", cancel_on_shutdown=True
        )
        _LOGGER.debug("Clock started, interval %s", self._interval)

    @callback
    def async_stop(self) -> None:
        if self._unsub is None:
            return
        self._unsub()
        self._unsub = None
        _LOGGER.debug("Clock stopped")

    async def _async_tick(self, _: datetime | None = None) -> None:
        # Listeners work in local wall-clock time
        local = dt_util.now()
        for listener in list(self._listeners):
            result = listener(local)
            if result is not None:
                await result
