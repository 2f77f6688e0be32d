"""Screens, navigation events and the navigation sequencing gate."""

import logging
from enum import Enum
from typing import Protocol

from pydantic import BaseModel, ConfigDict

logger = logging.getLogger(__name__)


class Screen(str, Enum):
    HOME = "home"
    SIGN_IN = "sign_in"
    SEARCHING_DRIVER = "searching_driver"
    DRIVER_FOUND = "driver_found"
    ON_TRIP = "on_trip"
    TRIP_COMPLETE = "trip_complete"
    DRIVER_ACTIVE_TRIP = "driver_active_trip"


class NavigationEvent(BaseModel):
    """A request to show a screen, optionally bound to a trip."""

    model_config = ConfigDict(frozen=True)

    screen: Screen
    trip_id: str | None = None
    reset: bool = False


class Navigator(Protocol):
    def navigate(self, event: NavigationEvent) -> None: ...


class RecordingNavigator:
    """Navigator that keeps every event it receives, in order."""

    def __init__(self) -> None:
        self.events: list[NavigationEvent] = []

    def navigate(self, event: NavigationEvent) -> None:
        self.events.append(event)

    @property
    def last(self) -> NavigationEvent | None:
        return self.events[-1] if self.events else None


class NavigationGate:
    """Sequences navigation behind blocking UI transitions.

    While a transition (for example a side menu closing) is in progress,
    navigation requests are held; the most recent one is released when the
    transition-complete event arrives.
    """

    def __init__(self, navigator: Navigator):
        self._navigator = navigator
        self._transitions = 0
        self._pending: NavigationEvent | None = None

    @property
    def is_blocked(self) -> bool:
        return self._transitions > 0

    def begin_transition(self) -> None:
        self._transitions += 1

    def complete_transition(self) -> None:
        if self._transitions == 0:
            return
        self._transitions -= 1
        if self._transitions == 0 and self._pending is not None:
            event, self._pending = self._pending, None
            self._navigator.navigate(event)

    def navigate(self, event: NavigationEvent) -> None:
        if self.is_blocked:
            if self._pending is not None:
                logger.debug(f"Replacing held navigation to {self._pending.screen.value}")
            self._pending = event
            return
        self._navigator.navigate(event)
