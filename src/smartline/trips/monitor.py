"""Live trip status feed wired into the state machine."""

import logging

from smartline.pubsub import TRIP_STATUS, EventBus, Subscription, TripStatusMessage
from smartline.trip import TripStatus

from .state_machine import TripStateMachine

logger = logging.getLogger(__name__)


class TripStatusMonitor:
    """Follows one trip's status channel for as long as the trip is active."""

    def __init__(self, bus: EventBus, machine: TripStateMachine):
        self._bus = bus
        self._machine = machine
        self._subscription: Subscription | None = None

    @property
    def is_running(self) -> bool:
        return self._subscription is not None and self._subscription.active

    def start(self, trip_id: str, status: TripStatus | None = None) -> None:
        if self.is_running and self._machine.monitored_trip_id == trip_id:
            return
        self.stop()
        self._machine.start_monitoring(trip_id, status)
        self._subscription = self._bus.subscribe(TRIP_STATUS, self._on_message)

    def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None

    def _on_message(self, message: TripStatusMessage) -> None:
        if message.trip_id != self._machine.monitored_trip_id:
            return
        self._machine.on_status_event(message.trip_id, message.status)
        if self._machine.monitored_trip_id is None:
            # Terminal status reached.
            self.stop()
