"""Routes trip lifecycle statuses to the screen flow that owns them."""

import logging
from collections.abc import Iterable

from smartline.providers.dispatch import UserRole
from smartline.ride_logging import log_trip_context
from smartline.trip import NON_TERMINAL_STATUSES, Trip, TripStatus

from .navigation import NavigationEvent, Navigator, Screen

logger = logging.getLogger(__name__)

CUSTOMER_SCREENS: dict[TripStatus, Screen] = {
    TripStatus.REQUESTED: Screen.SEARCHING_DRIVER,
    TripStatus.ACCEPTED: Screen.DRIVER_FOUND,
    TripStatus.ARRIVED: Screen.ON_TRIP,
    TripStatus.STARTED: Screen.ON_TRIP,
}

# A driver only owns a trip once it has been accepted.
DRIVER_SCREENS: dict[TripStatus, Screen] = {
    TripStatus.ACCEPTED: Screen.DRIVER_ACTIVE_TRIP,
    TripStatus.ARRIVED: Screen.DRIVER_ACTIVE_TRIP,
    TripStatus.STARTED: Screen.DRIVER_ACTIVE_TRIP,
}

HOME_EVENT = NavigationEvent(screen=Screen.HOME, reset=True)


def select_active_trip(trips: Iterable[Trip]) -> Trip | None:
    """Pick the single trip to resume.

    Trips are scanned in the order given (the dispatch backend returns
    history newest first) and the first non-terminal one wins. Any further
    non-terminal trips are a data inconsistency and are only logged.
    """
    selected: Trip | None = None
    for trip in trips:
        if trip.status not in NON_TERMINAL_STATUSES:
            continue
        if selected is None:
            selected = trip
        else:
            logger.warning(
                f"Ignoring extra non-terminal trip {trip.id} ({trip.status.value}); "
                f"resuming {selected.id}"
            )
    return selected


class TripStateMachine:
    """Interprets trip statuses and emits at most one navigation per stage.

    Emission is idempotent: routing the same trip to the same screen twice
    produces a single navigation event. It also tracks the trip being
    monitored live so dispatch status changes move the UI forward.
    """

    def __init__(self, navigator: Navigator, role: UserRole = UserRole.CUSTOMER):
        self._navigator = navigator
        self.role = role
        self._screens = CUSTOMER_SCREENS if role == UserRole.CUSTOMER else DRIVER_SCREENS
        self._last_event: NavigationEvent | None = None
        self.monitored_trip_id: str | None = None
        self._last_status: TripStatus | None = None

    @property
    def current(self) -> NavigationEvent | None:
        return self._last_event

    def screen_for(self, status: TripStatus) -> Screen | None:
        """Screen for a resumable status, or None when there is nothing to resume."""
        return self._screens.get(status)

    def _emit(self, event: NavigationEvent) -> NavigationEvent | None:
        if event == self._last_event:
            logger.debug(f"Navigation to {event.screen.value} for {event.trip_id} already emitted")
            return None
        self._last_event = event
        self._navigator.navigate(event)
        return event

    def route(self, trip: Trip) -> NavigationEvent | None:
        """Navigate to the screen for the trip's status.

        Returns the emitted event, or None when the trip is not resumable or
        the same navigation has already been emitted.
        """
        screen = self.screen_for(trip.status)
        if screen is None:
            return None
        with log_trip_context(trip.id, status=trip.status.value):
            logger.info(f"Routing trip {trip.id} ({trip.status.value}) to {screen.value}")
            return self._emit(NavigationEvent(screen=screen, trip_id=trip.id))

    def resume(self, trips: Iterable[Trip]) -> NavigationEvent | None:
        trip = select_active_trip(trips)
        if trip is None or self.screen_for(trip.status) is None:
            return None
        self.start_monitoring(trip.id, trip.status)
        return self.route(trip)

    def go_home(self) -> NavigationEvent | None:
        return self._emit(HOME_EVENT)

    def sign_in(self) -> NavigationEvent | None:
        return self._emit(NavigationEvent(screen=Screen.SIGN_IN, reset=True))

    def start_monitoring(self, trip_id: str, status: TripStatus | None = None) -> None:
        if self.monitored_trip_id == trip_id:
            logger.debug(f"Already monitoring trip {trip_id}")
            return
        self.monitored_trip_id = trip_id
        self._last_status = status
        logger.info(f"Monitoring trip {trip_id}")

    def stop_monitoring(self) -> None:
        if self.monitored_trip_id is not None:
            logger.info(f"Stopped monitoring trip {self.monitored_trip_id}")
        self.monitored_trip_id = None
        self._last_status = None

    def on_status_event(self, trip_id: str, status: TripStatus | str) -> NavigationEvent | None:
        """Apply a live status change for the monitored trip."""
        if trip_id != self.monitored_trip_id:
            return None
        try:
            status = TripStatus(status)
        except ValueError:
            logger.warning(f"Ignoring unknown status {status!r} for trip {trip_id}")
            return None
        if status == self._last_status:
            return None

        with log_trip_context(trip_id):
            logger.info(
                f"Trip {trip_id}: {self._last_status.value if self._last_status else '-'}"
                f" -> {status.value}"
            )
        self._last_status = status

        if status == TripStatus.COMPLETED:
            self.stop_monitoring()
            return self._emit(NavigationEvent(screen=Screen.TRIP_COMPLETE, trip_id=trip_id))
        if status == TripStatus.CANCELLED:
            self.stop_monitoring()
            return self.go_home()

        screen = self.screen_for(status)
        if screen is None:
            return None
        return self._emit(NavigationEvent(screen=screen, trip_id=trip_id))
