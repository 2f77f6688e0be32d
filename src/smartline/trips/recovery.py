"""Cold-start recovery of an in-flight trip."""

import logging

from smartline.core.exceptions import AuthorizationError, SmartlineError
from smartline.providers.dispatch import DispatchBackend
from smartline.ride_logging import log_context
from smartline.trip import NON_TERMINAL_STATUSES

from .navigation import NavigationEvent
from .session_store import SessionStore
from .state_machine import TripStateMachine

logger = logging.getLogger(__name__)


class SessionRecovery:
    """Reattaches the UI to the user's active trip after an app relaunch.

    A failed history query is not fatal: the user lands on the home screen
    and can check their trip manually. An expired session sends the user to
    sign in instead.
    """

    def __init__(
        self,
        backend: DispatchBackend,
        machine: TripStateMachine,
        session_store: SessionStore,
    ):
        self._backend = backend
        self._machine = machine
        self._session_store = session_store

    async def recover(self) -> NavigationEvent | None:
        session = self._session_store.get_session()
        if session is None:
            return self._machine.sign_in()

        with log_context(user_id=session.user_id, role=session.role.value):
            try:
                history = await self._backend.trip_history(session.user_id, session.role)
            except AuthorizationError as e:
                logger.warning(f"Session rejected while checking active trip: {e}")
                return self._machine.sign_in()
            except SmartlineError as e:
                logger.warning(f"Could not check for an active trip: {e}")
                return self._machine.go_home()

            active = [t for t in history if t.status in NON_TERMINAL_STATUSES]
            if not active:
                return self._machine.go_home()

            logger.info(f"Restoring trip {active[0].id} ({active[0].status.value})")
            event = self._machine.resume(active)
            if event is None and self._machine.current is None:
                return self._machine.go_home()
            return event
