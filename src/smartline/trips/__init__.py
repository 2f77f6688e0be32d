"""Trip lifecycle orchestration: state machine, recovery and setup flow."""

from .monitor import TripStatusMonitor
from .navigation import NavigationEvent, NavigationGate, Navigator, RecordingNavigator, Screen
from .recovery import SessionRecovery
from .session_store import FileSessionStore, InMemorySessionStore, SessionStore, UserSession
from .setup import RouteStatus, TripSetupFlow, TripSetupState
from .state_machine import TripStateMachine, select_active_trip

__all__ = [
    "TripStatusMonitor",
    "NavigationEvent",
    "NavigationGate",
    "Navigator",
    "RecordingNavigator",
    "Screen",
    "SessionRecovery",
    "FileSessionStore",
    "InMemorySessionStore",
    "SessionStore",
    "UserSession",
    "RouteStatus",
    "TripSetupFlow",
    "TripSetupState",
    "TripStateMachine",
    "select_active_trip",
]
