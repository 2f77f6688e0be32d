"""Safety alert models, fan-out and reporting."""

from .broadcaster import (
    SOS_ALERTS,
    AlarmPlayer,
    AlertBroadcaster,
    AlertPresenter,
    AlertView,
    ModalAlertPresenter,
    Presentation,
    SeenAlertRegistry,
    ToastAlertPresenter,
    get_seen_alert_registry,
)
from .models import AlertStatus, SOSAlert
from .reporter import SafetyReporter

__all__ = [
    "SOS_ALERTS",
    "AlarmPlayer",
    "AlertBroadcaster",
    "AlertPresenter",
    "AlertView",
    "ModalAlertPresenter",
    "Presentation",
    "SeenAlertRegistry",
    "ToastAlertPresenter",
    "get_seen_alert_registry",
    "AlertStatus",
    "SOSAlert",
    "SafetyReporter",
]
