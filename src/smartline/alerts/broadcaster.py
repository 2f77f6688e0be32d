"""SOS alert fan-out to rider, driver and operations subscribers."""

import asyncio
import logging
from enum import Enum
from typing import Protocol

from smartline.metrics import record_alert_duplicate, record_alert_rendered
from smartline.pubsub import CHANNEL_SOS_ALERTS, EventBus, Subscription, Topic
from smartline.ride_logging import log_context

from .models import SOSAlert

logger = logging.getLogger(__name__)

SOS_ALERTS = Topic(CHANNEL_SOS_ALERTS, SOSAlert)

DEFAULT_TOAST_TIMEOUT = 10.0


class SeenAlertRegistry:
    """Alert ids already rendered in this process.

    Delivery is at-least-once and there is no server-side read receipt, so
    this set is what keeps a re-subscribed component from rendering the same
    alert again. It lives as long as the process.
    """

    def __init__(self) -> None:
        self._seen: set[str] = set()

    def mark_seen(self, alert_id: str) -> bool:
        """Record alert_id. Returns False if it had already been seen."""
        if alert_id in self._seen:
            return False
        self._seen.add(alert_id)
        return True

    def has_seen(self, alert_id: str) -> bool:
        return alert_id in self._seen

    def __len__(self) -> int:
        return len(self._seen)

    def reset(self) -> None:
        self._seen.clear()


_registry: SeenAlertRegistry | None = None


def get_seen_alert_registry() -> SeenAlertRegistry:
    global _registry
    if _registry is None:
        _registry = SeenAlertRegistry()
    return _registry


class Presentation(str, Enum):
    TOAST = "toast"
    MODAL = "modal"


class AlarmPlayer(Protocol):
    def play(self, loop: bool) -> None: ...

    def stop(self) -> None: ...


class AlertView(Protocol):
    def show(self, alert: SOSAlert, presentation: Presentation) -> None: ...

    def clear(self, alert_id: str) -> None: ...


class AlertPresenter:
    presentation: Presentation

    def __init__(
        self,
        view: AlertView,
        alarm: AlarmPlayer,
        registry: SeenAlertRegistry | None = None,
    ):
        self._view = view
        self._alarm = alarm
        self._registry = registry or get_seen_alert_registry()
        self.visible: dict[str, SOSAlert] = {}

    async def handle(self, alert: SOSAlert) -> None:
        if not self._registry.mark_seen(alert.id):
            record_alert_duplicate()
            logger.debug(f"Skipping already rendered SOS alert {alert.id}")
            return

        with log_context(alert_id=alert.id, trip_id=alert.trip_id, driver_id=alert.driver_id):
            logger.warning(
                f"SOS alert {alert.id} at ({alert.latitude}, {alert.longitude})"
            )
        self.visible[alert.id] = alert
        self._present(alert)
        record_alert_rendered(self.presentation.value)

    def _present(self, alert: SOSAlert) -> None:
        raise NotImplementedError

    def dismiss(self, alert_id: str) -> None:
        if self.visible.pop(alert_id, None) is not None:
            self._view.clear(alert_id)


class ToastAlertPresenter(AlertPresenter):
    """Lightweight banner: one-shot alarm, clears itself after a timeout."""

    presentation = Presentation.TOAST

    def __init__(
        self,
        view: AlertView,
        alarm: AlarmPlayer,
        registry: SeenAlertRegistry | None = None,
        timeout: float = DEFAULT_TOAST_TIMEOUT,
    ):
        super().__init__(view, alarm, registry)
        self.timeout = timeout
        self._timers: dict[str, asyncio.TimerHandle] = {}

    def _present(self, alert: SOSAlert) -> None:
        self._alarm.play(loop=False)
        self._view.show(alert, self.presentation)
        loop = asyncio.get_running_loop()
        self._timers[alert.id] = loop.call_later(self.timeout, self.dismiss, alert.id)

    def dismiss(self, alert_id: str) -> None:
        timer = self._timers.pop(alert_id, None)
        if timer is not None:
            timer.cancel()
        super().dismiss(alert_id)


class ModalAlertPresenter(AlertPresenter):
    """Blocking dialog for operations staff: looping alarm until handled."""

    presentation = Presentation.MODAL

    def _present(self, alert: SOSAlert) -> None:
        self._alarm.play(loop=True)
        self._view.show(alert, self.presentation)

    def dismiss(self, alert_id: str) -> None:
        super().dismiss(alert_id)
        if not self.visible:
            self._alarm.stop()

    def open_details(self, alert_id: str) -> SOSAlert | None:
        """Close the dialog and return the alert for the safety detail view."""
        alert = self.visible.get(alert_id)
        if alert is not None:
            self.dismiss(alert_id)
        return alert


class AlertBroadcaster:
    """Connects presenters to the SOS change feed on an event bus."""

    def __init__(self, bus: EventBus, topic: Topic[SOSAlert] = SOS_ALERTS):
        self._bus = bus
        self.topic = topic

    def attach(self, presenter: AlertPresenter) -> Subscription:
        return self._bus.subscribe(self.topic, presenter.handle)

    async def publish(self, alert: SOSAlert) -> None:
        await self._bus.publish(self.topic, alert)
