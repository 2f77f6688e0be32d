"""Raising an SOS alert from a rider or driver app."""

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from smartline.core.exceptions import AuthorizationError, SmartlineError, ValidationError
from smartline.ride_logging import log_context

from .models import SOSAlert

if TYPE_CHECKING:
    from smartline.providers.dispatch import DispatchBackend

    from .broadcaster import AlertBroadcaster

logger = logging.getLogger(__name__)


class SafetyReporter:
    """Creates SOS alerts attached to the user's active trip."""

    def __init__(
        self,
        backend: "DispatchBackend",
        broadcaster: "AlertBroadcaster | None" = None,
    ):
        self._backend = backend
        self._broadcaster = broadcaster

    async def send_sos(
        self,
        latitude: float,
        longitude: float,
        trip_id: str | None = None,
        notes: str | None = None,
    ) -> SOSAlert:
        trip = None
        if trip_id is None:
            try:
                trip = await self._backend.active_trip()
            except AuthorizationError:
                raise
            except SmartlineError as e:
                logger.warning(f"Could not look up active trip for SOS: {e}")
            trip_id = trip.id if trip else None

        if not trip_id:
            raise ValidationError("We couldn't find an active trip to attach this SOS alert.")

        metadata = {
            "source": "app_sos_button",
            "timestamp": datetime.now(UTC).isoformat(),
            "snapshot": {
                "trip": trip.model_dump(mode="json") if trip else None,
                "location_text": (
                    trip.pickup.address if trip and trip.pickup else None
                )
                or "Unknown Location",
            },
        }

        with log_context(trip_id=trip_id):
            alert = await self._backend.create_sos_alert(
                latitude=latitude,
                longitude=longitude,
                trip_id=trip_id,
                notes=notes,
                metadata=metadata,
            )
            logger.warning(f"SOS alert {alert.id} raised for trip {trip_id}")

        if self._broadcaster is not None:
            await self._broadcaster.publish(alert)
        return alert
