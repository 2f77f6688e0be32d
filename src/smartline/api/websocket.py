import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from fastapi.websockets import WebSocketState

from smartline.alerts import SeenAlertRegistry, SOSAlert
from smartline.metrics import record_alert_duplicate, record_alert_rendered
from smartline.ride_logging import log_context

logger = logging.getLogger(__name__)

router = APIRouter()


def extract_api_key_and_protocol(websocket: WebSocket) -> tuple[str | None, str | None]:
    """Extract API key and full protocol from Sec-WebSocket-Protocol header.

    Expected format: apikey.<key>
    Returns: (api_key, full_protocol) - both needed for proper handshake
    """
    protocol_header = websocket.headers.get("sec-websocket-protocol")
    if protocol_header:
        protocols = [p.strip() for p in protocol_header.split(",")]
        for protocol in protocols:
            if protocol.startswith("apikey."):
                return protocol.split(".", 1)[1], protocol
    return None, None


class ConnectionManager:
    """Manages operations dashboard WebSocket connections."""

    def __init__(self) -> None:
        self.active_connections: set[WebSocket] = set()

    async def connect(self, websocket: WebSocket, subprotocol: str | None = None) -> None:
        self.active_connections.add(websocket)
        await websocket.accept(subprotocol=subprotocol)

    def disconnect(self, websocket: WebSocket) -> None:
        self.active_connections.discard(websocket)

    async def send_message(self, websocket: WebSocket, message: dict[str, Any]) -> None:
        if websocket.application_state == WebSocketState.CONNECTED:
            await websocket.send_json(message)

    async def broadcast(self, message: dict[str, Any]) -> None:
        """Send to every dashboard. A socket that fails is dropped, the rest still receive."""
        for connection in list(self.active_connections):
            try:
                await self.send_message(connection, message)
            except Exception as e:
                logger.warning(f"Dropping dashboard connection after failed send: {e}")
                self.disconnect(connection)


class AlertRelay:
    """Forwards SOS alerts from the bus to every dashboard, once per alert."""

    def __init__(self, manager: ConnectionManager, registry: SeenAlertRegistry | None = None):
        self.manager = manager
        self.registry = registry or SeenAlertRegistry()

    async def handle(self, alert: SOSAlert) -> None:
        if not self.registry.mark_seen(alert.id):
            record_alert_duplicate()
            return
        with log_context(alert_id=alert.id, trip_id=alert.trip_id):
            logger.info(
                f"Relaying SOS alert {alert.id} to "
                f"{len(self.manager.active_connections)} dashboard(s)"
            )
        await self.manager.broadcast({"type": "sos_alert", "data": alert.model_dump(mode="json")})
        record_alert_rendered("dashboard")


@router.websocket("/ws/alerts")
async def alerts_endpoint(websocket: WebSocket) -> None:
    api_key, subprotocol = extract_api_key_and_protocol(websocket)
    settings = websocket.app.state.settings

    if not api_key or api_key != settings.api.key:
        await websocket.close(code=1008)
        return

    manager: ConnectionManager = websocket.app.state.connection_manager
    await manager.connect(websocket, subprotocol=subprotocol)

    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        manager.disconnect(websocket)
