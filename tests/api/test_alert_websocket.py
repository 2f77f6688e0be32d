from unittest.mock import AsyncMock, Mock

import pytest
from fastapi.websockets import WebSocketState
from starlette.websockets import WebSocketDisconnect

from smartline.alerts import SOS_ALERTS
from smartline.api.websocket import AlertRelay, ConnectionManager

WS_AUTH_HEADERS = {"sec-websocket-protocol": "apikey.test-api-key"}


def connected_socket() -> Mock:
    websocket = Mock()
    websocket.application_state = WebSocketState.CONNECTED
    websocket.send_json = AsyncMock()
    return websocket


@pytest.mark.unit
class TestWebSocketAuth:
    def test_connect_success(self, test_client, app):
        with test_client.websocket_connect("/ws/alerts", headers=WS_AUTH_HEADERS):
            assert len(app.state.connection_manager.active_connections) == 1

    def test_connect_invalid_key(self, test_client):
        with (
            pytest.raises(WebSocketDisconnect),
            test_client.websocket_connect(
                "/ws/alerts", headers={"sec-websocket-protocol": "apikey.wrong"}
            ),
        ):
            pass

    def test_connect_missing_key(self, test_client):
        with (
            pytest.raises(WebSocketDisconnect),
            test_client.websocket_connect("/ws/alerts"),
        ):
            pass

    def test_alert_is_pushed_to_dashboard(self, test_client, bus, make_alert):
        alert = make_alert("alert-9", notes="Passenger pressed SOS")

        with test_client.websocket_connect("/ws/alerts", headers=WS_AUTH_HEADERS) as websocket:
            test_client.portal.call(bus.publish, SOS_ALERTS, alert)
            message = websocket.receive_json()

        assert message["type"] == "sos_alert"
        assert message["data"]["id"] == "alert-9"
        assert message["data"]["notes"] == "Passenger pressed SOS"


@pytest.mark.unit
class TestConnectionManager:
    async def test_broadcast_skips_closed_sockets(self):
        manager = ConnectionManager()
        open_socket = connected_socket()
        closed_socket = connected_socket()
        closed_socket.application_state = WebSocketState.DISCONNECTED
        manager.active_connections = {open_socket, closed_socket}

        await manager.broadcast({"type": "ping"})

        open_socket.send_json.assert_awaited_once_with({"type": "ping"})
        closed_socket.send_json.assert_not_awaited()

    def test_disconnect_is_idempotent(self):
        manager = ConnectionManager()
        websocket = connected_socket()
        manager.active_connections.add(websocket)

        manager.disconnect(websocket)
        manager.disconnect(websocket)

        assert manager.active_connections == set()

    async def test_broadcast_drops_failing_socket(self):
        manager = ConnectionManager()
        failing_socket = connected_socket()
        failing_socket.send_json.side_effect = RuntimeError("socket gone")
        open_socket = connected_socket()
        manager.active_connections = {failing_socket, open_socket}

        await manager.broadcast({"type": "ping"})

        open_socket.send_json.assert_awaited_once_with({"type": "ping"})
        assert manager.active_connections == {open_socket}


@pytest.mark.unit
@pytest.mark.critical
class TestAlertRelay:
    async def test_duplicate_delivery_relayed_once(self, make_alert):
        manager = Mock()
        manager.active_connections = set()
        manager.broadcast = AsyncMock()
        relay = AlertRelay(manager)
        alert = make_alert("alert-1")

        await relay.handle(alert)
        await relay.handle(alert)

        manager.broadcast.assert_awaited_once()
        message = manager.broadcast.await_args.args[0]
        assert message["type"] == "sos_alert"
        assert message["data"]["id"] == "alert-1"

    async def test_failed_dashboard_does_not_block_others(self, make_alert):
        manager = ConnectionManager()
        dead_socket = connected_socket()
        dead_socket.send_json.side_effect = RuntimeError("socket gone")
        live_socket = connected_socket()
        manager.active_connections = {dead_socket, live_socket}
        relay = AlertRelay(manager)
        alert = make_alert("alert-2")

        await relay.handle(alert)
        await relay.handle(alert)

        live_socket.send_json.assert_awaited_once()
        assert live_socket.send_json.await_args.args[0]["data"]["id"] == "alert-2"
        assert manager.active_connections == {live_socket}
