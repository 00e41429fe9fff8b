"""
Mock factory functions for WebSocket and delivery testing.
"""

from collections.abc import Callable
from unittest.mock import AsyncMock, MagicMock


def create_mock_websocket(path_params: dict | None = None):
    """
    Creates a mock WebSocket connection with common methods.

    Args:
        path_params: Path parameters resolved by the router

    Returns:
        MagicMock: Mocked WebSocket instance
    """
    from starlette.websockets import WebSocket, WebSocketState

    ws_mock = MagicMock(spec=WebSocket)

    # Send operations
    ws_mock.send_text = AsyncMock()
    ws_mock.send_bytes = AsyncMock()

    # Connection lifecycle
    ws_mock.accept = AsyncMock()
    ws_mock.close = AsyncMock()

    # State and routing
    ws_mock.application_state = WebSocketState.CONNECTED
    ws_mock.client_state = WebSocketState.CONNECTED
    ws_mock.path_params = path_params or {}
    ws_mock.headers = {}
    ws_mock.query_params = {}

    return ws_mock


class RecordingDeliverer:
    """
    Deliverer that records every payload in order.

    An optional callback runs after each delivery, which lets tests close a
    connection once enough messages were drained.
    """

    def __init__(self, on_deliver: Callable[[list], None] | None = None):
        self.delivered: list[tuple[str, str]] = []
        self._on_deliver = on_deliver

    async def deliver(self, connection_id: str, payload: str) -> None:
        self.delivered.append((connection_id, payload))
        if self._on_deliver is not None:
            self._on_deliver(self.delivered)


class FailingDeliverer:
    """Deliverer whose writes always fail like a dropped socket."""

    def __init__(self, exc: Exception | None = None):
        self.exc = exc or ConnectionError("socket closed")
        self.calls = 0

    async def deliver(self, connection_id: str, payload: str) -> None:
        self.calls += 1
        raise self.exc
