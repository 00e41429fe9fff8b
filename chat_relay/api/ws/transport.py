"""WebSocket registry implementing delivery for the broadcast core."""

from starlette.websockets import WebSocket

from chat_relay.logging import logger


class WebSocketTransport:
    """
    Maps connection ids to live WebSocket objects and writes payloads.

    Implements the Deliverer protocol consumed by BroadcastCore.pump().
    """

    def __init__(self) -> None:
        self.clients: dict[str, WebSocket] = {}

    def register(self, connection_id: str, websocket: WebSocket) -> None:
        """
        Associates a WebSocket with a connection id.

        Args:
            connection_id: Id the broadcast core knows the connection by.
            websocket: The accepted WebSocket.
        """
        self.clients[connection_id] = websocket
        logger.debug(
            f"websocket object ({id(websocket)}) registered "
            f"for connection {connection_id}"
        )

    def unregister(self, connection_id: str) -> None:
        """
        Forgets a connection, no-op if unknown.

        Args:
            connection_id: The connection id to remove.
        """
        websocket = self.clients.pop(connection_id, None)
        if websocket is not None:
            logger.debug(
                f"websocket object ({id(websocket)}) unregistered "
                f"for connection {connection_id}"
            )

    def get_connection(self, connection_id: str) -> WebSocket | None:
        return self.clients.get(connection_id)

    async def deliver(self, connection_id: str, payload: str) -> None:
        """
        Sends a text frame to a connection.

        Args:
            connection_id: Target connection.
            payload: Text to send.

        Raises:
            ConnectionError: The connection is not registered.
        """
        websocket = self.clients.get(connection_id)
        if websocket is None:
            raise ConnectionError(f"No websocket for connection {connection_id}")
        await websocket.send_text(payload)


ws_transport = WebSocketTransport()
