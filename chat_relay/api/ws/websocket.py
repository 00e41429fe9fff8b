import asyncio
import uuid
from typing import Any

from starlette import status
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from chat_relay.api.ws.transport import ws_transport
from chat_relay.constants import EVICTION_CLOSE_CODES, EvictionReason
from chat_relay.exceptions import RelayError
from chat_relay.logging import clear_log_context, logger, set_log_context
from chat_relay.managers.broadcast_core import broadcast_core
from chat_relay.managers.connection import Connection
from chat_relay.settings import app_settings


class RoomWebSocketEndpoint(WebSocketEndpoint):  # type: ignore[misc]
    """
    WebSocket endpoint relaying text frames between members of a room.

    Translates the socket lifecycle into broadcast core events and runs a
    writer task per connection that drains the connection's outbound queue
    to the socket.
    """

    encoding = None  # Text and binary frames are told apart in on_receive

    connection: Connection | None = None
    writer: asyncio.Task | None = None

    async def dispatch(self) -> None:
        """
        Manages the WebSocket connection lifecycle.

        1. Calls on_connect, which joins the room or rejects the socket.
        2. Receives frames until the client disconnects or the relay evicts
           the connection.
        3. Calls on_disconnect to tear the connection down.
        """
        websocket = WebSocket(self.scope, receive=self.receive, send=self.send)
        await self.on_connect(websocket)
        if self.connection is None:
            return

        close_code = status.WS_1000_NORMAL_CLOSURE

        try:
            while True:
                message = await websocket.receive()
                if message["type"] == "websocket.receive":
                    await self.on_receive(websocket, message)
                elif message["type"] == "websocket.disconnect":
                    close_code = int(
                        message.get("code") or status.WS_1000_NORMAL_CLOSURE
                    )
                    break
        except WebSocketDisconnect as exc:
            close_code = exc.code
        except Exception:
            close_code = status.WS_1011_INTERNAL_ERROR
            raise
        finally:
            await self.on_disconnect(websocket, close_code)

    def resolve_room_id(self, websocket: WebSocket) -> str:
        """
        Derives the room identifier for this socket.

        Uses the `room_id` path parameter, falling back to DEFAULT_ROOM_ID
        for routes without one.
        """
        return websocket.path_params.get("room_id", app_settings.DEFAULT_ROOM_ID)

    async def on_connect(self, websocket: WebSocket) -> None:
        """
        Joins the socket's room, rejecting it on an invalid room id.

        Rejected sockets are closed before the handshake completes, with
        the close code carried by the raised RelayError.
        """
        room_id = self.resolve_room_id(websocket)
        connection_id = str(uuid.uuid4())
        set_log_context(connection_id=connection_id[:8], room_id=room_id)

        try:
            self.connection = broadcast_core.on_connection_established(
                connection_id, room_id
            )
        except RelayError as e:
            logger.info(f"WebSocket connection rejected: {e.message}")
            await websocket.close(code=e.ws_close_code, reason=e.message)
            clear_log_context()
            return

        try:
            await websocket.accept()
        except Exception:
            broadcast_core.on_connection_closed(connection_id)
            clear_log_context()
            raise

        ws_transport.register(connection_id, websocket)
        self.writer = asyncio.create_task(self._write_loop(websocket))
        logger.debug(f"Client connected to room {room_id}")

    async def on_receive(self, websocket: WebSocket, data: dict[str, Any]) -> None:
        """
        Relays a text frame to the room, evicts on a binary frame.

        Args:
            websocket: The WebSocket connection instance.
            data: Raw ASGI receive message.
        """
        text = data.get("text")
        if text is None:
            logger.debug("Received binary frame, evicting connection")
            broadcast_core.evict(
                self.connection.connection_id,
                EvictionReason.PROTOCOL_VIOLATION,
            )
            return

        broadcast_core.on_text_message(self.connection.connection_id, text)

    async def on_disconnect(self, websocket: WebSocket, close_code: int) -> None:
        """
        Tears the connection down and stops its writer task.
        """
        connection_id = self.connection.connection_id
        broadcast_core.on_connection_closed(connection_id)
        ws_transport.unregister(connection_id)
        logger.debug(f"Client disconnected with code {close_code}")
        clear_log_context()

        if self.writer is not None:
            # Closed connections end the pump, cancel covers a stuck send
            self.writer.cancel()
            (result,) = await asyncio.gather(self.writer, return_exceptions=True)
            if isinstance(result, Exception):
                logger.error(
                    f"Writer task for connection {connection_id} failed: {result}",
                    exc_info=result,
                )

    async def _write_loop(self, websocket: WebSocket) -> None:
        await broadcast_core.pump(self.connection.connection_id, ws_transport)

        reason = self.connection.eviction_reason
        if reason is None or websocket.application_state != WebSocketState.CONNECTED:
            return

        try:
            await websocket.close(
                code=EVICTION_CLOSE_CODES[reason], reason=reason.value
            )
        except (RuntimeError, WebSocketDisconnect, ConnectionError) as e:
            logger.debug(f"Error closing evicted websocket: {e}")
