import threading

from chat_relay.constants import EvictionReason
from chat_relay.exceptions import (
    ConnectionExistsError,
    InvalidRoomIdError,
    RoomRetiredError,
)
from chat_relay.logging import logger
from chat_relay.managers.connection import Connection, ConnectionState
from chat_relay.managers.registry import RoomRegistry, validate_room_id
from chat_relay.managers.room import BroadcastResult
from chat_relay.protocols import Deliverer
from chat_relay.settings import app_settings
from chat_relay.utils.metrics import MetricsCollector


class BroadcastCore:
    """
    Orchestrates connection lifecycle and message fan-out.

    Receives join, message and leave events from the transport layer and
    drives the registry, rooms and connections. Each connection moves
    through CONNECTING -> JOINED -> CLOSING -> CLOSED; CLOSED is terminal
    and the connection is forgotten.

    Failure policy: a recipient whose consecutive enqueue failures reach
    `max_consecutive_failures` is evicted. Zero disables eviction.
    """

    def __init__(
        self,
        registry: RoomRegistry | None = None,
        max_queue_size: int | None = None,
        max_consecutive_failures: int | None = None,
    ) -> None:
        """
        Initializes the broadcast core.

        Args:
            registry: Room registry, a fresh one if omitted.
            max_queue_size: Outbound queue capacity per connection,
                defaults to WS_QUEUE_MAX_SIZE.
            max_consecutive_failures: Eviction threshold, defaults to
                WS_MAX_CONSECUTIVE_SEND_FAILURES.
        """
        self.registry = registry if registry is not None else RoomRegistry()
        self.max_queue_size = (
            max_queue_size
            if max_queue_size is not None
            else app_settings.WS_QUEUE_MAX_SIZE
        )
        self.max_consecutive_failures = (
            max_consecutive_failures
            if max_consecutive_failures is not None
            else app_settings.WS_MAX_CONSECUTIVE_SEND_FAILURES
        )
        self._connections: dict[str, Connection] = {}
        self._lock = threading.Lock()

    def get_connection(self, connection_id: str) -> Connection | None:
        """
        Get connection by id.

        Args:
            connection_id: The connection id to look up.

        Returns:
            Connection if it is live, None otherwise.
        """
        with self._lock:
            return self._connections.get(connection_id)

    def connection_count(self) -> int:
        with self._lock:
            return len(self._connections)

    def on_connection_established(
        self, connection_id: str, room_id: str
    ) -> Connection:
        """
        Registers a new connection and joins it to a room.

        Args:
            connection_id: Unique id assigned by the transport layer.
            room_id: Room identifier resolved by the transport layer.

        Returns:
            The joined connection.

        Raises:
            InvalidRoomIdError: The room id is empty or malformed. The
                registry is left unchanged.
            ConnectionExistsError: The connection id is already in use.
            ConnectionClosedError: The connection was closed by another
                thread before the join completed.
        """
        try:
            validate_room_id(room_id)
        except InvalidRoomIdError as e:
            MetricsCollector.record_ws_connection_rejected("invalid_room")
            logger.info(f"Rejected connection {connection_id}: {e}")
            raise

        connection = Connection(connection_id, self.max_queue_size)
        with self._lock:
            if connection_id in self._connections:
                MetricsCollector.record_ws_connection_rejected("duplicate")
                raise ConnectionExistsError(
                    f"Connection {connection_id} is already registered"
                )
            self._connections[connection_id] = connection

        connection.room_id = room_id
        try:
            while True:
                room = self.registry.resolve_or_create(room_id)
                try:
                    room.join(connection)
                    break
                except RoomRetiredError:
                    # Lost the race against reclaim, resolve a fresh room
                    logger.debug(f"Room {room_id} retired during join, retrying")
            connection.transition(ConnectionState.JOINED)
        except Exception:
            if not self._teardown(connection):
                # Torn down concurrently, the room resolved above may be empty
                self.registry.reclaim_if_empty(room_id)
            raise

        MetricsCollector.record_ws_connection_accepted()
        logger.info(f"Connection {connection_id} joined room {room_id}")
        return connection

    def on_text_message(
        self, connection_id: str, payload: str
    ) -> BroadcastResult | None:
        """
        Broadcasts an inbound text payload to the sender's room.

        Args:
            connection_id: The sending connection.
            payload: Message text, relayed verbatim.

        Returns:
            BroadcastResult, or None if the message was dropped.
        """
        MetricsCollector.record_ws_message_received()

        connection = self.get_connection(connection_id)
        if connection is None or connection.state != ConnectionState.JOINED:
            MetricsCollector.record_ws_message_dropped("not_joined")
            logger.debug(
                f"Dropped message from connection {connection_id}: not joined"
            )
            return None

        room = self.registry.lookup(connection.room_id)
        if room is None:
            MetricsCollector.record_ws_message_dropped("no_room")
            logger.warning(
                f"Dropped message from connection {connection_id}: "
                f"room {connection.room_id} not found"
            )
            return None

        result = room.broadcast(connection_id, payload)
        logger.debug(
            f"Broadcast from {connection_id} in room {room.room_id}: "
            f"{result.delivered} delivered, {len(result.failed)} failed"
        )
        self._apply_failure_policy(result)
        return result

    def on_connection_closed(self, connection_id: str) -> bool:
        """
        Tears down a connection after the transport reported closure.

        Idempotent, unknown or already closed connections are ignored.

        Args:
            connection_id: The closed connection.

        Returns:
            True if this call performed the teardown.
        """
        connection = self.get_connection(connection_id)
        if connection is None:
            return False
        return self._teardown(connection)

    def evict(self, connection_id: str, reason: EvictionReason) -> bool:
        """
        Forcibly closes a connection.

        Args:
            connection_id: The connection to evict.
            reason: Why the connection is evicted.

        Returns:
            True if this call performed the teardown.
        """
        connection = self.get_connection(connection_id)
        if connection is None:
            return False

        torn_down = self._teardown(connection, reason)
        if torn_down:
            MetricsCollector.record_ws_eviction(reason.value)
            logger.warning(
                f"Evicted connection {connection_id} from room "
                f"{connection.room_id} ({reason.value})"
            )
        return torn_down

    async def pump(self, connection_id: str, deliverer: Deliverer) -> None:
        """
        Drains a connection's queue to the transport in FIFO order.

        Returns once the connection is closed. A failing delivery is an
        implicit closure: the connection is evicted and the error is not
        propagated.

        Args:
            connection_id: The connection to drain.
            deliverer: Transport implementation writing to the network.
        """
        connection = self.get_connection(connection_id)
        if connection is None:
            return

        while True:
            message = await connection.next_message()
            if message is None:
                break
            try:
                await deliverer.deliver(connection_id, message)
            except Exception as e:
                logger.warning(
                    f"Delivery to connection {connection_id} failed: {e}"
                )
                self.evict(connection_id, EvictionReason.DELIVERY_FAILED)
                break
            MetricsCollector.record_ws_message_sent()

    def shutdown(self) -> int:
        """
        Closes every live connection and empties the registry.

        Returns:
            Number of connections closed.
        """
        with self._lock:
            connections = list(self._connections.values())

        closed = sum(1 for conn in connections if self._teardown(conn))
        self.registry.clear()
        logger.info(f"Broadcast core shut down, closed {closed} connections")
        return closed

    def _apply_failure_policy(self, result: BroadcastResult) -> None:
        if self.max_consecutive_failures <= 0:
            return

        for connection_id in result.queue_full:
            connection = self.get_connection(connection_id)
            if (
                connection is not None
                and connection.state == ConnectionState.JOINED
                and connection.consecutive_failures
                >= self.max_consecutive_failures
            ):
                self.evict(connection_id, EvictionReason.QUEUE_OVERFLOW)

    def _teardown(
        self, connection: Connection, reason: EvictionReason | None = None
    ) -> bool:
        # Whoever removes the entry owns the teardown
        with self._lock:
            if self._connections.get(connection.connection_id) is not connection:
                return False
            del self._connections[connection.connection_id]

        was_joined = connection.state == ConnectionState.JOINED
        connection.eviction_reason = reason
        connection.transition(ConnectionState.CLOSING)
        discarded = connection.mark_closed()

        room = (
            self.registry.lookup(connection.room_id)
            if connection.room_id is not None
            else None
        )
        if room is not None and room.leave(connection):
            self.registry.reclaim_if_empty(room.room_id)

        connection.transition(ConnectionState.CLOSED)
        if was_joined:
            MetricsCollector.record_ws_disconnection()

        logger.info(
            f"Connection {connection.connection_id} closed "
            f"(room: {connection.room_id}, discarded: {discarded})"
        )
        return True


broadcast_core = BroadcastCore()
