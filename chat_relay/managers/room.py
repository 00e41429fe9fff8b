import threading

from pydantic import BaseModel, Field

from chat_relay.exceptions import (
    ConnectionClosedError,
    QueueFullError,
    RoomRetiredError,
)
from chat_relay.logging import logger
from chat_relay.managers.connection import Connection
from chat_relay.utils.metrics import MetricsCollector


class BroadcastResult(BaseModel):
    """Outcome of one fan-out, used by the broadcast core to apply policy."""

    room_id: str
    sender_id: str
    delivered: int = 0
    queue_full: list[str] = Field(default_factory=list)
    closed: list[str] = Field(default_factory=list)

    @property
    def failed(self) -> list[str]:
        return self.queue_full + self.closed


class Room:
    """
    The set of connections joined to one room identifier.

    Membership is keyed by connection id. The room holds non-owning
    references; connection lifecycle is driven by the broadcast core.
    """

    def __init__(self, room_id: str) -> None:
        self.room_id = room_id
        self._members: dict[str, Connection] = {}
        self._lock = threading.Lock()
        self._retired = False

    def __len__(self) -> int:
        return len(self._members)

    def __repr__(self) -> str:
        return f"Room(id={self.room_id!r}, members={len(self._members)})"

    @property
    def retired(self) -> bool:
        return self._retired

    def join(self, connection: Connection) -> None:
        """
        Adds a connection to the membership set.

        Joining twice is a no-op.

        Args:
            connection: The connection to add.

        Raises:
            RoomRetiredError: The registry already reclaimed this room.
            ConnectionClosedError: The connection was closed before joining.
        """
        with self._lock:
            if self._retired:
                raise RoomRetiredError(f"Room {self.room_id} was reclaimed")
            if not connection.is_open():
                raise ConnectionClosedError(
                    f"Connection {connection.connection_id} is closed"
                )
            if connection.connection_id in self._members:
                logger.debug(
                    f"Connection {connection.connection_id} already in room "
                    f"{self.room_id}"
                )
                return
            self._members[connection.connection_id] = connection

        logger.debug(
            f"Connection {connection.connection_id} joined room {self.room_id}"
        )

    def leave(self, connection: Connection) -> bool:
        """
        Removes a connection from the membership set, no-op if absent.

        Args:
            connection: The connection to remove.

        Returns:
            True if the room is now empty.
        """
        with self._lock:
            removed = self._members.pop(connection.connection_id, None)
            empty = not self._members

        if removed is not None:
            logger.debug(
                f"Connection {connection.connection_id} left room {self.room_id}"
            )
        return empty

    def members(self) -> list[Connection]:
        """Point-in-time snapshot of the current members."""
        with self._lock:
            return list(self._members.values())

    def is_empty(self) -> bool:
        with self._lock:
            return not self._members

    def retire_if_empty(self) -> bool:
        """
        Marks the room retired if it has no members.

        Called by the registry while it holds its own lock; afterwards every
        join fails with RoomRetiredError.

        Returns:
            True if the room was retired.
        """
        with self._lock:
            if self._members:
                return False
            self._retired = True
            return True

    def retire(self) -> list[Connection]:
        """
        Retires the room unconditionally and drops all members.

        Returns:
            The members the room held.
        """
        with self._lock:
            self._retired = True
            members = list(self._members.values())
            self._members.clear()
            return members

    def broadcast(self, sender_id: str, message: str) -> BroadcastResult:
        """
        Delivers a message to every member except the sender.

        Membership is snapshotted under the room lock and enqueues happen
        outside it. A failed enqueue is recorded and never aborts the
        fan-out or reaches the caller.

        Args:
            sender_id: Connection id of the sender, excluded from delivery.
            message: Payload to deliver.

        Returns:
            BroadcastResult with per-recipient outcomes.
        """
        recipients = [
            conn for conn in self.members() if conn.connection_id != sender_id
        ]
        result = BroadcastResult(room_id=self.room_id, sender_id=sender_id)
        MetricsCollector.record_broadcast_fanout(len(recipients))

        for conn in recipients:
            try:
                conn.enqueue(message)
            except QueueFullError as e:
                result.queue_full.append(conn.connection_id)
                MetricsCollector.record_broadcast_delivery("queue_full")
                logger.warning(f"Dropped message in room {self.room_id}: {e}")
            except ConnectionClosedError as e:
                result.closed.append(conn.connection_id)
                MetricsCollector.record_broadcast_delivery("closed")
                logger.debug(f"Dropped message in room {self.room_id}: {e}")
            else:
                result.delivered += 1
                MetricsCollector.record_broadcast_delivery("enqueued")

        return result
