import asyncio
import threading
from collections import deque
from enum import Enum

from chat_relay.constants import EvictionReason
from chat_relay.exceptions import (
    ConnectionClosedError,
    InvalidStateTransitionError,
    QueueFullError,
)


class ConnectionState(str, Enum):
    """Lifecycle states of a relay connection."""

    CONNECTING = "connecting"
    JOINED = "joined"
    CLOSING = "closing"
    CLOSED = "closed"


# A connection that fails to join goes CONNECTING -> CLOSING directly
_ALLOWED_TRANSITIONS: dict[ConnectionState, set[ConnectionState]] = {
    ConnectionState.CONNECTING: {
        ConnectionState.JOINED,
        ConnectionState.CLOSING,
    },
    ConnectionState.JOINED: {ConnectionState.CLOSING},
    ConnectionState.CLOSING: {ConnectionState.CLOSED},
    ConnectionState.CLOSED: set(),
}


class Connection:
    """
    One client's outbound message channel and liveness state.

    The outbound queue is bounded and every operation is non-blocking, so a
    slow consumer can never stall the broadcasting path. Operations are
    thread-safe; a single asyncio drainer may wait on `next_message()`.
    """

    def __init__(self, connection_id: str, max_queue_size: int) -> None:
        """
        Initializes a new connection in the CONNECTING state.

        Args:
            connection_id: Opaque identifier assigned by the transport layer.
            max_queue_size: Capacity of the outbound queue.
        """
        if max_queue_size < 1:
            raise ValueError("max_queue_size must be at least 1")

        self.connection_id = connection_id
        self.max_queue_size = max_queue_size
        self.room_id: str | None = None
        self.state = ConnectionState.CONNECTING
        self.consecutive_failures = 0
        self.eviction_reason: EvictionReason | None = None

        self._queue: deque[str] = deque()
        self._open = True
        self._lock = threading.Lock()

        # Set by the drainer; enqueue wakes it through its event loop
        self._ready: asyncio.Event | None = None
        self._loop: asyncio.AbstractEventLoop | None = None

    def __repr__(self) -> str:
        return (
            f"Connection(id={self.connection_id!r}, room={self.room_id!r}, "
            f"state={self.state.value})"
        )

    def enqueue(self, message: str) -> None:
        """
        Places a message on the outbound queue without blocking.

        Args:
            message: Payload to deliver to this connection.

        Raises:
            ConnectionClosedError: The connection is no longer open.
            QueueFullError: The outbound queue is at capacity.
        """
        with self._lock:
            if not self._open:
                self.consecutive_failures += 1
                raise ConnectionClosedError(
                    f"Connection {self.connection_id} is closed"
                )
            if len(self._queue) >= self.max_queue_size:
                self.consecutive_failures += 1
                raise QueueFullError(
                    f"Outbound queue of connection {self.connection_id} "
                    f"is full ({self.max_queue_size})"
                )
            self._queue.append(message)
            self.consecutive_failures = 0

        self._wake()

    def mark_closed(self) -> int:
        """
        Closes the connection and releases undelivered messages.

        Idempotent, a second call has no effect.

        Returns:
            Number of queued messages that were discarded.
        """
        with self._lock:
            if not self._open:
                return 0
            self._open = False
            discarded = len(self._queue)
            self._queue.clear()

        self._wake()
        return discarded

    def is_open(self) -> bool:
        return self._open

    def qsize(self) -> int:
        return len(self._queue)

    def get_nowait(self) -> str | None:
        """
        Pops the oldest queued message.

        Returns:
            The message, or None if the queue is empty.
        """
        with self._lock:
            if self._queue:
                return self._queue.popleft()
            return None

    async def next_message(self) -> str | None:
        """
        Waits for the next queued message.

        Returns:
            The oldest queued message, or None once the connection is closed.
        """
        if self._ready is None:
            self._ready = asyncio.Event()
            self._loop = asyncio.get_running_loop()

        while True:
            # Clear before checking so a wakeup scheduled after the check
            # is not lost
            self._ready.clear()
            message = self.get_nowait()
            if message is not None:
                return message
            if not self._open:
                return None
            await self._ready.wait()

    def transition(self, new_state: ConnectionState) -> None:
        """
        Moves the connection to the next lifecycle state.

        Args:
            new_state: Target state.

        Raises:
            InvalidStateTransitionError: The transition would skip a state
                or leave the terminal CLOSED state.
        """
        with self._lock:
            if new_state not in _ALLOWED_TRANSITIONS[self.state]:
                raise InvalidStateTransitionError(
                    f"Connection {self.connection_id} cannot go from "
                    f"{self.state.value} to {new_state.value}"
                )
            self.state = new_state

    def _wake(self) -> None:
        loop = self._loop
        if loop is None or self._ready is None or loop.is_closed():
            return
        loop.call_soon_threadsafe(self._ready.set)
