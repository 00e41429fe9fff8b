"""
Custom exception classes for the relay.

Each exception carries the WebSocket close code the transport layer should
use when the error ends a connection, so rejection handling stays
consistent across consumers.
"""

from chat_relay.constants import (
    WS_NORMAL_CLOSURE_CODE,
    WS_POLICY_VIOLATION_CODE,
    WS_TRY_AGAIN_LATER_CODE,
)


class RelayError(Exception):
    """
    Base exception class for all relay exceptions.

    Attributes:
        message: Human-readable error message.
        ws_close_code: WebSocket close code for the transport layer.
    """

    ws_close_code: int = WS_NORMAL_CLOSURE_CODE

    def __init__(self, message: str):
        """
        Initialize the exception with a message.

        Args:
            message: Human-readable error description.
        """
        self.message = message
        super().__init__(message)


class QueueFullError(RelayError):
    """
    Outbound queue of a recipient is saturated.

    Raised by Connection.enqueue instead of blocking the broadcasting path.
    """

    ws_close_code = WS_TRY_AGAIN_LATER_CODE


class ConnectionClosedError(RelayError):
    """
    Enqueue attempted on a connection that was already torn down.
    """


class InvalidRoomIdError(RelayError):
    """
    Room identifier is empty or malformed.

    Surfaced to the transport layer as a rejection of the connection attempt.
    """

    ws_close_code = WS_POLICY_VIOLATION_CODE


class ConnectionExistsError(RelayError):
    """
    A connection with the same identifier is already registered.
    """

    ws_close_code = WS_POLICY_VIOLATION_CODE


class RoomRetiredError(RelayError):
    """
    Join raced with the registry reclaiming the room.

    Internal signal, the joiner resolves a fresh room and retries.
    """


class InvalidStateTransitionError(RelayError):
    """
    Connection lifecycle was driven through an illegal transition.
    """
