"""Tests for relay exception close codes."""

import pytest

from chat_relay.constants import (
    EVICTION_CLOSE_CODES,
    WS_NORMAL_CLOSURE_CODE,
    WS_POLICY_VIOLATION_CODE,
    WS_TRY_AGAIN_LATER_CODE,
    WS_UNSUPPORTED_DATA_CODE,
    EvictionReason,
)
from chat_relay.exceptions import (
    ConnectionClosedError,
    ConnectionExistsError,
    InvalidRoomIdError,
    InvalidStateTransitionError,
    QueueFullError,
    RelayError,
    RoomRetiredError,
)


class TestCloseCodes:
    """Test the close code carried by each exception."""

    @pytest.mark.parametrize(
        "exc_class, code",
        [
            (RelayError, WS_NORMAL_CLOSURE_CODE),
            (QueueFullError, WS_TRY_AGAIN_LATER_CODE),
            (ConnectionClosedError, WS_NORMAL_CLOSURE_CODE),
            (InvalidRoomIdError, WS_POLICY_VIOLATION_CODE),
            (ConnectionExistsError, WS_POLICY_VIOLATION_CODE),
            (RoomRetiredError, WS_NORMAL_CLOSURE_CODE),
            (InvalidStateTransitionError, WS_NORMAL_CLOSURE_CODE),
        ],
    )
    def test_ws_close_code(self, exc_class, code):
        """Test each exception maps to its WebSocket close code."""
        ex = exc_class("boom")

        assert ex.ws_close_code == code
        assert isinstance(ex, RelayError)

    def test_message_is_kept(self):
        """Test the message is available as attribute and str()."""
        ex = InvalidRoomIdError("Room id must be a non-empty string")

        assert ex.message == "Room id must be a non-empty string"
        assert str(ex) == ex.message


class TestEvictionCloseCodes:
    """Test the close codes sent to evicted clients."""

    def test_every_reason_has_a_code(self):
        """Test no eviction reason is missing a close code."""
        assert set(EVICTION_CLOSE_CODES) == set(EvictionReason)

    def test_codes(self):
        """Test the close code per eviction reason."""
        assert EVICTION_CLOSE_CODES[EvictionReason.QUEUE_OVERFLOW] == 1013
        assert EVICTION_CLOSE_CODES[EvictionReason.PROTOCOL_VIOLATION] == 1003
        assert EVICTION_CLOSE_CODES[EvictionReason.DELIVERY_FAILED] == 1000
        assert WS_UNSUPPORTED_DATA_CODE == 1003
