"""
Application-level constants for relay protocol behaviour.

These values define protocol specifics and must not be changed via
environment variables. For tunable values (queue sizes, failure
thresholds, room id rules) see chat_relay/settings.py.
"""

from enum import Enum

# ============================================================================
# WebSocket Close Codes (RFC 6455)
# ============================================================================

WS_NORMAL_CLOSURE_CODE = 1000

# Sent when a client sends a frame type the relay does not accept (binary)
WS_UNSUPPORTED_DATA_CODE = 1003

# Sent when a connection is rejected (invalid room id, duplicate id)
WS_POLICY_VIOLATION_CODE = 1008

# Sent when a slow consumer is evicted, the client may reconnect later
WS_TRY_AGAIN_LATER_CODE = 1013


# ============================================================================
# Eviction Reasons
# ============================================================================


class EvictionReason(str, Enum):
    """Why the broadcast core forcibly closed a connection."""

    QUEUE_OVERFLOW = "queue_overflow"
    PROTOCOL_VIOLATION = "protocol_violation"
    DELIVERY_FAILED = "delivery_failed"


EVICTION_CLOSE_CODES: dict[EvictionReason, int] = {
    EvictionReason.QUEUE_OVERFLOW: WS_TRY_AGAIN_LATER_CODE,
    EvictionReason.PROTOCOL_VIOLATION: WS_UNSUPPORTED_DATA_CODE,
    EvictionReason.DELIVERY_FAILED: WS_NORMAL_CLOSURE_CODE,
}
