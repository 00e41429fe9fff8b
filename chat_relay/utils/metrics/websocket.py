"""
Prometheus metrics for WebSocket connection, room and fan-out monitoring.
"""

from chat_relay.utils.metrics._helpers import (
    _get_or_create_counter,
    _get_or_create_gauge,
    _get_or_create_histogram,
)

# Connection Metrics
ws_connections_active = _get_or_create_gauge(
    "ws_connections_active", "Number of active WebSocket connections"
)

ws_connections_total = _get_or_create_counter(
    "ws_connections_total",
    "Total WebSocket connections",
    ["status"],  # accepted, rejected_invalid_room, rejected_duplicate
)

ws_connections_evicted_total = _get_or_create_counter(
    "ws_connections_evicted_total",
    "Connections forcibly closed by the relay",
    ["reason"],  # queue_overflow, protocol_violation, delivery_failed
)

# Room Metrics
ws_rooms_active = _get_or_create_gauge(
    "ws_rooms_active", "Number of rooms with at least one member"
)

# Message Metrics
ws_messages_received_total = _get_or_create_counter(
    "ws_messages_received_total", "Total WebSocket messages received"
)

ws_messages_sent_total = _get_or_create_counter(
    "ws_messages_sent_total", "Total WebSocket messages written to clients"
)

ws_messages_dropped_total = _get_or_create_counter(
    "ws_messages_dropped_total",
    "Inbound messages dropped before fan-out",
    ["reason"],  # no_room, not_joined
)

ws_broadcast_deliveries_total = _get_or_create_counter(
    "ws_broadcast_deliveries_total",
    "Per-recipient delivery attempts during fan-out",
    ["outcome"],  # enqueued, queue_full, closed
)

ws_broadcast_fanout = _get_or_create_histogram(
    "ws_broadcast_fanout",
    "Number of recipients per broadcast",
    buckets=(0, 1, 2, 5, 10, 25, 50, 100, 250, 500, 1000),
)


def get_active_websocket_connections() -> int:
    """
    Get the current number of active WebSocket connections.

    Returns:
        int: Number of active WebSocket connections.
    """
    try:
        return int(ws_connections_active._value.get())
    except (AttributeError, ValueError):
        return 0


__all__ = [
    "ws_connections_active",
    "ws_connections_total",
    "ws_connections_evicted_total",
    "ws_rooms_active",
    "ws_messages_received_total",
    "ws_messages_sent_total",
    "ws_messages_dropped_total",
    "ws_broadcast_deliveries_total",
    "ws_broadcast_fanout",
    "get_active_websocket_connections",
]
