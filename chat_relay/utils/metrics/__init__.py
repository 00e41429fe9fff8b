"""
Prometheus metrics definitions and utilities.

All metrics are re-exported here so callers can import them directly:

    from chat_relay.utils.metrics import ws_connections_active

The relay core records metrics through the MetricsCollector facade:

    from chat_relay.utils.metrics import MetricsCollector
    MetricsCollector.record_ws_message_received()
"""

from chat_relay.utils.metrics._helpers import _get_or_create_gauge
from chat_relay.utils.metrics.collector import MetricsCollector
from chat_relay.utils.metrics.websocket import (
    get_active_websocket_connections,
    ws_broadcast_deliveries_total,
    ws_broadcast_fanout,
    ws_connections_active,
    ws_connections_evicted_total,
    ws_connections_total,
    ws_messages_dropped_total,
    ws_messages_received_total,
    ws_messages_sent_total,
    ws_rooms_active,
)

app_info = _get_or_create_gauge(
    "app_info",
    "Application information",
    ["version", "python_version", "environment"],
)

__all__ = [
    "MetricsCollector",
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
    "app_info",
]
