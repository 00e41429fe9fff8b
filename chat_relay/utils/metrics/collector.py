"""
Facade for centralized metrics emission.

Provides high-level methods for recording metrics without exposing
Prometheus implementation details to the relay core.
"""


class MetricsCollector:
    """
    Centralized facade for all Prometheus metrics.

    All methods are static for easy use without instantiation.
    """

    # ========== Connection Metrics ==========

    @staticmethod
    def record_ws_connection_accepted() -> None:
        """Record successful WebSocket connection."""
        from chat_relay.utils.metrics import (
            ws_connections_active,
            ws_connections_total,
        )

        ws_connections_total.labels(status="accepted").inc()
        ws_connections_active.inc()

    @staticmethod
    def record_ws_connection_rejected(reason: str) -> None:
        """
        Record rejected WebSocket connection.

        Args:
            reason: One of 'invalid_room', 'duplicate'
        """
        from chat_relay.utils.metrics import ws_connections_total

        ws_connections_total.labels(status=f"rejected_{reason}").inc()

    @staticmethod
    def record_ws_disconnection() -> None:
        """Record WebSocket disconnection."""
        from chat_relay.utils.metrics import ws_connections_active

        ws_connections_active.dec()

    @staticmethod
    def record_ws_eviction(reason: str) -> None:
        """
        Record a connection forcibly closed by the relay.

        Args:
            reason: EvictionReason value
        """
        from chat_relay.utils.metrics import ws_connections_evicted_total

        ws_connections_evicted_total.labels(reason=reason).inc()

    # ========== Room Metrics ==========

    @staticmethod
    def record_room_created() -> None:
        """Record a room entering the registry."""
        from chat_relay.utils.metrics import ws_rooms_active

        ws_rooms_active.inc()

    @staticmethod
    def record_room_reclaimed() -> None:
        """Record a room leaving the registry."""
        from chat_relay.utils.metrics import ws_rooms_active

        ws_rooms_active.dec()

    # ========== Message Metrics ==========

    @staticmethod
    def record_ws_message_received() -> None:
        """Record WebSocket message received."""
        from chat_relay.utils.metrics import ws_messages_received_total

        ws_messages_received_total.inc()

    @staticmethod
    def record_ws_message_sent() -> None:
        """Record WebSocket message written to a client."""
        from chat_relay.utils.metrics import ws_messages_sent_total

        ws_messages_sent_total.inc()

    @staticmethod
    def record_ws_message_dropped(reason: str) -> None:
        """
        Record inbound message dropped before fan-out.

        Args:
            reason: One of 'no_room', 'not_joined'
        """
        from chat_relay.utils.metrics import ws_messages_dropped_total

        ws_messages_dropped_total.labels(reason=reason).inc()

    @staticmethod
    def record_broadcast_delivery(outcome: str) -> None:
        """
        Record one per-recipient delivery attempt.

        Args:
            outcome: One of 'enqueued', 'queue_full', 'closed'
        """
        from chat_relay.utils.metrics import ws_broadcast_deliveries_total

        ws_broadcast_deliveries_total.labels(outcome=outcome).inc()

    @staticmethod
    def record_broadcast_fanout(recipients: int) -> None:
        """
        Record the number of recipients of one broadcast.

        Args:
            recipients: Snapshot size minus the sender
        """
        from chat_relay.utils.metrics import ws_broadcast_fanout

        ws_broadcast_fanout.observe(recipients)
