"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the relay core (connections,
rooms, registry, broadcast core) and for the FastAPI application.
"""

import pytest
from fastapi.testclient import TestClient

from chat_relay.managers.broadcast_core import BroadcastCore, broadcast_core
from chat_relay.managers.connection import Connection
from chat_relay.managers.registry import RoomRegistry


@pytest.fixture
def registry():
    """
    Provides an empty room registry.

    Returns:
        RoomRegistry: Fresh registry instance
    """
    return RoomRegistry()


@pytest.fixture
def core(registry):
    """
    Provides a broadcast core with small queues and a low eviction threshold.

    Args:
        registry: Fixture providing the room registry

    Returns:
        BroadcastCore: Core with queue size 4 and threshold 3
    """
    return BroadcastCore(
        registry=registry, max_queue_size=4, max_consecutive_failures=3
    )


@pytest.fixture
def make_connection():
    """
    Factory for standalone connections.

    Returns:
        Callable creating a Connection with the given id and queue size
    """

    def _make(connection_id: str = "conn-1", max_queue_size: int = 4):
        return Connection(connection_id, max_queue_size)

    return _make


@pytest.fixture
def client():
    """
    Provides a TestClient for the application with lifespan enabled.

    The process-wide broadcast core is shut down afterwards so no
    connection or room leaks into other tests.

    Yields:
        TestClient: Client bound to a fresh application instance
    """
    from chat_relay import application

    with TestClient(application()) as test_client:
        yield test_client

    broadcast_core.shutdown()
