"""Tests for the health check and metrics endpoints."""

from unittest.mock import patch

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from chat_relay.managers.broadcast_core import BroadcastCore


@pytest.fixture
def relay_core():
    """
    Provides a fresh broadcast core patched into the health endpoint.

    Yields:
        BroadcastCore: Core the endpoint reports on
    """
    core = BroadcastCore(max_queue_size=4)
    with patch("chat_relay.api.http.health.broadcast_core", core):
        yield core


@pytest.fixture
def http_client():
    """
    Create a minimal FastAPI app with only the HTTP routers.

    Returns:
        TestClient: FastAPI test client instance.
    """
    from chat_relay.api.http.health import router as health_router
    from chat_relay.api.http.metrics import router as metrics_router

    test_app = FastAPI()
    test_app.include_router(health_router)
    test_app.include_router(metrics_router)
    return TestClient(test_app)


def test_health_endpoint_idle(http_client, relay_core):
    """
    Test health endpoint with no connections.

    Args:
        http_client: FastAPI test client fixture.
        relay_core: Broadcast core fixture.
    """
    response = http_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "healthy",
        "active_connections": 0,
        "active_rooms": 0,
    }


def test_health_endpoint_counts(http_client, relay_core):
    """
    Test health endpoint reports live connections and rooms.

    Args:
        http_client: FastAPI test client fixture.
        relay_core: Broadcast core fixture.
    """
    relay_core.on_connection_established("a", "lobby")
    relay_core.on_connection_established("b", "lobby")
    relay_core.on_connection_established("c", "support")

    data = http_client.get("/health").json()

    assert data["active_connections"] == 3
    assert data["active_rooms"] == 2


def test_metrics_endpoint(http_client, relay_core):
    """
    Test metrics endpoint serves the Prometheus exposition format.

    Args:
        http_client: FastAPI test client fixture.
        relay_core: Broadcast core fixture.
    """
    relay_core.on_connection_established("a", "lobby")
    relay_core.on_connection_established("b", "lobby")
    relay_core.on_text_message("a", "hi")

    response = http_client.get("/metrics")

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    body = response.text
    assert "ws_connections_active" in body
    assert "ws_rooms_active" in body
    assert 'ws_broadcast_deliveries_total{outcome="enqueued"}' in body
    assert "ws_broadcast_fanout_bucket" in body


def test_application_routes(client):
    """
    Test the full application exposes HTTP and WebSocket routes.

    Args:
        client: Fixture providing the application TestClient
    """
    assert client.get("/health").json()["status"] == "healthy"
    assert client.get("/metrics").status_code == 200

    with client.websocket_connect("/chat") as default_room:
        with client.websocket_connect("/chat/default") as named_room:
            default_room.send_text("ping")
            assert named_room.receive_text() == "ping"
