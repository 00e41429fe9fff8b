"""Health check endpoint for monitoring service status."""

from fastapi import APIRouter, status
from pydantic import BaseModel

from chat_relay.managers.broadcast_core import broadcast_core

router = APIRouter()


class HealthResponse(BaseModel):
    """Response model for health check endpoint."""

    status: str
    active_connections: int
    active_rooms: int


@router.get(
    "/health",
    response_model=HealthResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check() -> HealthResponse:
    """
    Report relay status.

    The relay has no external dependencies, so it is healthy whenever it can
    answer. The connection and room counts come straight from the broadcast
    core.

    Returns:
        HealthResponse: Status plus live connection and room counts.
    """
    return HealthResponse(
        status="healthy",
        active_connections=broadcast_core.connection_count(),
        active_rooms=len(broadcast_core.registry),
    )
