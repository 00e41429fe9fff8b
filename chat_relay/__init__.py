# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI

from chat_relay.logging import logger
from chat_relay.managers.broadcast_core import broadcast_core
from chat_relay.routing import collect_subrouters
from chat_relay.settings import app_settings
from chat_relay.utils.metrics import app_info

__version__ = "1.0.0"


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    FastAPI lifespan context manager for startup and shutdown.

    Startup initializes the app_info metric. Shutdown closes every live
    relay connection, which ends their writer tasks, and empties the room
    registry.
    """
    logger.info("Application startup: initializing resources")

    app_info.labels(
        version=__version__,
        python_version=f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        environment=app_settings.ENVIRONMENT,
    ).set(1)
    logger.info("Initialized Prometheus metrics")

    yield  # Application runs here

    logger.info("Application shutdown: cleaning up resources")
    broadcast_core.shutdown()
    logger.info("Application shutdown complete")


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    Includes the routers found by `collect_subrouters()`:
    - HTTP: `/health`, `/metrics`
    - WebSocket: `/chat`, `/chat/{room_id}`
    """
    app = FastAPI(
        title="Chat relay",
        description="Multi-room real-time chat relay over WebSocket",
        version=__version__,
        lifespan=lifespan,
    )

    app.include_router(collect_subrouters())

    return app


app = application()  # Need for fastapi cli
