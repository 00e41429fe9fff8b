import os
import pkgutil
from importlib import import_module

from fastapi import APIRouter

from chat_relay.logging import logger

# Modules already announced, so repeated application() calls log once
_announced: set[str] = set()

# (directory relative to the package, log label)
_ROUTER_PACKAGES = (
    ("api/http", "api"),
    ("api/ws/consumers", "websocket consumer"),
)


def _include_package_routers(main_router: APIRouter, rel_dir: str, label: str):
    app_dir = os.path.dirname(__file__)
    package = f"{os.path.basename(app_dir)}.{rel_dir.replace('/', '.')}"

    for _, module, _ in pkgutil.iter_modules([os.path.join(app_dir, rel_dir)]):
        main_router.include_router(import_module(f".{module}", package).router)

        qualified = f"{package}.{module}"
        if qualified not in _announced:
            logger.info(f'Register "{module}" {label}')
            _announced.add(qualified)


def collect_subrouters() -> APIRouter:
    """
    Collects the HTTP and WebSocket routers of the application.

    Every module in `api/http` and `api/ws/consumers` is imported and its
    module-level `router` is included in the returned APIRouter.
    """
    main_router: APIRouter = APIRouter()

    for rel_dir, label in _ROUTER_PACKAGES:
        _include_package_routers(main_router, rel_dir, label)

    return main_router
