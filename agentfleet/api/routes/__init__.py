"""API routers."""

from .control import create_control_router
from .messaging import create_messaging_router
from .observability import create_observability_router

__all__ = [
    "create_control_router",
    "create_messaging_router",
    "create_observability_router",
]
