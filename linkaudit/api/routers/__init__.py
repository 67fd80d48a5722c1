"""API router factory functions."""
from .checks import create_checks_router
from .cron import create_cron_router
from .systems import create_systems_router

__all__ = [
    "create_checks_router",
    "create_cron_router",
    "create_systems_router",
]
