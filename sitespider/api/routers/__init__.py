"""API router factory functions."""
from .configs import create_configs_router
from .spiders import create_spiders_router
from .systems import create_systems_router

__all__ = [
    "create_configs_router",
    "create_spiders_router",
    "create_systems_router",
]
