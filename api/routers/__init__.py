"""
Router package for the exercise content resolver API.

This package contains all API routers organized by domain:
- health: Health check endpoint
- resolution: Exercise resolution, workout preloading, suggestions, metrics
- catalog: Catalog listing and rebuild
"""

from api.routers.health import router as health_router
from api.routers.resolution import router as resolution_router
from api.routers.catalog import router as catalog_router

__all__ = [
    "health_router",
    "resolution_router",
    "catalog_router",
]
