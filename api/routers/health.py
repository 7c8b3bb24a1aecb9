"""
Health check router.

This router provides health check endpoints for monitoring and load balancers.
"""

from fastapi import APIRouter, Depends

from api.deps import get_resolver
from backend.core.resolver import ExerciseContentResolver

router = APIRouter(
    tags=["Health"],
)


@router.get("/health")
def health(resolver: ExerciseContentResolver = Depends(get_resolver)):
    """
    Simple liveness endpoint.

    Also reports whether the exercise catalog has been loaded yet.

    Returns:
        dict: Status indicator for health checks
    """
    return {
        "status": "ok",
        "catalog_loaded": resolver.index.is_loaded,
        "catalog_version": resolver.index.version,
        "catalog_entries": len(resolver.index),
    }
