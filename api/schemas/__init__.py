"""
Pydantic schemas for API requests and responses.

Organized by feature/domain:
- resolution: exercise content resolution, preloading and catalog models
"""

from api.schemas.resolution import (
    BatchResolveRequest,
    BatchResolveResponse,
    CatalogEntriesResponse,
    CatalogEntryResponse,
    ExerciseItem,
    MetricsResponse,
    PlaceholderResponse,
    PreloadPlanRequest,
    RebuildResponse,
    ResolveRequest,
    ResolveResponse,
    SuggestionResponse,
    SuggestResponse,
    TagListResponse,
    WorkoutDay,
)

__all__ = [
    "BatchResolveRequest",
    "BatchResolveResponse",
    "CatalogEntriesResponse",
    "CatalogEntryResponse",
    "ExerciseItem",
    "MetricsResponse",
    "PlaceholderResponse",
    "PreloadPlanRequest",
    "RebuildResponse",
    "ResolveRequest",
    "ResolveResponse",
    "SuggestionResponse",
    "SuggestResponse",
    "TagListResponse",
    "WorkoutDay",
]
