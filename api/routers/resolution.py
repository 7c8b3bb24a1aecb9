"""
Exercise content resolution router.

This router provides endpoints for:
- Resolving a single exercise name to a visual asset
- Preloading a workout or a multi-day plan within the batch deadline
- Ranked suggestions for a name
- Resolution telemetry
"""
import logging

from fastapi import APIRouter, Depends, Query

from api.deps import get_resolver
from api.schemas.resolution import (
    BatchResolveRequest,
    BatchResolveResponse,
    MetricsResponse,
    PreloadPlanRequest,
    ResolveRequest,
    ResolveResponse,
    SuggestionResponse,
    SuggestResponse,
)
from backend.core.resolver import ExerciseContentResolver

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Resolution"],
)


# =============================================================================
# Resolution Endpoints
# =============================================================================


@router.post("/exercises/resolve", response_model=ResolveResponse)
async def resolve_exercise(
    request: ResolveRequest,
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> ResolveResponse:
    """
    Resolve an exercise name to a visual asset and instructions.

    Tiers are tried in order: exact, fuzzy, semantic (needs a hint),
    classification, generated. Always returns a result; unknown names get a
    generated placeholder.
    """
    result = await resolver.resolve(request.name, request.hints())
    return ResolveResponse.from_result(result)


@router.post("/exercises/resolve/batch", response_model=BatchResolveResponse)
async def preload_workout(
    request: BatchResolveRequest,
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> BatchResolveResponse:
    """
    Resolve every exercise of a workout.

    Returns results in the same order as the input. Items not resolved
    before the batch deadline come back as generated placeholders with
    timed_out set.
    """
    batch = await resolver.preload_workout(
        [item.to_request() for item in request.exercises],
        hints=request.hints(),
    )
    return BatchResolveResponse.from_batch(batch)


@router.post("/workouts/preload-plan", response_model=BatchResolveResponse)
async def preload_workout_plan(
    request: PreloadPlanRequest,
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> BatchResolveResponse:
    """Resolve every distinct exercise across a multi-day plan in one batch."""
    workouts = [[item.to_request() for item in day.exercises] for day in request.workouts]
    batch = await resolver.preload_workout_plan(workouts)
    return BatchResolveResponse.from_batch(batch)


@router.get("/exercises/suggest", response_model=SuggestResponse)
def suggest_exercises(
    name: str = Query(..., min_length=1, description="Exercise name to find candidates for"),
    limit: int = Query(5, ge=1, le=20, description="Maximum suggestions"),
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> SuggestResponse:
    """Ranked catalog candidates for a name, best first."""
    suggestions = resolver.suggest(name, limit=limit)
    return SuggestResponse(
        query=name,
        suggestions=[SuggestionResponse.from_result(s) for s in suggestions],
    )


# =============================================================================
# Telemetry
# =============================================================================


@router.get("/resolution/metrics", response_model=MetricsResponse)
def resolution_metrics(
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> MetricsResponse:
    """Tier usage, coverage rate, average response time and cache statistics."""
    return MetricsResponse(
        metrics=resolver.metrics_snapshot(),
        cache=resolver.cache_stats(),
    )
