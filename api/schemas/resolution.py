"""
Request/response models for exercise content resolution.

Incoming exercise items accept the upstream generator's camelCase keys
(muscleGroup) as well as snake_case.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field

from backend.core.catalog import CatalogEntry
from backend.core.exercise_matcher import MatchHints, MatchResult
from backend.core.preloader import BatchResult, ExerciseRequest


# =============================================================================
# Requests
# =============================================================================


class ExerciseItem(BaseModel):
    """One exercise as produced by the workout generator."""
    model_config = ConfigDict(populate_by_name=True)

    name: str = Field(..., description="Free-text exercise name")
    muscle_group: Optional[str] = Field(None, alias="muscleGroup", description="Target muscle group hint")
    equipment: Optional[str] = Field(None, description="Equipment hint")

    def to_request(self) -> ExerciseRequest:
        return ExerciseRequest(name=self.name, muscle_group=self.muscle_group, equipment=self.equipment)


class ResolveRequest(ExerciseItem):
    """Resolve a single exercise name."""

    def hints(self) -> MatchHints:
        return MatchHints(muscle_group=self.muscle_group, equipment=self.equipment)


class BatchResolveRequest(BaseModel):
    """Preload every exercise of a workout."""
    model_config = ConfigDict(populate_by_name=True)

    exercises: List[ExerciseItem] = Field(..., min_length=1, max_length=200)
    muscle_group: Optional[str] = Field(None, alias="muscleGroup", description="Batch-wide muscle group hint")
    equipment: Optional[str] = Field(None, description="Batch-wide equipment hint")

    def hints(self) -> MatchHints:
        return MatchHints(muscle_group=self.muscle_group, equipment=self.equipment)


class WorkoutDay(BaseModel):
    name: Optional[str] = None
    exercises: List[ExerciseItem] = Field(default_factory=list)


class PreloadPlanRequest(BaseModel):
    """Preload a multi-day workout plan."""
    workouts: List[WorkoutDay] = Field(..., min_length=1, max_length=31)


# =============================================================================
# Responses
# =============================================================================


class PlaceholderResponse(BaseModel):
    name: str
    description: str
    instructions: List[str]
    target_muscles: List[str]
    equipment: List[str]
    safety_tips: List[str]
    asset_url: str
    category: Optional[str] = None


class ResolveResponse(BaseModel):
    """Resolved visual for one exercise."""
    query: str = Field(..., description="Name as requested")
    tier: str = Field(..., description="exact, fuzzy, semantic, classification or generated")
    confidence: float = Field(..., description="Match confidence (0.0 to 1.0)")
    processing_time_ms: int = Field(..., description="Time spent resolving this item")
    name: str = Field(..., description="Display name of the matched exercise or placeholder")
    asset_url: str
    instructions: List[str] = Field(default_factory=list)
    entry_id: Optional[str] = None
    category: Optional[str] = None
    reasoning: Optional[str] = None
    cached: bool = False
    timed_out: bool = False
    placeholder: Optional[PlaceholderResponse] = None

    @classmethod
    def from_result(cls, result: MatchResult) -> "ResolveResponse":
        return cls(**result.to_dict())


class BatchResolveResponse(BaseModel):
    """Results in the same order as the requested exercises."""
    results: List[ResolveResponse]
    elapsed_ms: int
    generated_count: int
    timed_out_count: int
    cache_hits: int

    @classmethod
    def from_batch(cls, batch: BatchResult) -> "BatchResolveResponse":
        return cls(
            results=[ResolveResponse.from_result(r) for r in batch],
            elapsed_ms=batch.elapsed_ms,
            generated_count=batch.generated_count,
            timed_out_count=batch.timed_out_count,
            cache_hits=batch.cache_hits,
        )


class SuggestionResponse(BaseModel):
    entry_id: str
    name: str
    confidence: float
    asset_url: str

    @classmethod
    def from_result(cls, result: MatchResult) -> "SuggestionResponse":
        return cls(
            entry_id=result.entry.id,
            name=result.entry.name,
            confidence=round(result.confidence, 4),
            asset_url=result.asset_url,
        )


class SuggestResponse(BaseModel):
    query: str
    suggestions: List[SuggestionResponse]


class MetricsResponse(BaseModel):
    metrics: Dict[str, Any]
    cache: Dict[str, Any]


class CatalogEntryResponse(BaseModel):
    id: str
    name: str
    aliases: List[str] = Field(default_factory=list)
    muscle_groups: List[str] = Field(default_factory=list)
    equipment: List[str] = Field(default_factory=list)
    asset_url: str = ""
    instructions: List[str] = Field(default_factory=list)
    movement_pattern: Optional[str] = None

    @classmethod
    def from_entry(cls, entry: CatalogEntry) -> "CatalogEntryResponse":
        return cls(**entry.to_dict())


class CatalogEntriesResponse(BaseModel):
    entries: List[CatalogEntryResponse]
    count: int
    version: int


class TagListResponse(BaseModel):
    """Normalized tags present in the loaded catalog."""
    tags: List[str]
    count: int
    version: int


class RebuildResponse(BaseModel):
    version: int
    entries: int
    source: str
