"""
Exercise content resolver.

Single entry point for the rest of the application: resolve one name,
preload a workout or a whole multi-day plan, rebuild the catalog, and read
telemetry. Nothing raised inside the core reaches callers; every request
gets a MatchResult.
"""
import asyncio
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, TYPE_CHECKING

from backend.core.catalog import CatalogIndex
from backend.core.config import ResolverConfig
from backend.core.exercise_matcher import MatchHints, MatchResult, TieredExerciseMatcher
from backend.core.metrics import ResolutionMetrics
from backend.core.normalize import normalize
from backend.core.preloader import BatchPreloader, BatchResult, ExerciseRequest
from backend.core.result_cache import ResultCache

if TYPE_CHECKING:
    from application.ports import AssetValidator, CatalogSource

logger = logging.getLogger(__name__)


class ExerciseContentResolver:
    """
    Facade over the catalog index, tiered matcher, result cache and preloader.

    The result cache is invalidated after every catalog publish, so results
    never outlive the catalog version they were resolved against.
    """

    def __init__(
        self,
        source: Optional["CatalogSource"] = None,
        config: Optional[ResolverConfig] = None,
        asset_validator: Optional["AssetValidator"] = None,
        index: Optional[CatalogIndex] = None,
    ):
        """
        Args:
            source: Catalog source, loaded lazily on first use
            config: Thresholds, cache sizing and batch deadlines
            asset_validator: Optional reachability check used by async resolution
            index: Pre-built index (tests); created from source when omitted
        """
        self.config = config if config is not None else ResolverConfig()
        # an empty CatalogIndex is falsy, so test against None
        self.index = index if index is not None else CatalogIndex(source=source)
        self.asset_validator = asset_validator
        self.cache = ResultCache(
            max_size=self.config.cache_max_size,
            ttl_seconds=self.config.cache_ttl_seconds,
        )
        self.metrics = ResolutionMetrics()
        self.matcher = TieredExerciseMatcher(self.index, self.config)
        self.preloader = BatchPreloader(
            self.matcher,
            self.cache,
            index_version=lambda: self.index.version,
            config=self.config,
            asset_validator=asset_validator,
        )
        self.index.add_rebuild_listener(self.cache.invalidate_all)

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def resolve_one(self, name: Any, hints: Any = None) -> MatchResult:
        """
        Cache-first synchronous resolution, for readers that cannot await.

        Asset validation is skipped on this path.
        """
        hints = MatchHints.coerce(hints)
        try:
            self.index.ensure_loaded_sync()
            key, cached = self.preloader.lookup(name, hints)
            if cached is not None:
                result = cached
            else:
                version = self.index.version
                result = self.matcher.match(name, hints)
                if key:
                    self.cache.put(key, result, catalog_version=version)
        except Exception:
            logger.exception("resolve_one failed for %r, using generated placeholder", name)
            result = self.matcher.placeholder_result(name, hints, reasoning="Resolution error")
        self.metrics.record(result)
        return result

    async def resolve(self, name: Any, hints: Any = None) -> MatchResult:
        """
        Async resolution; loads the catalog lazily and validates assets if enabled.

        The lazy load is bounded by the per-item deadline. If it has not
        finished by then, a timed-out placeholder is returned and the load
        carries on in the background.
        """
        if await self._wait_for_catalog(self.config.item_timeout_seconds):
            result = await self.preloader.resolve(name, hints)
        else:
            result = self.matcher.placeholder_result(
                name, hints, reasoning="Catalog not loaded before deadline", timed_out=True
            )
        self.metrics.record(result)
        return result

    async def preload_workout(self, exercises: Iterable[Any], hints: Any = None) -> BatchResult:
        """
        Resolve every exercise of a workout within the batch deadline.

        Args:
            exercises: Names or {name, muscleGroup, equipment} items
            hints: Batch-wide hints applied where an item has none

        Returns:
            BatchResult aligned with exercises
        """
        started_at = time.perf_counter()
        exercises = list(exercises)
        if await self._wait_for_catalog(self.config.batch_timeout_seconds):
            batch = await self.preloader.preload(exercises, hints, started_at=started_at)
        else:
            batch = self.preloader.timed_out_batch(exercises, hints, started_at=started_at)
        self.metrics.record_batch(batch)
        return batch

    async def preload_workout_plan(self, workouts: Iterable[Any]) -> BatchResult:
        """
        Preload every distinct exercise of a multi-day plan in one batch.

        Each workout is either a list of exercises or a mapping with an
        "exercises" list. Exercises are de-duplicated by normalized name,
        first occurrence wins.
        """
        unique: List[ExerciseRequest] = []
        seen = set()
        for workout in workouts:
            exercises = workout.get("exercises", []) if isinstance(workout, dict) else workout
            for item in exercises or []:
                request = ExerciseRequest.coerce(item)
                name_key = normalize(request.name).text
                if name_key and name_key in seen:
                    continue
                seen.add(name_key)
                unique.append(request)
        logger.info("Preloading workout plan: %d distinct exercises", len(unique))
        return await self.preload_workout(unique)

    async def _wait_for_catalog(self, timeout: float) -> bool:
        """Wait up to timeout for the lazy catalog load; False if it is still running."""
        if self.index.is_loaded:
            return True
        try:
            await asyncio.wait_for(asyncio.shield(self.index.ensure_loaded()), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning("Catalog still loading after %.2fs, answering with placeholders", timeout)
            return False
        return True

    def suggest(self, name: Any, limit: int = 5) -> List[MatchResult]:
        self.index.ensure_loaded_sync()
        return self.matcher.suggest(name, limit=limit)

    # ------------------------------------------------------------------
    # Catalog and telemetry
    # ------------------------------------------------------------------

    async def rebuild_catalog(self, source: Optional["CatalogSource"] = None) -> int:
        """Reload the catalog and publish it; returns the new catalog version."""
        return await self.index.rebuild(source)

    def metrics_snapshot(self) -> Dict[str, Any]:
        snapshot = self.metrics.snapshot()
        snapshot["catalog_version"] = self.index.version
        snapshot["catalog_size"] = len(self.index)
        return snapshot

    def cache_stats(self) -> Dict[str, Any]:
        return self.cache.stats()

    def clear_cache(self) -> None:
        self.cache.clear()

    async def aclose(self) -> None:
        """Release the asset validator's connections, if it holds any."""
        close = getattr(self.asset_validator, "aclose", None)
        if close is not None:
            await close()
