"""
Batch preloading of workout visuals.

A workout arrives as a list of exercise names. Every item gets a result
within the batch deadline: cached results are reused, distinct misses are
resolved once each with bounded concurrency, and anything still running at
the deadline is cancelled and replaced by a generated placeholder flagged
timed_out. Results come back in input order.
"""
import asyncio
import logging
import time
from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Iterator, List, Optional, Tuple, TYPE_CHECKING

from backend.core.config import ResolverConfig
from backend.core.exercise_matcher import (
    MatchHints,
    MatchResult,
    MatchTier,
    TieredExerciseMatcher,
    cache_key,
)
from backend.core.normalize import normalize
from backend.core.result_cache import ResultCache

if TYPE_CHECKING:
    from application.ports import AssetValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ExerciseRequest:
    """One upstream item: {name, muscleGroup?, equipment?}."""
    name: Any
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> "ExerciseRequest":
        if isinstance(value, ExerciseRequest):
            return value
        if isinstance(value, dict):
            hints = MatchHints.coerce(value)
            return cls(
                name=value.get("name"),
                muscle_group=hints.muscle_group,
                equipment=hints.equipment,
            )
        return cls(name=value)

    @property
    def hints(self) -> MatchHints:
        return MatchHints(muscle_group=self.muscle_group, equipment=self.equipment)


@dataclass(frozen=True)
class BatchResult:
    """Results aligned positionally with the requested exercises."""
    results: Tuple[MatchResult, ...]
    elapsed_ms: int

    @property
    def generated_count(self) -> int:
        return sum(1 for r in self.results if r.tier is MatchTier.GENERATED)

    @property
    def timed_out_count(self) -> int:
        return sum(1 for r in self.results if r.timed_out)

    @property
    def cache_hits(self) -> int:
        return sum(1 for r in self.results if r.cached)

    def __len__(self) -> int:
        return len(self.results)

    def __iter__(self) -> Iterator[MatchResult]:
        return iter(self.results)

    def __getitem__(self, index: int) -> MatchResult:
        return self.results[index]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "results": [r.to_dict() for r in self.results],
            "elapsed_ms": self.elapsed_ms,
            "generated_count": self.generated_count,
            "timed_out_count": self.timed_out_count,
            "cache_hits": self.cache_hits,
        }


def _elapsed_ms(start: float) -> int:
    return max(0, int(round((time.perf_counter() - start) * 1000)))


class BatchPreloader:
    """
    Resolves exercise names through the result cache and the matcher.

    Args:
        matcher: Tiered matcher bound to the catalog index
        cache: Shared result cache
        index_version: Callable returning the current catalog version
        config: Concurrency and deadline settings
        asset_validator: Optional reachability check for catalog assets
    """

    def __init__(
        self,
        matcher: TieredExerciseMatcher,
        cache: ResultCache,
        index_version,
        config: Optional[ResolverConfig] = None,
        asset_validator: Optional["AssetValidator"] = None,
    ):
        self._matcher = matcher
        self._cache = cache
        self._index_version = index_version
        self._config = config or matcher.config
        self._asset_validator = asset_validator

    def lookup(self, raw_name: Any, hints: MatchHints) -> Tuple[str, Optional[MatchResult]]:
        """
        Cache key for the name and the cached result, if any.

        Empty or invalid names get an empty key and are never cached.
        """
        start = time.perf_counter()
        query = normalize(raw_name)
        if query.is_empty:
            return "", None
        key = cache_key(query, hints)
        cached = self._cache.get(key)
        if cached is None:
            return key, None
        return key, replace(cached, cached=True, timed_out=False, processing_time_ms=_elapsed_ms(start))

    async def resolve_uncached(self, raw_name: Any, hints: MatchHints, key: str) -> MatchResult:
        """Match, optionally confirm the asset, then cache under the starting version."""
        start = time.perf_counter()
        version = self._index_version()
        result = self._matcher.match(raw_name, hints)

        if (
            self._asset_validator is not None
            and self._config.validate_assets
            and result.entry is not None
        ):
            url = result.entry.asset_url
            if not url or not await self._asset_validator.is_reachable(url):
                logger.warning(
                    "Asset for '%s' (%s) is unreachable, using placeholder",
                    result.entry.id, url or "no url",
                )
                result = self._matcher.placeholder_result(
                    raw_name,
                    hints,
                    category=result.category,
                    reasoning=f"Catalog asset for {result.entry.id} unreachable",
                )

        result = replace(result, processing_time_ms=_elapsed_ms(start))
        if key:
            self._cache.put(key, result, catalog_version=version)
        return result

    async def resolve(self, raw_name: Any, hints: Any = None) -> MatchResult:
        """Cache-first async resolution of a single name; never raises."""
        hints = MatchHints.coerce(hints)
        key, cached = self.lookup(raw_name, hints)
        if cached is not None:
            return cached
        try:
            return await self.resolve_uncached(raw_name, hints, key)
        except Exception:
            logger.exception("Resolution failed for %r, using generated placeholder", raw_name)
            return self._matcher.placeholder_result(raw_name, hints, reasoning="Resolution error")

    async def preload(
        self,
        requests: Iterable[Any],
        hints: Any = None,
        started_at: Optional[float] = None,
    ) -> BatchResult:
        """
        Resolve a whole workout within the batch deadline.

        Args:
            requests: Names or ExerciseRequest / {name, muscleGroup, equipment} items
            hints: Batch-wide hints; per-item hints override them field by field
            started_at: perf_counter() reading the batch budget is measured from;
                defaults to now. Time the caller already spent counts against it.

        Returns:
            BatchResult aligned with requests
        """
        start = time.perf_counter() if started_at is None else started_at
        batch_hints = MatchHints.coerce(hints)
        items = [ExerciseRequest.coerce(r) for r in requests]

        slots: List[Optional[MatchResult]] = [None] * len(items)
        positions: Dict[str, List[int]] = {}
        work: Dict[str, Tuple[Any, MatchHints, str]] = {}
        for i, item in enumerate(items):
            item_hints = item.hints.merged_over(batch_hints)
            key, cached = self.lookup(item.name, item_hints)
            if cached is not None:
                slots[i] = cached
                continue
            # uncacheable names are resolved one by one
            group = key or f"#{i}"
            positions.setdefault(group, []).append(i)
            work.setdefault(group, (item.name, item_hints, key))

        if work:
            remaining = self._config.batch_timeout_seconds - (time.perf_counter() - start)
            resolved = await self._resolve_all(work, max(0.0, remaining))
            for group, result in resolved.items():
                for i in positions[group]:
                    slots[i] = result

        batch = BatchResult(
            results=tuple(r for r in slots if r is not None),
            elapsed_ms=_elapsed_ms(start),
        )
        logger.info(
            "Preloaded %d exercises in %dms (%d cached, %d generated, %d timed out)",
            len(batch), batch.elapsed_ms, batch.cache_hits,
            batch.generated_count, batch.timed_out_count,
        )
        return batch

    def timed_out_batch(
        self,
        requests: Iterable[Any],
        hints: Any = None,
        started_at: Optional[float] = None,
        reasoning: str = "Catalog not loaded before deadline",
    ) -> BatchResult:
        """Placeholder for every item, used when the deadline passes before matching starts."""
        start = time.perf_counter() if started_at is None else started_at
        batch_hints = MatchHints.coerce(hints)
        results = []
        for request in requests:
            item = ExerciseRequest.coerce(request)
            results.append(self._matcher.placeholder_result(
                item.name,
                item.hints.merged_over(batch_hints),
                reasoning=reasoning,
                timed_out=True,
            ))
        batch = BatchResult(results=tuple(results), elapsed_ms=_elapsed_ms(start))
        logger.warning(
            "Batch of %d exercises timed out after %dms before matching started",
            len(batch), batch.elapsed_ms,
        )
        return batch

    async def _resolve_all(
        self,
        work: Dict[str, Tuple[Any, MatchHints, str]],
        timeout: float,
    ) -> Dict[str, MatchResult]:
        semaphore = asyncio.Semaphore(self._config.max_concurrency)
        tasks = {
            asyncio.ensure_future(self._bounded(semaphore, name, hints, key)): group
            for group, (name, hints, key) in work.items()
        }

        done, not_done = await asyncio.wait(
            set(tasks), timeout=timeout
        )
        for task in not_done:
            task.cancel()
        if not_done:
            logger.warning(
                "Batch deadline of %.2fs reached, %d exercises get placeholders",
                self._config.batch_timeout_seconds, len(not_done),
            )
            await asyncio.gather(*not_done, return_exceptions=True)

        resolved: Dict[str, MatchResult] = {}
        for task, group in tasks.items():
            name, hints, _ = work[group]
            if task in done and not task.cancelled() and task.exception() is None:
                resolved[group] = task.result()
            elif task in done and not task.cancelled():
                logger.error("Resolution of %r failed: %s", name, task.exception())
                resolved[group] = self._matcher.placeholder_result(
                    name, hints, reasoning="Resolution error"
                )
            else:
                resolved[group] = self._matcher.placeholder_result(
                    name, hints, reasoning="Batch deadline exceeded", timed_out=True
                )
        return resolved

    async def _bounded(
        self,
        semaphore: asyncio.Semaphore,
        raw_name: Any,
        hints: MatchHints,
        key: str,
    ) -> MatchResult:
        async with semaphore:
            try:
                return await asyncio.wait_for(
                    self.resolve_uncached(raw_name, hints, key),
                    timeout=self._config.item_timeout_seconds,
                )
            except asyncio.TimeoutError:
                logger.warning(
                    "Resolution of %r exceeded %.2fs, using placeholder",
                    raw_name, self._config.item_timeout_seconds,
                )
                return self._matcher.placeholder_result(
                    raw_name, hints, reasoning="Item deadline exceeded", timed_out=True
                )
            except Exception:
                logger.exception("Resolution failed for %r, using generated placeholder", raw_name)
                return self._matcher.placeholder_result(
                    raw_name, hints, reasoning="Resolution error"
                )
