"""
Resolution telemetry.

Counts results per tier and keeps a running average of processing time.
Coverage is the share of requests resolved to a real catalog visual by the
exact, fuzzy or semantic tiers.
"""
import threading
from typing import Any, Dict, TYPE_CHECKING

from backend.core.exercise_matcher import MatchResult, MatchTier

if TYPE_CHECKING:
    from backend.core.preloader import BatchResult

COVERED_TIERS = (MatchTier.EXACT, MatchTier.FUZZY, MatchTier.SEMANTIC)


class ResolutionMetrics:
    def __init__(self):
        self._lock = threading.Lock()
        self.reset()

    def reset(self) -> None:
        with self._lock:
            self._total = 0
            self._tier_usage = {tier: 0 for tier in MatchTier}
            self._cache_hits = 0
            self._timed_out = 0
            self._total_ms = 0
            self._batches = 0
            self._last_batch_elapsed_ms = 0

    def record(self, result: MatchResult) -> None:
        with self._lock:
            self._total += 1
            self._tier_usage[result.tier] += 1
            self._total_ms += result.processing_time_ms
            if result.cached:
                self._cache_hits += 1
            if result.timed_out:
                self._timed_out += 1

    def record_batch(self, batch: "BatchResult") -> None:
        """Record every item of a batch plus the batch wall-clock time."""
        for result in batch.results:
            self.record(result)
        with self._lock:
            self._batches += 1
            self._last_batch_elapsed_ms = batch.elapsed_ms

    @property
    def total_requests(self) -> int:
        return self._total

    @property
    def coverage_rate(self) -> float:
        with self._lock:
            return self._coverage_rate()

    def _coverage_rate(self) -> float:
        if not self._total:
            return 0.0
        covered = sum(self._tier_usage[t] for t in COVERED_TIERS)
        return round(covered / self._total * 100, 2)

    def snapshot(self) -> Dict[str, Any]:
        with self._lock:
            return {
                "total_requests": self._total,
                "tier_usage": {tier.value: n for tier, n in self._tier_usage.items()},
                "cache_hits": self._cache_hits,
                "timed_out": self._timed_out,
                "batches": self._batches,
                "average_response_ms": (
                    round(self._total_ms / self._total, 2) if self._total else 0.0
                ),
                "coverage_rate": self._coverage_rate(),
                "last_batch_elapsed_ms": self._last_batch_elapsed_ms,
            }
