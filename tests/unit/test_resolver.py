"""
Unit tests for ExerciseContentResolver.

Covers the end-to-end scenarios callers depend on: lazy catalog loading,
cache reuse, invalidation on rebuild and never raising.
"""
import time

import pytest

from backend.core.catalog import CatalogIndex
from backend.core.config import ResolverConfig
from backend.core.exercise_matcher import MatchTier
from backend.core.resolver import ExerciseContentResolver
from tests.fakes import FailingCatalogSource, FakeAssetValidator, FakeCatalogSource


@pytest.mark.unit
class TestResolveOne:
    """Tests for synchronous cache-first resolution."""

    def test_catalog_is_loaded_lazily(self, fake_source: FakeCatalogSource):
        """Test the source is read on first use only."""
        resolver = ExerciseContentResolver(source=fake_source)
        assert fake_source.load_calls == 0

        result = resolver.resolve_one("Squat")

        assert fake_source.load_calls == 1
        assert result.tier == MatchTier.EXACT
        assert result.confidence == 1.0

    def test_second_call_is_cached(self, resolver: ExerciseContentResolver):
        """Test a repeated name is served from the cache."""
        first = resolver.resolve_one("Barbel Back Squat")
        second = resolver.resolve_one("Barbel Back Squat")

        assert first.tier == MatchTier.FUZZY
        assert not first.cached
        assert second.cached
        assert second.confidence == first.confidence

    @pytest.mark.parametrize(
        "name,hints,tier",
        [
            ("Squat", None, MatchTier.EXACT),
            ("Barbel Back Squat", None, MatchTier.FUZZY),
            ("Cossack Squat", {"muscleGroup": "legs"}, MatchTier.SEMANTIC),
            ("Incline Dumbbell Fly", None, MatchTier.CLASSIFICATION),
            ("asdkjasdkj", None, MatchTier.GENERATED),
        ],
    )
    def test_each_tier(self, resolver: ExerciseContentResolver, name, hints, tier):
        """Test each tier is reachable through the resolver."""
        assert resolver.resolve_one(name, hints).tier == tier

    def test_never_raises(self, resolver: ExerciseContentResolver, monkeypatch):
        """Test an index failure becomes a generated placeholder."""
        def explode(*args, **kwargs):
            raise RuntimeError("index broken")

        monkeypatch.setattr(resolver.index, "ensure_loaded_sync", explode)
        result = resolver.resolve_one("Squat")

        assert result.tier == MatchTier.GENERATED
        assert result.reasoning == "Resolution error"

    def test_unavailable_catalog_generates(self):
        """Test a failing source degrades to generated results."""
        resolver = ExerciseContentResolver(source=FailingCatalogSource())
        result = resolver.resolve_one("Goblet Squat")

        assert result.tier == MatchTier.GENERATED
        assert result.category == "squat"
        assert result.asset_url == "asset://placeholders/squat"

    def test_injected_unloaded_index_is_used(self, fake_source: FakeCatalogSource):
        """Test an empty, not yet loaded index passed in is kept and loaded lazily."""
        index = CatalogIndex(source=fake_source)
        resolver = ExerciseContentResolver(index=index)

        result = resolver.resolve_one("Squat")

        assert resolver.index is index
        assert fake_source.load_calls == 1
        assert result.tier == MatchTier.EXACT
        assert result.entry.id == "barbell-back-squat"

    def test_injected_index_receives_cache_invalidation(self, fake_source: FakeCatalogSource):
        """Test rebuilding the injected index clears the resolver cache."""
        index = CatalogIndex(source=fake_source)
        resolver = ExerciseContentResolver(index=index)
        resolver.resolve_one("Squat")
        assert len(resolver.cache) == 1

        index.rebuild_sync()

        assert len(resolver.cache) == 0


@pytest.mark.unit
class TestCatalogRebuild:
    """Tests for catalog rebuilds through the resolver."""

    @pytest.mark.asyncio
    async def test_rebuild_invalidates_cached_results(
        self, resolver: ExerciseContentResolver, fake_source: FakeCatalogSource
    ):
        """Test results cached before a rebuild are dropped."""
        assert resolver.resolve_one("Plank").tier == MatchTier.EXACT
        assert len(resolver.cache) == 1

        fake_source.remove("plank")
        version = await resolver.rebuild_catalog()

        assert version == 2
        assert len(resolver.cache) == 0
        after = resolver.resolve_one("Plank")
        assert after.tier != MatchTier.EXACT
        assert not after.cached

    @pytest.mark.asyncio
    async def test_rebuild_with_new_source(self, resolver: ExerciseContentResolver):
        """Test rebuilding from another source replaces the catalog."""
        resolver.resolve_one("Squat")
        source = FakeCatalogSource(
            rows=[{"id": "farmer-carry", "name": "Farmer's Carry", "gif_url": "https://cdn.test/fc.gif"}]
        )

        await resolver.rebuild_catalog(source)

        assert resolver.resolve_one("Farmers Carry").entry.id == "farmer-carry"
        assert resolver.resolve_one("Squat").tier == MatchTier.GENERATED


@pytest.mark.unit
class TestAsyncResolution:
    """Tests for async resolution and workout preloading."""

    @pytest.mark.asyncio
    async def test_resolve(self, resolver: ExerciseContentResolver):
        """Test async resolution of a plural name."""
        result = await resolver.resolve("Push-Ups")
        assert result.entry.id == "push-up"

    @pytest.mark.asyncio
    async def test_resolve_validates_assets(self, fake_source: FakeCatalogSource):
        """Test an unreachable asset yields a placeholder."""
        validator = FakeAssetValidator(unreachable={"https://cdn.test/plank.gif"})
        resolver = ExerciseContentResolver(
            source=fake_source,
            config=ResolverConfig(validate_assets=True),
            asset_validator=validator,
        )

        result = await resolver.resolve("Plank")

        assert result.tier == MatchTier.GENERATED
        assert result.category == "core"

    @pytest.mark.asyncio
    async def test_preload_workout(self, resolver: ExerciseContentResolver):
        """Test a workout is resolved in order with batch hints."""
        batch = await resolver.preload_workout(
            [{"name": "Squat"}, {"name": "Walking Lunges"}, "Zorblax"],
            hints={"equipment": "bodyweight"},
        )

        assert [r.tier for r in batch] == [MatchTier.EXACT, MatchTier.EXACT, MatchTier.GENERATED]
        assert batch[2].placeholder.equipment == ("bodyweight",)
        assert resolver.metrics.snapshot()["batches"] == 1

    @pytest.mark.asyncio
    async def test_preload_workout_plan_dedupes(self, resolver: ExerciseContentResolver):
        """Test a plan is flattened and de-duplicated."""
        plan = [
            {"name": "Day 1", "exercises": [{"name": "Squat"}, {"name": "Push-Up"}]},
            [{"name": "squats"}, "Plank"],
            {"name": "Rest day"},
        ]

        batch = await resolver.preload_workout_plan(plan)

        assert len(batch) == 3
        assert [r.query for r in batch] == ["Squat", "Push-Up", "Plank"]

    @pytest.mark.asyncio
    async def test_batch_timeout_scenario(self, fake_source: FakeCatalogSource):
        """Test a slow asset check times out without caching."""
        squat_gif = "https://cdn.test/barbell-back-squat.gif"
        resolver = ExerciseContentResolver(
            source=fake_source,
            config=ResolverConfig(validate_assets=True, batch_timeout_seconds=0.2),
            asset_validator=FakeAssetValidator(delays={squat_gif: 0.5}),
        )

        batch = await resolver.preload_workout(["Squat", "Plank"])

        assert batch[0].timed_out
        assert batch[1].tier == MatchTier.EXACT
        assert "squat:|" not in resolver.cache
        assert resolver.metrics.snapshot()["timed_out"] == 1


@pytest.mark.unit
class TestTelemetry:
    """Tests for metrics, cache stats and suggestions."""

    def test_metrics_snapshot(self, resolver: ExerciseContentResolver):
        """Test the snapshot includes catalog version and size."""
        resolver.resolve_one("Squat")
        resolver.resolve_one("Squat")
        resolver.resolve_one("asdkjasdkj")

        snapshot = resolver.metrics_snapshot()

        assert snapshot["total_requests"] == 3
        assert snapshot["cache_hits"] == 1
        assert snapshot["coverage_rate"] == pytest.approx(66.67)
        assert snapshot["catalog_version"] == 1
        assert snapshot["catalog_size"] == 8

    def test_clear_cache(self, resolver: ExerciseContentResolver):
        """Test clearing the cache empties it."""
        resolver.resolve_one("Squat")
        resolver.clear_cache()
        assert resolver.cache_stats()["size"] == 0

    def test_suggest_loads_catalog(self, resolver: ExerciseContentResolver):
        """Test suggestions load the catalog lazily."""
        suggestions = resolver.suggest("pushup", limit=2)
        assert suggestions
        assert suggestions[0].entry.id == "push-up"


@pytest.mark.unit
class TestCatalogLoadDeadline:
    """Tests for a catalog load slower than the request deadlines."""

    @pytest.mark.asyncio
    async def test_slow_load_counts_against_batch_deadline(self):
        """Test a workout returns at the batch deadline while the catalog loads."""
        source = FakeCatalogSource(delay=0.5)
        resolver = ExerciseContentResolver(
            source=source, config=ResolverConfig(batch_timeout_seconds=0.2)
        )

        started = time.perf_counter()
        batch = await resolver.preload_workout(["Squat", "Plank"])
        waited = time.perf_counter() - started

        assert waited < 0.45
        assert all(r.timed_out for r in batch)
        assert [r.category for r in batch] == ["squat", "core"]
        assert batch.elapsed_ms >= 150
        assert len(resolver.cache) == 0
        assert resolver.metrics.snapshot()["timed_out"] == 2

        await resolver.index.ensure_loaded()
        after = await resolver.preload_workout(["Squat"])

        assert source.load_calls == 1
        assert after[0].tier == MatchTier.EXACT
        assert not after[0].timed_out

    @pytest.mark.asyncio
    async def test_load_time_is_included_in_elapsed(self):
        """Test elapsed_ms covers the lazy load when it fits in the deadline."""
        resolver = ExerciseContentResolver(
            source=FakeCatalogSource(delay=0.1),
            config=ResolverConfig(batch_timeout_seconds=2.0),
        )

        batch = await resolver.preload_workout(["Squat"])

        assert batch[0].tier == MatchTier.EXACT
        assert batch.elapsed_ms >= 100

    @pytest.mark.asyncio
    async def test_slow_load_counts_against_item_deadline(self):
        """Test a single resolution returns at the item deadline while the catalog loads."""
        resolver = ExerciseContentResolver(
            source=FakeCatalogSource(delay=0.5),
            config=ResolverConfig(item_timeout_seconds=0.1),
        )

        result = await resolver.resolve("Goblet Squat")

        assert result.timed_out
        assert result.tier == MatchTier.GENERATED
        assert result.category == "squat"
        assert result.reasoning == "Catalog not loaded before deadline"

        await resolver.index.ensure_loaded()
        assert (await resolver.resolve("Squat")).tier == MatchTier.EXACT


@pytest.mark.unit
class TestLifecycle:
    """Tests for releasing resolver resources."""

    @pytest.mark.asyncio
    async def test_aclose_closes_asset_validator(self, fake_source: FakeCatalogSource):
        """Test aclose() is forwarded to the asset validator."""
        validator = FakeAssetValidator()
        resolver = ExerciseContentResolver(source=fake_source, asset_validator=validator)

        await resolver.aclose()

        assert validator.closed

    @pytest.mark.asyncio
    async def test_aclose_without_validator(self, resolver: ExerciseContentResolver):
        """Test aclose() is a no-op when no validator is configured."""
        await resolver.aclose()
        assert resolver.asset_validator is None
