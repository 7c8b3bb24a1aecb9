"""Shared fixtures for resolver unit tests."""
import pytest

from backend.core.catalog import CatalogIndex
from backend.core.config import ResolverConfig
from backend.core.exercise_matcher import TieredExerciseMatcher
from backend.core.resolver import ExerciseContentResolver
from tests.fakes import FakeCatalogSource


@pytest.fixture
def fake_source() -> FakeCatalogSource:
    """FakeCatalogSource with default test data."""
    return FakeCatalogSource()


@pytest.fixture
def index(fake_source: FakeCatalogSource) -> CatalogIndex:
    """CatalogIndex already loaded from the fake source."""
    index = CatalogIndex(source=fake_source)
    index.rebuild_sync()
    return index


@pytest.fixture
def config() -> ResolverConfig:
    """Default ResolverConfig."""
    return ResolverConfig()


@pytest.fixture
def matcher(index: CatalogIndex, config: ResolverConfig) -> TieredExerciseMatcher:
    """Matcher over the loaded fake catalog."""
    return TieredExerciseMatcher(index, config)


@pytest.fixture
def resolver(fake_source: FakeCatalogSource) -> ExerciseContentResolver:
    """Resolver with a lazily loaded fake catalog."""
    return ExerciseContentResolver(source=fake_source)
