"""
Unit tests for api/routers.

The resolver dependency is overridden with one backed by FakeCatalogSource,
so no router test touches the bundled catalog or Supabase.
"""

import pytest
from fastapi.testclient import TestClient

from api.deps import get_catalog_source, get_resolver
from backend.core.resolver import ExerciseContentResolver
from backend.main import create_app
from backend.settings import Settings
from tests.fakes import FakeCatalogSource


@pytest.fixture
def test_app(resolver: ExerciseContentResolver, fake_source: FakeCatalogSource):
    """App with the resolver and catalog source overridden."""
    settings = Settings(environment="test", _env_file=None)
    app = create_app(settings=settings)
    app.dependency_overrides[get_resolver] = lambda: resolver
    app.dependency_overrides[get_catalog_source] = lambda: fake_source
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(test_app) -> TestClient:
    """TestClient for the overridden app."""
    return TestClient(test_app)


@pytest.mark.unit
class TestHealthRouter:
    """Tests for GET /health."""

    def test_health_before_first_resolution(self, client):
        """Test health reports an unloaded catalog."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "ok",
            "catalog_loaded": False,
            "catalog_version": 0,
            "catalog_entries": 0,
        }

    def test_openapi_health_endpoint_has_tag(self, test_app):
        """Test the health route is tagged."""
        openapi = test_app.openapi()
        assert "Health" in openapi["paths"]["/health"]["get"]["tags"]


@pytest.mark.unit
class TestResolveEndpoint:
    """Tests for POST /exercises/resolve."""

    def test_exact(self, client):
        """Test an alias resolves to its catalog entry."""
        response = client.post("/exercises/resolve", json={"name": "Squat"})

        assert response.status_code == 200
        data = response.json()
        assert data["tier"] == "exact"
        assert data["confidence"] == 1.0
        assert data["entry_id"] == "barbell-back-squat"
        assert data["asset_url"] == "https://cdn.test/barbell-back-squat.gif"
        assert data["placeholder"] is None

    def test_camel_case_hint(self, client):
        """Test muscleGroup is accepted in camelCase."""
        response = client.post(
            "/exercises/resolve", json={"name": "Cossack Squat", "muscleGroup": "legs"}
        )

        data = response.json()
        assert data["tier"] == "semantic"
        assert 0.0 < data["confidence"] < 1.0

    def test_unknown_name_gets_placeholder(self, client):
        """Test an unknown name gets a generic placeholder."""
        response = client.post("/exercises/resolve", json={"name": "asdkjasdkj"})

        data = response.json()
        assert data["tier"] == "generated"
        assert data["confidence"] == 0.1
        assert data["placeholder"]["asset_url"] == "asset://placeholders/generic"
        assert data["instructions"]

    def test_missing_name_is_rejected(self, client):
        """Test a request without a name is a 422."""
        response = client.post("/exercises/resolve", json={"muscleGroup": "legs"})
        assert response.status_code == 422


@pytest.mark.unit
class TestBatchEndpoints:
    """Tests for batch and plan preloading."""

    def test_batch_keeps_order(self, client):
        """Test batch results keep request order."""
        response = client.post(
            "/exercises/resolve/batch",
            json={
                "exercises": [
                    {"name": "Plank"},
                    {"name": "Incline Dumbbell Fly"},
                    {"name": "Zorblax", "equipment": "kettlebell"},
                ],
            },
        )

        assert response.status_code == 200
        data = response.json()
        assert [r["tier"] for r in data["results"]] == ["exact", "classification", "generated"]
        assert data["generated_count"] == 1
        assert data["timed_out_count"] == 0
        assert data["results"][2]["placeholder"]["equipment"] == ["kettlebell"]

    def test_empty_batch_is_rejected(self, client):
        """Test an empty batch is a 422."""
        response = client.post("/exercises/resolve/batch", json={"exercises": []})
        assert response.status_code == 422

    def test_preload_plan(self, client):
        """Test plan exercises are de-duplicated across days."""
        response = client.post(
            "/workouts/preload-plan",
            json={
                "workouts": [
                    {"name": "Day 1", "exercises": [{"name": "Squat"}, {"name": "Pull-Up"}]},
                    {"name": "Day 2", "exercises": [{"name": "squats"}, {"name": "Plank"}]},
                ]
            },
        )

        assert response.status_code == 200
        queries = [r["query"] for r in response.json()["results"]]
        assert queries == ["Squat", "Pull-Up", "Plank"]


@pytest.mark.unit
class TestSuggestAndMetrics:
    """Tests for suggestions and resolution metrics."""

    def test_suggest(self, client):
        """Test suggestions honor the limit."""
        response = client.get("/exercises/suggest", params={"name": "bench", "limit": 3})

        assert response.status_code == 200
        data = response.json()
        assert data["query"] == "bench"
        assert len(data["suggestions"]) <= 3

    def test_suggest_requires_name(self, client):
        """Test name is required."""
        assert client.get("/exercises/suggest").status_code == 422

    def test_metrics(self, client):
        """Test metrics count requests and cache hits."""
        client.post("/exercises/resolve", json={"name": "Squat"})
        client.post("/exercises/resolve", json={"name": "Squat"})

        response = client.get("/resolution/metrics")

        assert response.status_code == 200
        data = response.json()
        assert data["metrics"]["total_requests"] == 2
        assert data["metrics"]["cache_hits"] == 1
        assert data["cache"]["hits"] == 1


@pytest.mark.unit
class TestCatalogRouter:
    """Tests for the /catalog routes."""

    def test_list_entries(self, client):
        """Test every entry is listed with the catalog version."""
        response = client.get("/catalog/entries")

        data = response.json()
        assert data["count"] == 8
        assert data["version"] == 1

    def test_filter_entries(self, client):
        """Test the muscle filter is normalized."""
        response = client.get("/catalog/entries", params={"muscle": "Hamstrings"})
        assert [e["id"] for e in response.json()["entries"]] == ["romanian-deadlift"]

    def test_rebuild(self, client, fake_source: FakeCatalogSource):
        """Test a rebuild publishes a new version and drops cached results."""
        client.post("/exercises/resolve", json={"name": "Plank"})
        fake_source.remove("plank")

        response = client.post("/catalog/rebuild")

        assert response.status_code == 200
        assert response.json() == {"version": 2, "entries": 7, "source": "fake"}
        after = client.post("/exercises/resolve", json={"name": "Plank"}).json()
        assert after["tier"] != "exact"
        assert after["cached"] is False

    def test_get_entry(self, client):
        """Test a single entry is returned by id."""
        response = client.get("/catalog/entries/romanian-deadlift")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "Romanian Deadlift"
        assert data["aliases"] == ["RDL"]
        assert data["asset_url"] == "https://cdn.test/romanian-deadlift.gif"

    def test_get_unknown_entry(self, client):
        """Test an unknown id is a 404."""
        response = client.get("/catalog/entries/zorblax")

        assert response.status_code == 404
        assert response.json()["detail"] == "Catalog entry not found"

    def test_list_muscle_groups(self, client):
        """Test muscle group tags are listed sorted."""
        data = client.get("/catalog/muscle-groups").json()

        assert {"chest", "glutes", "hamstrings", "lats"} <= set(data["tags"])
        assert data["tags"] == sorted(data["tags"])
        assert data["count"] == len(data["tags"])
        assert data["version"] == 1

    def test_list_equipment(self, client, fake_source: FakeCatalogSource):
        """Test equipment tags follow the catalog after a rebuild."""
        first = client.get("/catalog/equipment").json()
        assert {"barbell", "bodyweight"} <= set(first["tags"])

        fake_source.seed(
            [{"id": "kb-swing", "name": "Kettlebell Swing", "equipment": ["kettlebell"],
             "gif_url": "https://cdn.test/kb-swing.gif"}]
        )
        client.post("/catalog/rebuild")

        second = client.get("/catalog/equipment").json()
        assert second["tags"] == ["kettlebell"]
        assert second["version"] == 2
