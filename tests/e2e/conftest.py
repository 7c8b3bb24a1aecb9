"""
E2E test fixtures and configuration.

These fixtures provide:
- Real Supabase client for the catalog table
- A resolver loaded from the live catalog
"""
import os
import pytest

from dotenv import load_dotenv
from supabase import Client, create_client

from backend.core.resolver import ExerciseContentResolver
from infrastructure import SupabaseCatalogSource


# Load environment variables from .env file
load_dotenv()


@pytest.fixture(scope="session")
def supabase_url() -> str:
    """Get Supabase URL from environment."""
    url = os.getenv("SUPABASE_URL")
    if not url:
        pytest.skip("SUPABASE_URL environment variable not set")
    return url


@pytest.fixture(scope="session")
def supabase_key() -> str:
    """Get Supabase service role key from environment."""
    key = os.getenv("SUPABASE_SERVICE_ROLE_KEY")
    if not key:
        pytest.skip("SUPABASE_SERVICE_ROLE_KEY environment variable not set")
    return key


@pytest.fixture(scope="session")
def supabase_client(supabase_url: str, supabase_key: str) -> Client:
    """Create a Supabase client for direct database access."""
    return create_client(supabase_url, supabase_key)


@pytest.fixture(scope="session")
def catalog_source(supabase_client: Client) -> SupabaseCatalogSource:
    """Catalog source reading the live exercises table."""
    return SupabaseCatalogSource(
        supabase_client, table=os.getenv("CATALOG_TABLE", "exercises")
    )


@pytest.fixture(scope="module")
def live_resolver(catalog_source: SupabaseCatalogSource) -> ExerciseContentResolver:
    """Resolver with the live catalog already loaded."""
    resolver = ExerciseContentResolver(source=catalog_source)
    resolver.index.rebuild_sync()
    if not len(resolver.index):
        pytest.skip("Live catalog is empty or unavailable")
    return resolver


@pytest.fixture
def edge_case_inputs() -> list:
    """
    Edge case inputs for testing robustness.
    These should not crash the system.
    """
    return [
        "",                          # Empty string
        "   ",                       # Whitespace only
        "x" * 500,                   # Very long name
        "!@#$%^&*()",                # Special characters only
        "123456789",                 # Numbers only
        "Bench Press!!!",            # Trailing special chars
        "BenchPress",                # No spaces
        "Bench\nPress",              # Newline character
        "Bench\tPress",              # Tab character
    ]
