"""
E2E tests for the exercise content resolver.

These tests run against a real Supabase catalog and should only be
executed in CI nightly runs or explicitly by developers.

Usage:
    pytest -m e2e tests/e2e/
"""
