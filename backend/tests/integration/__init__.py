"""
Integration Tests

Integration tests require a running PostgreSQL (see POSTGRES_TEST_* in
tests/integration/conftest.py). They are deselected by default; run them
with: pytest -m integration

These tests exercise the API against real tables.
"""
