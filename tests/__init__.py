"""
Test Suite for Budget Cache.

Test organization:
    - unit/: Unit tests for individual components
    - integration/: End-to-end tests across the cache stack
    - fixtures/: Shared sample configuration

Running Tests:
    pytest tests/                       # All tests
    pytest tests/unit/                  # Unit tests only
    pytest --cov=src/budget_cache       # With coverage
"""
