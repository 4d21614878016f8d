"""
Integration Tests - End-to-End Cache Stack Tests.

These tests wire the full service through create_budget_cache_service and
drive it with an in-memory budget API, so no network is involved.

Test Files:
    - test_simulate_mode_flow.py: Warm, browse, mutate and grade a session
"""
