"""
Unit Tests - Testing Individual Components in Isolation.

Test Files:
    - test_key_codec.py: Composite key encoding and matching
    - test_cache_manager.py: TTL/LRU store
    - test_compression.py: Compressing store
    - test_prefetcher.py: Access-pattern prefetching
    - test_performance_manager.py: Strategy flags, grade, recommendations
    - test_cached_fetcher.py: Read-through wrapper and lifecycle hooks
    - test_background_runner.py: Fire-and-forget tasks and dead letters
    - test_config_loader.py: Configuration loading/validation
    - test_observability_manager.py: Structured events and metrics
"""
