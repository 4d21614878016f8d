"""
Resilience Package - Background Work and Failure Capture.

This package keeps background failures away from callers:
    - BackgroundTaskRunner: Fire-and-forget asyncio tasks
    - DeadLetter: Record of a swallowed background failure

Design Principles:
    - Foreground fetch errors propagate; background errors never do
    - Every swallowed failure is logged and kept for diagnostics
"""

from budget_cache.resilience.background import BackgroundTaskRunner, DeadLetter

__all__ = ["BackgroundTaskRunner", "DeadLetter"]
