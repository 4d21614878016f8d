"""
Background Task Runner - Fire-and-Forget with Dead Letters.

Runs cache warming, preloading and prefetching as detached asyncio tasks.

Design Notes:
    - Callers never await spawned tasks; the runner holds strong references
      until each task finishes
    - Failures are logged as warnings and recorded in a bounded dead-letter
      log, never re-raised
    - Cancelled tasks are not failures
    - drain() lets the host wait for all outstanding work (shutdown, tests)
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Coroutine, Deque, Dict, List, Optional, Set

logger = logging.getLogger(__name__)


@dataclass
class DeadLetter:
    """A background task that failed."""

    name: str
    error: BaseException
    failed_at: datetime = field(default_factory=datetime.now)
    context: Dict[str, Any] = field(default_factory=dict)


class BackgroundTaskRunner:
    """
    Spawns detached tasks and captures their failures.

    Usage:
        runner = BackgroundTaskRunner()
        runner.spawn(refresh(), name="warm:period:2024-05")
        ...
        await runner.drain()
        runner.dead_letters  # failures, if any
    """

    def __init__(
        self,
        max_dead_letters: int = 100,
        observability: Optional[Any] = None,
    ) -> None:
        """
        Initialize runner.

        Args:
            max_dead_letters: Oldest dead letters are dropped past this bound
            observability: ObservabilityManager for failure events (optional)
        """
        self.observability = observability
        self._tasks: Set[asyncio.Task] = set()
        self._context: Dict[asyncio.Task, Dict[str, Any]] = {}
        self._dead_letters: Deque[DeadLetter] = deque(maxlen=max_dead_letters)
        self._completed = 0

    def spawn(
        self,
        coro: Coroutine[Any, Any, Any],
        name: str,
        context: Optional[Dict[str, Any]] = None,
    ) -> asyncio.Task:
        """
        Schedule a coroutine on the running loop without awaiting it.

        Args:
            coro: Coroutine to run
            name: Task name used in logs and dead letters
            context: Extra details stored with a dead letter

        Returns:
            The scheduled task

        Raises:
            RuntimeError: If called without a running event loop
        """
        try:
            task = asyncio.get_running_loop().create_task(coro, name=name)
        except RuntimeError:
            coro.close()
            raise
        self._tasks.add(task)
        self._context[task] = context or {}
        task.add_done_callback(self._on_done)
        return task

    async def drain(self) -> None:
        """Wait until no spawned task is pending, including nested spawns."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    @property
    def pending_count(self) -> int:
        return len(self._tasks)

    @property
    def completed_count(self) -> int:
        return self._completed

    @property
    def dead_letters(self) -> List[DeadLetter]:
        return list(self._dead_letters)

    def clear_dead_letters(self) -> None:
        self._dead_letters.clear()

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        context = self._context.pop(task, {})
        self._completed += 1

        if task.cancelled():
            logger.debug(f"Background task {task.get_name()} cancelled")
            return

        error = task.exception()
        if error is None:
            return

        self._dead_letters.append(
            DeadLetter(name=task.get_name(), error=error, context=context)
        )
        logger.warning(f"Background task {task.get_name()} failed: {error!r}")

        if self.observability:
            self.observability.log_event(
                "background_failure",
                {"task": task.get_name(), "error": repr(error), **context},
                level="warning",
            )
