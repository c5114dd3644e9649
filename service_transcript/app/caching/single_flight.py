"""
Single-flight coalescing of concurrent upstream fetches.
"""

import asyncio
from typing import Any, Awaitable, Callable, Dict, Tuple

from shared.logging import get_logger


class SingleFlight:
    """At most one in-flight task per key.

    ``submit`` hands later callers the task that is already running for the
    same key. The slot is released as soon as the task finishes, whatever its
    outcome, so the next miss starts a fresh fetch. Exceptions of tasks nobody
    awaits any more are retrieved and logged instead of surfacing as
    "exception was never retrieved" warnings.
    """

    def __init__(self, name: str = "upstream"):
        self.name = name
        self.logger = get_logger(f"transcript.single_flight.{name}")
        self._tasks: Dict[str, "asyncio.Task[Any]"] = {}

    def submit(self, key: str, factory: Callable[[], Awaitable[Any]]) -> Tuple["asyncio.Task[Any]", bool]:
        """Return ``(task, joined)`` where ``joined`` tells whether the task already existed.

        Must be called from the event loop thread; the check and the insert
        happen without a suspension point in between.
        """
        task = self._tasks.get(key)
        if task is not None and not task.done():
            return task, True

        task = asyncio.ensure_future(factory())
        self._tasks[key] = task
        task.add_done_callback(lambda finished, key=key: self._release(key, finished))
        return task, False

    def __len__(self) -> int:
        return sum(1 for task in self._tasks.values() if not task.done())

    def _release(self, key: str, task: "asyncio.Task[Any]"):
        if self._tasks.get(key) is task:
            del self._tasks[key]

        if task.cancelled():
            self.logger.warning("In-flight task cancelled", key=key)
            return

        error = task.exception()
        if error is not None:
            self.logger.debug("In-flight task failed", key=key, error=str(error), error_type=type(error).__name__)
