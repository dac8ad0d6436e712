"""Trailing-edge debouncing of recalculation, one timer per document."""

import asyncio
import logging
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)


class Debouncer:
    """
    Coalesce bursts of calls per key into one trailing call.

    Scheduling a key again before its delay elapses cancels the pending
    call for that key only; other keys keep their timers.
    """

    def __init__(self, delay: float = 0.5):
        self.delay = delay
        self._tasks: dict[str, asyncio.Task] = {}

    def schedule(self, key: str, callback: Callable[[], Awaitable[Any]]) -> asyncio.Task:
        """Run *callback* after the delay unless *key* is scheduled again first."""
        self.cancel(key)
        task = asyncio.create_task(self._run(key, callback))
        self._tasks[key] = task
        return task

    async def _run(self, key: str, callback: Callable[[], Awaitable[Any]]) -> Any:
        try:
            await asyncio.sleep(self.delay)
            return await callback()
        except asyncio.CancelledError:
            logger.debug(f"Debounced call for {key!r} superseded")
            raise
        except Exception as e:
            logger.error(f"Debounced call for {key!r} failed: {e}")
            return None
        finally:
            if self._tasks.get(key) is asyncio.current_task():
                del self._tasks[key]

    def cancel(self, key: Optional[str] = None) -> int:
        """Cancel the pending call for *key*, or every pending call."""
        keys = [key] if key is not None else list(self._tasks)
        cancelled = 0
        for k in keys:
            task = self._tasks.pop(k, None)
            if task is not None and not task.done():
                task.cancel()
                cancelled += 1
        return cancelled

    def pending(self) -> list[str]:
        """Keys with a call still waiting to run."""
        return [key for key, task in self._tasks.items() if not task.done()]

    async def drain(self) -> None:
        """Wait for every pending call to finish."""
        tasks = list(self._tasks.values())
        if tasks:
            await asyncio.gather(*tasks, return_exceptions=True)
