"""Fire-and-forget execution for best-effort side effects."""

from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Any, Callable

logger = logging.getLogger(__name__)


class BackgroundIndexer:
    """Runs tasks off the caller's thread and logs, never raises, their failures."""

    def __init__(self, executor: Executor | None = None) -> None:
        self._executor = executor or ThreadPoolExecutor(max_workers=1, thread_name_prefix="indexer")

    def submit(self, description: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        future = self._executor.submit(fn, *args, **kwargs)
        future.add_done_callback(lambda f: self._report(description, f))
        return future

    @staticmethod
    def _report(description: str, future: Future) -> None:
        if future.cancelled():
            logger.warning("Background task cancelled: %s", description)
            return
        error = future.exception()
        if error is not None:
            logger.error("Background task failed: %s - %s", description, error)
        else:
            logger.debug("Background task finished: %s", description)

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


__all__ = ["BackgroundIndexer"]
