"""
Fire-and-forget work that must never block or fail a response

Failures of detached tasks go to the log through a done-callback; they are
never re-raised into the request that submitted them.
"""
from concurrent.futures import Future, ThreadPoolExecutor
from functools import partial
from typing import Callable, Optional
import logging

logger = logging.getLogger(__name__)


class DetachedTaskRunner:
    def __init__(self, max_workers: int = 4):
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="cineai-detached")

    def submit(self, func: Callable, *args, description: Optional[str] = None, **kwargs) -> Future:
        """Schedule func(*args, **kwargs) and return immediately."""
        future = self._executor.submit(func, *args, **kwargs)
        future.add_done_callback(partial(self._log_outcome, description or getattr(func, "__name__", "task")))
        return future

    @staticmethod
    def _log_outcome(description: str, future: Future) -> None:
        if future.cancelled():
            logger.warning(f"Detached task cancelled: {description}")
            return
        error = future.exception()
        if error is not None:
            logger.error(f"Detached task failed: {description}: {str(error)}")

    def shutdown(self, wait: bool = True) -> None:
        """Stop accepting work; with wait=True, let pending writes finish."""
        self._executor.shutdown(wait=wait)
