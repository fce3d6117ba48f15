"""Thread pool for batch shop recomputes.

A failing shop is logged and reported in its TaskResult; the rest of the
batch keeps going.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Callable, Optional

from greenscore.constants import DEFAULT_WORKERS


@dataclass(frozen=True)
class TaskResult:
    """Outcome of one item: its return value, or the exception it raised."""

    item: Any
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass(frozen=True)
class PoolStats:
    max_workers: int
    submitted: int
    succeeded: int
    failed: int


class WorkerPool:
    """Runs one callable over many items on a ThreadPoolExecutor."""

    def __init__(self, max_workers: int = DEFAULT_WORKERS, logger: Optional[logging.Logger] = None):
        if max_workers < 1:
            raise ValueError(f"max_workers must be at least 1, got {max_workers}")
        self.max_workers = max_workers
        self.logger = logger or logging.getLogger(__name__)
        self._lock = threading.Lock()
        self._submitted = 0
        self._succeeded = 0
        self._failed = 0

    def _run_one(self, func: Callable[[Any], Any], item: Any, desc: str) -> TaskResult:
        try:
            value = func(item)
        except Exception as e:
            with self._lock:
                self._failed += 1
            self.logger.error(f"{desc}: {item} failed: {e}", exc_info=True)
            return TaskResult(item=item, error=e)
        with self._lock:
            self._succeeded += 1
        self.logger.debug(f"{desc}: {item} done")
        return TaskResult(item=item, value=value)

    def map(self, func: Callable[[Any], Any], items: list, desc: str = "Processing") -> list[TaskResult]:
        """
        Apply func to every item in parallel.

        Args:
            func: Called once per item
            items: Work items (shop ids for recompute)
            desc: Prefix for log lines

        Returns:
            One TaskResult per item, in input order
        """
        with self._lock:
            self._submitted += len(items)

        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            results = list(executor.map(lambda item: self._run_one(func, item, desc), items))

        failed = sum(1 for r in results if not r.ok)
        self.logger.info(f"{desc} complete: {len(results) - failed} succeeded, {failed} failed")
        return results

    def get_stats(self) -> PoolStats:
        """Running totals across every map() call on this pool."""
        with self._lock:
            return PoolStats(
                max_workers=self.max_workers,
                submitted=self._submitted,
                succeeded=self._succeeded,
                failed=self._failed,
            )
