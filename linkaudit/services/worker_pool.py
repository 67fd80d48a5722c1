import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, NamedTuple, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


class TaskOutcome(NamedTuple):
    """Settled result of one task, paired with the item that produced it."""
    item: Any
    success: bool
    result: Any = None
    error: Optional[BaseException] = None


class BatchWorkerPool:
    """Fixed-parallelism pool that processes a list in fixed-size batches.

    Each batch is fanned out over the executor and fully joined before the
    next one starts; `pause_seconds` is slept between batches (not after the
    last). Outcomes come back in input order regardless of completion order,
    and a task raising never affects its siblings.
    """

    def __init__(
        self,
        max_workers: int = 10,
        pause_seconds: float = 1.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        if max_workers < 1:
            raise ValueError("max_workers must be >= 1")
        self.max_workers = int(max_workers)
        self.pause_seconds = pause_seconds
        self._sleep = sleep

    def batches(self, items: Sequence[T]) -> list[Sequence[T]]:
        return [items[i:i + self.max_workers] for i in range(0, len(items), self.max_workers)]

    def run(
        self,
        items: Sequence[T],
        processor: Callable[[T], Any],
        on_batch_start: Optional[Callable[[int, int], None]] = None,
    ) -> list[TaskOutcome]:
        items = list(items)
        if not items:
            return []

        batches = self.batches(items)
        outcomes: list[TaskOutcome] = []
        with ThreadPoolExecutor(max_workers=self.max_workers) as executor:
            for index, batch in enumerate(batches):
                if on_batch_start is not None:
                    on_batch_start(index, len(batch))
                futures = [executor.submit(processor, item) for item in batch]
                for item, future in zip(batch, futures):
                    try:
                        outcomes.append(TaskOutcome(item, True, future.result()))
                    except Exception as e:
                        logger.warning("Task failed for %r: %s", item, e)
                        outcomes.append(TaskOutcome(item, False, error=e))
                if index + 1 < len(batches) and self.pause_seconds > 0:
                    self._sleep(self.pause_seconds)
        return outcomes
