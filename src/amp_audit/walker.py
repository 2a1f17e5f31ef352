from __future__ import annotations

import logging
import threading
import time
from collections import deque
from enum import Enum
from typing import Callable, Generic, Iterable, TypeVar

from tqdm import tqdm

from .state import R, RunState

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_WAIT_S = 1.0


class WalkerState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    DONE = "done"


class WorkOrder(str, Enum):
    # lifo pops the most recently discovered item first.
    LIFO = "lifo"
    FIFO = "fifo"


class CancelToken:
    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


class ThrottledWalker(Generic[T, R]):
    """Walks a worklist one item at a time with a fixed pause between items.

    Exactly one unit of work runs at a time. The pause happens only when more
    items remain, so a run of N items sleeps N - 1 times.
    """

    def __init__(
        self,
        *,
        wait_s: float = DEFAULT_WAIT_S,
        order: WorkOrder = WorkOrder.LIFO,
        sleep: Callable[[float], None] = time.sleep,
        progress: bool = False,
        desc: str = "Walking",
        unit: str = "item",
    ) -> None:
        if wait_s < 0:
            raise ValueError("wait_s must be >= 0")
        self.wait_s = wait_s
        self.order = WorkOrder(order)
        self._sleep = sleep
        self._progress = progress
        self._desc = desc
        self._unit = unit
        self.state = WalkerState.IDLE

    def _pop(self, worklist: deque[T]) -> T:
        if self.order == WorkOrder.LIFO:
            return worklist.pop()
        return worklist.popleft()

    def run(
        self,
        items: Iterable[T],
        work: Callable[[T], R],
        state: RunState[R],
        *,
        recover: tuple[type[Exception], ...] = (),
        on_error: Callable[[T, Exception], R] | None = None,
        cancel: CancelToken | None = None,
    ) -> RunState[R]:
        if self.state != WalkerState.IDLE:
            raise RuntimeError(f"Walker already used (state={self.state.value})")
        if recover and on_error is None:
            raise ValueError("on_error is required when recover is set")

        worklist: deque[T] = deque(items)
        state.total_items = state.processed + len(worklist)
        self.state = WalkerState.RUNNING

        with tqdm(
            total=len(worklist),
            desc=self._desc,
            unit=self._unit,
            disable=not self._progress,
        ) as bar:
            while worklist:
                if cancel is not None and cancel.cancelled:
                    logger.warning(
                        "Cancelled with %d of %d items left",
                        len(worklist),
                        state.total_items,
                    )
                    state.cancelled = True
                    break

                item = self._pop(worklist)
                logger.info(
                    "(%d / %d) %s", state.processed + 1, state.total_items, item
                )
                try:
                    outcome = work(item)
                except recover as e:
                    if on_error is None:
                        raise
                    logger.error("Failed: %s: %s", item, e)
                    outcome = on_error(item, e)

                state.append(outcome)
                bar.update(1)

                if worklist and self.wait_s > 0:
                    self._sleep(self.wait_s)

        self.state = WalkerState.DONE
        logger.info(
            "Done: %d items checked, %d successes, %d warnings, %d errors",
            state.processed,
            state.success_count,
            state.warning_count,
            state.failure_count,
        )
        return state
