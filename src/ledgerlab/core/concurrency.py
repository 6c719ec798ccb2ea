"""
Concurrency primitives for the journal pipeline.

- ``CancellationToken``: shared cancellation flag for a pipeline run
- ``Channel``: bounded, closable FIFO whose blocking operations observe a
  cancellation token
- ``WaitGroup``: counter that releases waiters when it drops to zero
- ``parallel`` and ``fork_join``: fork-join helpers running on a
  ``ThreadPoolExecutor``
"""

from __future__ import annotations

import queue
import threading
from collections.abc import Callable, Iterable, Iterator
from concurrent.futures import Executor, ThreadPoolExecutor
from typing import Any, Generic, TypeVar

from .errors import PipelineCancelledError

__all__ = [
    "CancellationToken",
    "Channel",
    "WaitGroup",
    "parallel",
    "fork_join",
]

T = TypeVar("T")
R = TypeVar("R")

_POLL_SECONDS = 0.05
_CLOSED = object()


class CancellationToken:
    """A one-shot cancellation signal shared by all tasks of a run."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self) -> None:
        if self._event.is_set():
            raise PipelineCancelledError("pipeline cancelled")

    def wait(self, timeout: float | None = None) -> bool:
        return self._event.wait(timeout)


class Channel(Generic[T]):
    """
    Bounded FIFO between producer and consumer threads.

    ``push`` blocks while the channel is full and ``pop`` blocks while it is
    empty; both give up with ``PipelineCancelledError`` once the token is
    cancelled. ``close`` marks the end of the stream; iterating a channel
    yields items until it is closed.
    """

    def __init__(self, capacity: int, token: CancellationToken | None = None):
        if capacity < 1:
            raise ValueError("channel capacity must be positive")
        self._queue: queue.Queue[Any] = queue.Queue(maxsize=capacity)
        self.token = token or CancellationToken()

    def push(self, item: T) -> None:
        while True:
            self.token.raise_if_cancelled()
            try:
                self._queue.put(item, timeout=_POLL_SECONDS)
                return
            except queue.Full:
                continue

    def pop(self) -> tuple[T | None, bool]:
        """Return ``(item, True)``, or ``(None, False)`` once closed and drained."""
        while True:
            self.token.raise_if_cancelled()
            try:
                item = self._queue.get(timeout=_POLL_SECONDS)
            except queue.Empty:
                continue
            if item is _CLOSED:
                # keep the marker for other consumers
                self._queue.put(_CLOSED)
                return None, False
            return item, True

    def close(self) -> None:
        self.push(_CLOSED)  # type: ignore[arg-type]

    def __iter__(self) -> Iterator[T]:
        while True:
            item, ok = self.pop()
            if not ok:
                return
            yield item  # type: ignore[misc]


class WaitGroup:
    """Counts outstanding tasks; ``wait`` blocks until the count is zero."""

    def __init__(self):
        self._count = 0
        self._cond = threading.Condition()

    def add(self, n: int = 1) -> None:
        with self._cond:
            self._count += n
            if self._count < 0:
                raise ValueError("negative wait group counter")
            if self._count == 0:
                self._cond.notify_all()

    def done(self) -> None:
        self.add(-1)

    def wait(self, token: CancellationToken | None = None) -> None:
        with self._cond:
            while self._count > 0:
                if token is not None:
                    token.raise_if_cancelled()
                self._cond.wait(_POLL_SECONDS)


def parallel(*fns: Callable[[], R], executor: Executor | None = None) -> list[R]:
    """Run the functions concurrently and return their results in order."""
    if executor is None:
        with ThreadPoolExecutor(max_workers=max(len(fns), 1)) as pool:
            return parallel(*fns, executor=pool)
    futures = [executor.submit(fn) for fn in fns]
    return [f.result() for f in futures]


def fork_join(
    root: T,
    children: Callable[[T], Iterable[T]],
    combine: Callable[[T, list[R]], R],
    executor: Executor,
) -> R:
    """
    Parallel divide and conquer over a finite tree.

    Children of a node are submitted to ``executor`` before the node's own
    contribution is combined with theirs. The first child runs inline, and
    a waiting parent runs any child the pool has not started yet itself, so
    the recursion cannot starve a bounded pool.

    Args:
        root: Root of the tree
        children: Returns the children of a node
        combine: Combines a node with the results of its children
        executor: Pool to run sibling subtrees on

    Returns:
        The combined result for ``root``
    """

    def solve(node: T) -> R:
        kids = list(children(node))
        if not kids:
            return combine(node, [])
        forked = [(kid, executor.submit(solve, kid)) for kid in kids[1:]]
        results = [solve(kids[0])]
        for kid, future in forked:
            results.append(solve(kid) if future.cancel() else future.result())
        return combine(node, results)

    return solve(root)
