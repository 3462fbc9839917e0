"""
Single-lane command serialization.

A CommandLane owns one worker thread fed by an unbounded FIFO queue. Work
submitted from any thread runs one item at a time, in submission order, so
a non-reentrant session behind the lane never sees two calls at once.

Results come back as ``concurrent.futures.Future`` objects. Completion
callbacks are attached before the work is queued, so they always run on the
worker thread and never on the submitting thread.
"""

from __future__ import annotations

import itertools
import queue
import threading
from concurrent.futures import CancelledError, Future
from typing import Any, Callable, NamedTuple, TypeVar

from smbshare.exceptions import LaneClosedError
from smbshare.logging import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

Completion = Callable[[Any, "BaseException | None"], None]

_lane_ids = itertools.count(1)


class _WorkItem(NamedTuple):
    func: Callable[..., Any] | None
    args: tuple
    kwargs: dict
    future: Future | None
    completion: "Completion | None" = None


# End-of-work marker
_STOP = _WorkItem(None, (), {}, None)


def _notify(completion: Completion, result: Any, error: BaseException | None) -> None:
    try:
        completion(result, error)
    except Exception:
        logger.exception("Completion callback raised")


def _attach_completion(future: Future, completion: Completion) -> None:
    """Adapt a ``completion(result, error)`` callback to a future."""

    def on_done(done: Future) -> None:
        # Cancellation is reported by the worker when it dequeues the item
        if done.cancelled():
            return
        error = done.exception()
        if error is not None:
            _notify(completion, None, error)
        else:
            _notify(completion, done.result(), None)

    future.add_done_callback(on_done)


class CommandLane:
    """
    Serialized executor with exactly one worker thread.

    Example:
        >>> lane = CommandLane(name="smb2_queue_nas")
        >>> fut = lane.submit(session.stat, "docs/readme.txt")
        >>> fut.result().size
        1024
        >>> lane.close()
    """

    def __init__(self, name: str | None = None) -> None:
        self.name = name or f"command-lane-{next(_lane_ids)}"
        self._queue: queue.SimpleQueue[_WorkItem] = queue.SimpleQueue()
        self._closed = False
        self._close_lock = threading.Lock()
        self._thread = threading.Thread(target=self._run, name=self.name, daemon=True)
        self._thread.start()

    @property
    def closed(self) -> bool:
        return self._closed

    def on_lane(self) -> bool:
        """True when called from this lane's worker thread."""
        return threading.current_thread() is self._thread

    def submit(self, func: Callable[..., T], *args: Any, **kwargs: Any) -> Future:
        """Queue ``func(*args, **kwargs)``; return a future for its result."""
        return self._enqueue(func, args, kwargs, None)

    def enqueue(
        self,
        op: Callable[[], T],
        completion: Completion | None = None,
    ) -> Future:
        """
        Queue ``op`` and call ``completion(result, error)`` once it finishes.

        Exactly one of ``result``/``error`` is meaningful. The callback runs
        on the worker thread. If the future is cancelled while queued, the
        callback receives a ``CancelledError`` when the worker reaches it.
        """
        return self._enqueue(op, (), {}, completion)

    def _enqueue(
        self,
        func: Callable[..., Any],
        args: tuple,
        kwargs: dict,
        completion: Completion | None,
    ) -> Future:
        future: Future = Future()
        with self._close_lock:
            if self._closed:
                error = LaneClosedError(self.name)
                if completion is not None:
                    # Hand the rejection to a helper thread, never the caller's
                    threading.Thread(
                        target=completion, args=(None, error), name=f"{self.name}-rejected"
                    ).start()
                future.set_exception(error)
                return future
            if completion is not None:
                _attach_completion(future, completion)
            self._queue.put(_WorkItem(func, args, kwargs, future, completion))
        return future

    def close(self, wait: bool = True) -> None:
        """
        Stop accepting work. Work queued before the call still runs.

        Args:
            wait: Block until the worker has drained the queue and exited.
        """
        with self._close_lock:
            if not self._closed:
                self._closed = True
                self._queue.put(_STOP)
        if wait and not self.on_lane():
            self._thread.join()

    def _run(self) -> None:
        logger.debug(f"Lane {self.name} started")
        while True:
            item = self._queue.get()
            if item.func is None:
                break
            future = item.future
            if not future.set_running_or_notify_cancel():
                if item.completion is not None:
                    _notify(item.completion, None, CancelledError())
                continue
            try:
                result = item.func(*item.args, **item.kwargs)
            except BaseException as e:
                future.set_exception(e)
            else:
                future.set_result(result)
        logger.debug(f"Lane {self.name} stopped")

    def __enter__(self) -> "CommandLane":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


__all__ = ["CommandLane", "Completion"]
