"""Lazy background tasks for asynchronous repository calls."""

import logging
import threading
from collections.abc import Callable
from concurrent.futures import Future, ThreadPoolExecutor
from typing import Any

from openmrs_records.config import TASK_WORKERS

logger = logging.getLogger(__name__)

_executor: ThreadPoolExecutor | None = None
_executor_lock = threading.Lock()


def get_executor() -> ThreadPoolExecutor:
    """Return the shared worker pool, creating it on first use."""
    global _executor
    with _executor_lock:
        if _executor is None:
            _executor = ThreadPoolExecutor(
                max_workers=TASK_WORKERS,
                thread_name_prefix="openmrs-records",
            )
        return _executor


def shutdown_executor(wait: bool = True) -> None:
    """Stop the shared worker pool. A later task starts a fresh one."""
    global _executor
    with _executor_lock:
        if _executor is not None:
            _executor.shutdown(wait=wait)
            _executor = None


class Task:
    """
    A deferred call that runs on the worker pool once somebody asks for it.

    Nothing executes at construction time. The first ``subscribe()`` or
    ``result()`` submits the call; later callers share the same outcome.
    A task nobody subscribes to never runs.

    ``inline`` is checked when the task starts. If it returns True the call
    runs on the starting thread instead of the pool. Repositories pass
    ``Database.held_by_current_thread`` so that waiting on a read task from
    inside ``db.transaction()`` does not block on the lock the caller holds.
    """

    def __init__(
        self,
        fn: Callable[[], Any],
        executor: ThreadPoolExecutor | None = None,
        inline: Callable[[], bool] | None = None,
    ):
        self._fn = fn
        self._executor = executor
        self._inline = inline
        self._future: Future | None = None
        self._lock = threading.Lock()

    @property
    def started(self) -> bool:
        return self._future is not None

    def _start(self) -> Future:
        with self._lock:
            if self._future is None:
                if self._inline is not None and self._inline():
                    self._future = Future()
                    try:
                        self._future.set_result(self._fn())
                    except Exception as exc:
                        self._future.set_exception(exc)
                else:
                    executor = self._executor or get_executor()
                    self._future = executor.submit(self._fn)
            return self._future

    def subscribe(
        self,
        on_success: Callable[[Any], None],
        on_error: Callable[[BaseException], None] | None = None,
    ) -> Future:
        """Start the task and deliver its outcome to the callbacks."""
        future = self._start()

        def _deliver(done: Future) -> None:
            if done.cancelled():
                return
            exc = done.exception()
            if exc is None:
                on_success(done.result())
            elif on_error is not None:
                on_error(exc)
            else:
                logger.error("Unhandled task failure", exc_info=exc)

        future.add_done_callback(_deliver)
        return future

    def result(self, timeout: float | None = None) -> Any:
        """Start the task if needed and block until it finishes."""
        return self._start().result(timeout)

    def map(self, fn: Callable[[Any], Any]) -> "Task":
        """
        Derive a new lazy task that transforms this one's value.

        Starting the derived task starts this one (or reuses its outcome if
        it already ran) and applies ``fn`` when it completes, without
        holding a pool worker while waiting.
        """
        return _MappedTask(self, fn)


class _MappedTask(Task):
    """A task whose value is ``fn`` applied to another task's outcome."""

    def __init__(self, source: Task, fn: Callable[[Any], Any]):
        super().__init__(fn, source._executor)
        self._source = source

    def _start(self) -> Future:
        with self._lock:
            if self._future is not None:
                return self._future
            self._future = Future()
            derived = self._future

        def _apply(done: Future) -> None:
            exc = done.exception()
            if exc is not None:
                derived.set_exception(exc)
                return
            try:
                derived.set_result(self._fn(done.result()))
            except Exception as map_exc:
                derived.set_exception(map_exc)

        self._source._start().add_done_callback(_apply)
        return derived
