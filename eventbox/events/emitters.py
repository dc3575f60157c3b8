"""Emission strategies: how and when a handler is called for a payload.

An emitter is any ``(handler, payload) -> None`` callable. The built-in
default defers every call to a later turn of the scheduler so a handler
never runs inside the publisher's stack frame.
"""

from __future__ import annotations

import asyncio
from collections import deque
from typing import Any, Callable, Coroutine, Deque, List, Protocol, Set, Tuple

from eventbox.core.log import get_logger
from eventbox.events.registry import Handler


Emitter = Callable[[Handler, Any], None]

logger = get_logger(__name__)

# Strong refs to fire-and-forget tasks until they finish
_background_tasks: Set["asyncio.Task[Any]"] = set()


def _describe(handler: Handler) -> str:
    return getattr(handler, "__qualname__", None) or repr(handler)


def _on_task_done(task: "asyncio.Task[Any]") -> None:
    _background_tasks.discard(task)
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.error(
            "[eventbox] async handler failed task=%s err=%r",
            task.get_name(),
            exc,
            exc_info=exc,
        )


def invoke(handler: Handler, payload: Any) -> None:
    """Call ``handler(payload)``, isolating and logging any failure.

    Coroutine results are run as a task on the running loop, or to
    completion when no loop is running.
    """
    try:
        result = handler(payload)
    except Exception:
        logger.exception("[eventbox] handler failed handler=%s", _describe(handler))
        return

    if not asyncio.iscoroutine(result):
        return
    _run_coroutine(handler, result)


def _run_coroutine(handler: Handler, coro: Coroutine[Any, Any, Any]) -> None:
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        try:
            asyncio.run(coro)
        except Exception:
            logger.exception("[eventbox] async handler failed handler=%s", _describe(handler))
        return

    task = loop.create_task(coro, name=f"eventbox:{_describe(handler)}")
    _background_tasks.add(task)
    task.add_done_callback(_on_task_done)


def emit_sync(handler: Handler, payload: Any) -> None:
    """Run the handler immediately, inside the caller's stack."""
    invoke(handler, payload)


class Scheduler(Protocol):
    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None: ...

    def run_pending(self) -> int: ...


class QueueScheduler:
    """FIFO task queue drained explicitly with :meth:`run_pending`.

    Deterministic stand-in for an event loop, for tests and for hosts that
    pump their own queue.
    """

    def __init__(self) -> None:
        self._queue: Deque[Tuple[Callable[..., Any], Tuple[Any, ...]]] = deque()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        self._queue.append((callback, args))

    def run_once(self) -> int:
        """Run only the callbacks queued before this call."""
        ran = 0
        for _ in range(len(self._queue)):
            callback, args = self._queue.popleft()
            callback(*args)
            ran += 1
        return ran

    def run_pending(self) -> int:
        """Run callbacks until the queue is empty, including newly queued ones."""
        ran = 0
        while self._queue:
            ran += self.run_once()
        return ran

    def take(self) -> List[Tuple[Callable[..., Any], Tuple[Any, ...]]]:
        """Remove and return everything queued, oldest first."""
        taken = list(self._queue)
        self._queue.clear()
        return taken

    def __len__(self) -> int:
        return len(self._queue)


class LoopScheduler:
    """Hands callbacks to the running asyncio loop.

    ``loop.call_soon`` by default, or ``loop.call_later(0, ...)`` with
    ``use_timer``. Outside a running loop callbacks wait in ``backlog``;
    the backlog moves onto the loop ahead of the first callback scheduled
    inside one, or runs on :meth:`run_pending`.
    """

    def __init__(self, use_timer: bool = False) -> None:
        self.use_timer = use_timer
        self.backlog = QueueScheduler()

    def call_soon(self, callback: Callable[..., Any], *args: Any) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("[eventbox] no running loop; queued callback=%s", _describe(callback))
            self.backlog.call_soon(callback, *args)
            return
        if self.backlog:
            for queued, queued_args in self.backlog.take():
                self._schedule(loop, queued, queued_args)
        self._schedule(loop, callback, args)

    def _schedule(self, loop: asyncio.AbstractEventLoop, callback: Callable[..., Any], args: Tuple[Any, ...]) -> None:
        if self.use_timer:
            loop.call_later(0, callback, *args)
        else:
            loop.call_soon(callback, *args)

    def run_pending(self) -> int:
        return self.backlog.run_pending()


def deferred(scheduler: Scheduler) -> Emitter:
    """Build an emitter that schedules each invocation on ``scheduler``."""

    def emit_deferred(handler: Handler, payload: Any) -> None:
        scheduler.call_soon(invoke, handler, payload)

    return emit_deferred
