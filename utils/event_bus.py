# --------------------------------------------------------------------
# utils/event_bus.py
# --------------------------------------------------------------------
"""Small synchronous pub/sub streams.

``EventStream`` fans a payload out to every subscriber, in subscription
order, before ``publish()`` returns.  ``ReplayLastStream`` additionally keeps
the last published value and hands it to each new subscriber straight away.
Handlers may be plain callables or coroutine functions; coroutines are
scheduled on the running loop."""
from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Generic, List, Set, TypeVar

T = TypeVar("T")

_Handler = Callable[[Any], Any]

logger = logging.getLogger(__name__)


class EventStream(Generic[T]):
    """Future-only broadcast: new subscribers see only later payloads."""

    def __init__(self, name: str = "events") -> None:
        self.name = name
        self._subs: List[_Handler] = []
        # running async-subscriber tasks; the loop only holds them weakly
        self._tasks: Set[asyncio.Task] = set()

    # -------------------------------------------------------------- #
    def subscribe(self, fn: _Handler) -> Callable[[], None]:
        """Register *fn*; returns a callable that removes it again."""
        self._subs.append(fn)

        def unsubscribe() -> None:
            if fn in self._subs:
                self._subs.remove(fn)

        return unsubscribe

    def publish(self, payload: T) -> None:
        # copy so a handler may unsubscribe itself mid-delivery
        for fn in list(self._subs):
            self._deliver(fn, payload)

    @property
    def subscriber_count(self) -> int:
        return len(self._subs)

    # -------------------------------------------------------------- #
    def _deliver(self, fn: _Handler, payload: T) -> None:
        try:
            res = fn(payload)
        except Exception:
            logger.exception("[%s] subscriber %r failed", self.name, fn)
            return
        if asyncio.iscoroutine(res):
            self._schedule(res)

    def _schedule(self, coro) -> None:
        try:
            task = asyncio.get_running_loop().create_task(coro)
        except RuntimeError:
            coro.close()
            logger.warning("[%s] no running loop for async subscriber; dropped", self.name)
            return
        self._tasks.add(task)
        task.add_done_callback(self._task_done)

    def _task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("[%s] async subscriber failed: %s", self.name, exc, exc_info=exc)


class ReplayLastStream(EventStream[T]):
    """Broadcast that replays the most recent value to each new subscriber."""

    def __init__(self, initial: T, name: str = "state") -> None:
        super().__init__(name)
        self._value = initial

    @property
    def value(self) -> T:
        return self._value

    def subscribe(self, fn: _Handler) -> Callable[[], None]:
        unsubscribe = super().subscribe(fn)
        self._deliver(fn, self._value)
        return unsubscribe

    def publish(self, payload: T) -> None:
        self._value = payload
        super().publish(payload)
