"""
In-process notification bus.

``NotificationsChanged`` carries no data: it means "re-fetch your counts",
never "here is the new state".  Subscribers expose ``refresh()``, which may
be a plain method or a coroutine function; coroutines are scheduled on the
running loop and not awaited by ``publish``.
"""
from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from typing import Any, Callable, ClassVar, Protocol

logger = logging.getLogger(__name__)

NOTIFICATIONS_UPDATE = "notifications:update"


@dataclass(frozen=True)
class NotificationsChanged:
    name: ClassVar[str] = NOTIFICATIONS_UPDATE


class Refreshable(Protocol):
    def refresh(self) -> Any: ...


class NotificationsBus:
    def __init__(self):
        self._subscribers: list[Refreshable] = []
        self._pending: set[asyncio.Task] = set()

    def subscribe(self, subscriber: Refreshable) -> Callable[[], None]:
        if subscriber not in self._subscribers:
            self._subscribers.append(subscriber)
        return lambda: self.unsubscribe(subscriber)

    def unsubscribe(self, subscriber: Refreshable) -> None:
        if subscriber in self._subscribers:
            self._subscribers.remove(subscriber)

    def publish(self, event: NotificationsChanged) -> list[asyncio.Task]:
        """Ask every subscriber to refresh; returns the tasks scheduled for async ones."""
        logger.debug("publishing %s to %d subscribers", event.name, len(self._subscribers))
        tasks = []
        for subscriber in list(self._subscribers):
            try:
                result = subscriber.refresh()
            except Exception:
                logger.exception("refresh failed for %r", subscriber)
                continue
            if inspect.isawaitable(result):
                tasks.append(self._schedule(subscriber, result))
        return [t for t in tasks if t is not None]

    def _schedule(self, subscriber, awaitable):
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.warning("no running loop, dropping refresh of %r", subscriber)
            if inspect.iscoroutine(awaitable):
                awaitable.close()
            return None
        task = asyncio.ensure_future(awaitable, loop=loop)
        self._pending.add(task)
        task.add_done_callback(self._finished)
        return task

    def _finished(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if not task.cancelled() and task.exception() is not None:
            logger.error("refresh failed", exc_info=task.exception())
