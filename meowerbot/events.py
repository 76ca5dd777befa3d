"""
Publish/subscribe channels for meowerbot.

One EventChannel per event kind:
- Subscribers are called in subscription order
- Coroutine results are scheduled as tasks, so a slow subscriber never
  delays the others
- subscribe() returns a Subscription that can detach the callback
"""

import asyncio
import inspect
from typing import Any, Callable

from loguru import logger


class Subscription:
    """Handle returned by EventChannel.subscribe()."""

    def __init__(self, channel: "EventChannel", callback: Callable[..., Any]):
        self._channel = channel
        self._callback = callback
        self.active = True

    def dispose(self) -> None:
        """Stop delivering events to the callback."""
        if self.active:
            self._channel._remove(self._callback)
            self.active = False


class EventChannel:
    """An ordered list of callbacks for a single event kind."""

    def __init__(self, name: str):
        self.name = name
        self._callbacks: list[Callable[..., Any]] = []
        self._pending: set[asyncio.Task] = set()

    def __len__(self) -> int:
        return len(self._callbacks)

    @property
    def busy(self) -> bool:
        """Whether subscriber tasks are still running."""
        return bool(self._pending)

    def subscribe(self, callback: Callable[..., Any]) -> Subscription:
        """Append a callback; it receives whatever emit() is called with."""
        self._callbacks.append(callback)
        return Subscription(self, callback)

    def _remove(self, callback: Callable[..., Any]) -> None:
        try:
            self._callbacks.remove(callback)
        except ValueError:
            pass

    def emit(self, *args: Any) -> list[asyncio.Task]:
        """
        Deliver an event to every subscriber.

        Args:
            *args: Event payload passed positionally to each callback.

        Returns:
            Tasks created for coroutine subscribers.
        """
        tasks = []
        for callback in list(self._callbacks):
            try:
                result = callback(*args)
            except Exception:
                logger.exception(f"Subscriber of '{self.name}' failed")
                continue

            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._task_done)
                tasks.append(task)
        return tasks

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        error = task.exception()
        if error is not None:
            logger.opt(exception=error).error(f"Subscriber of '{self.name}' failed")

    async def drain(self) -> None:
        """Wait until every scheduled subscriber task has finished."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
