# backend/utils/state_observer.py
"""Change notifications for read models such as the TV board.

Mutating routes publish the name of the table they touched to a ChangeFeed.
A StateObserver listens to the feed and also fires on a fixed interval, so a
missed notification is caught up at the next reconciliation. Consumers only
see one on_change callback, whatever triggered it.
"""
import asyncio
import inspect
import logging
import threading
from typing import Callable, Optional, Set, Tuple

logger = logging.getLogger(__name__)


class ChangeFeed:
    def __init__(self):
        self._lock = threading.Lock()
        self._subscribers: Set[Tuple[asyncio.AbstractEventLoop, asyncio.Queue]] = set()

    def subscribe(self) -> asyncio.Queue:
        queue: asyncio.Queue = asyncio.Queue()
        with self._lock:
            self._subscribers.add((asyncio.get_running_loop(), queue))
        return queue

    def unsubscribe(self, queue: asyncio.Queue) -> None:
        with self._lock:
            self._subscribers = {s for s in self._subscribers if s[1] is not queue}

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    # Safe to call from sync route handlers running in the threadpool
    def publish(self, table: str) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for loop, queue in subscribers:
            try:
                loop.call_soon_threadsafe(queue.put_nowait, table)
            except RuntimeError:
                # Event loop already closed
                self.unsubscribe(queue)


class StateObserver:
    def __init__(self, feed: ChangeFeed, on_change: Callable, interval: float = 5.0):
        self.feed = feed
        self.on_change = on_change
        self.interval = interval
        self._queue: Optional[asyncio.Queue] = None
        self._task: Optional[asyncio.Task] = None

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        if self.running:
            return
        self._queue = self.feed.subscribe()
        self._task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        if self._queue is not None:
            self.feed.unsubscribe(self._queue)
            self._queue = None
        if self._task is not None:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None

    async def _notify(self) -> None:
        result = self.on_change()
        if inspect.isawaitable(result):
            await result

    async def _run(self) -> None:
        while True:
            try:
                await self._notify()
            except asyncio.CancelledError:
                raise
            except Exception:
                logger.exception("State observer callback failed")
            try:
                await asyncio.wait_for(self._queue.get(), timeout=self.interval)
                # Collapse a burst of notifications into one recompute
                while not self._queue.empty():
                    self._queue.get_nowait()
            except asyncio.TimeoutError:
                pass


# Publish a change notification for `table` on the app's feed, if it has one
def publish_change(request, table: str) -> None:
    feed = getattr(request.app.state, "change_feed", None)
    if feed is not None:
        feed.publish(table)
