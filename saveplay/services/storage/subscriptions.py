"""
Snapshot subscriptions for document stores.

Stores publish the paths each write touched; the hub re-reads every
watched path affected and hands the fresh snapshot to its callbacks.
Callbacks may be plain functions or coroutine functions.
"""

import inspect
from typing import Awaitable, Callable

import structlog

from saveplay.services.storage.interface import Snapshot, SnapshotCallback, Unsubscribe
from saveplay.services.storage.paths import touches


logger = structlog.get_logger()

SnapshotLoader = Callable[[str], Awaitable[Snapshot]]


class SubscriptionHub:
    """
    Keeps the watchers of one store.

    Args:
        loader: Coroutine function returning the current snapshot of a path
    """

    def __init__(self, loader: SnapshotLoader):
        self._loader = loader
        self._subscribers: dict[str, list[SnapshotCallback]] = {}

    async def subscribe(self, path: str, callback: SnapshotCallback) -> Unsubscribe:
        path = path.strip("/")
        if path not in self._subscribers:
            self._subscribers[path] = []
        self._subscribers[path].append(callback)

        await self._deliver(callback, await self._loader(path))

        def unsubscribe() -> None:
            self._unsubscribe(path, callback)

        return unsubscribe

    def _unsubscribe(self, path: str, callback: SnapshotCallback) -> None:
        if path in self._subscribers:
            if callback in self._subscribers[path]:
                self._subscribers[path].remove(callback)
            if not self._subscribers[path]:
                del self._subscribers[path]

    async def publish(self, written_paths: list[str]) -> None:
        """Notify every watcher whose path one of the writes touched."""
        for path in list(self._subscribers):
            if not any(touches(path, written) for written in written_paths):
                continue
            snapshot = await self._loader(path)
            for callback in list(self._subscribers.get(path, [])):
                await self._deliver(callback, snapshot)

    async def _deliver(self, callback: SnapshotCallback, snapshot: Snapshot) -> None:
        try:
            result = callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            # A broken watcher must not fail the write that triggered it
            logger.error(
                "subscription_callback_failed",
                error=str(e),
                error_type=type(e).__name__,
            )
