"""Realtime store adapter contract"""

import asyncio
import inspect
import logging
import secrets
import time
from abc import ABC, abstractmethod
from typing import Any, Awaitable, Callable, Dict, Optional, Union

from marine_workorders.store.paths import join

logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[Any], Union[None, Awaitable[None]]]


class Subscription:
    """
    Live watch on one store path.

    ``unsubscribe`` stops further callbacks and releases the watch; it is safe
    to call any number of times, including after the store was closed.
    """

    def __init__(
        self,
        path: str,
        callback: SnapshotCallback,
        release: Optional[Callable[["Subscription"], None]] = None,
    ):
        self.path = path
        self._callback = callback
        self._release = release
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def unsubscribe(self) -> None:
        if not self._active:
            return
        self._active = False
        release, self._release = self._release, None
        if release:
            release(self)

    async def deliver(self, snapshot: Any) -> None:
        """Hand a snapshot to the callback; listener errors never reach the writer"""
        if not self._active:
            return
        try:
            result = self._callback(snapshot)
            if inspect.isawaitable(result):
                await result
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception(f"Subscriber callback failed for path {self.path}")


class RealtimeStore(ABC):
    """
    Hierarchical realtime key-value store.

    Values are JSON-compatible; a dict is a node, anything else a leaf. Empty
    nodes do not exist: reading them returns None. Every write is atomic for
    its own path; nothing spans paths.
    """

    def __init__(self):
        self._last_id_ms = 0
        self._id_seq = 0

    def generate_id(self) -> str:
        """Time-ordered, collision-resistant key (lexical order == creation order)"""
        now_ms = int(time.time() * 1000)
        if now_ms <= self._last_id_ms:
            now_ms = self._last_id_ms
            self._id_seq += 1
        else:
            self._id_seq = 0
        self._last_id_ms = now_ms
        return f"{now_ms:012x}{self._id_seq:04x}{secrets.token_hex(4)}"

    async def append_unique(self, path: str, value: Dict[str, Any]) -> str:
        """Store value under a freshly generated child key and return the key"""
        child_id = self.generate_id()
        await self.write(join(path, child_id), value)
        return child_id

    @abstractmethod
    async def read(self, path: str) -> Any:
        """Current value at path, or None"""

    @abstractmethod
    async def write(self, path: str, value: Any) -> None:
        """Replace the value at path (None removes it)"""

    @abstractmethod
    async def merge(self, path: str, partial: Dict[str, Any]) -> None:
        """Replace only the given children of path; keys may be relative sub-paths"""

    @abstractmethod
    async def merge_existing(self, path: str, partial: Dict[str, Any]) -> bool:
        """
        Merge like ``merge``, but only while a value exists at path.

        The existence check and the merge are one atomic step, so a record
        removed concurrently is never recreated from the partial alone.

        Returns:
            True if merged, False if nothing exists at path
        """

    @abstractmethod
    async def remove(self, path: str) -> None:
        """Remove path and everything below it; removing a missing path is a no-op"""

    @abstractmethod
    async def subscribe(self, path: str, callback: SnapshotCallback) -> Subscription:
        """Deliver the current snapshot now and again after every change under path"""

    @abstractmethod
    async def close(self) -> None:
        """Release connections and stop every subscription"""
