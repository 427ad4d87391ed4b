"""In-process realtime store for development and tests"""

import copy
import logging
from typing import Any, Dict, List

from marine_workorders.store.base import RealtimeStore, SnapshotCallback, Subscription
from marine_workorders.store.paths import join, overlaps, split

logger = logging.getLogger(__name__)


class InMemoryStore(RealtimeStore):
    """
    Nested-dict store with synchronous fan-out.

    Subscribers are notified after each write completes, before the write
    coroutine returns, always with a fresh snapshot of their own path.
    """

    def __init__(self):
        super().__init__()
        self._root: Dict[str, Any] = {}
        self._subscriptions: List[Subscription] = []

    async def read(self, path: str) -> Any:
        return copy.deepcopy(self._lookup(path))

    async def write(self, path: str, value: Any) -> None:
        self._set(path, value)
        await self._notify(path)

    async def merge(self, path: str, partial: Dict[str, Any]) -> None:
        for key, value in partial.items():
            self._set(join(path, key), value)
        await self._notify(path)

    async def merge_existing(self, path: str, partial: Dict[str, Any]) -> bool:
        # No await between the check and the writes
        if self._lookup(path) is None:
            return False
        await self.merge(path, partial)
        return True

    async def remove(self, path: str) -> None:
        self._set(path, None)
        await self._notify(path)

    async def subscribe(self, path: str, callback: SnapshotCallback) -> Subscription:
        subscription = Subscription(path, callback, release=self._release)
        self._subscriptions.append(subscription)
        await subscription.deliver(await self.read(path))
        return subscription

    async def close(self) -> None:
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()

    @property
    def subscription_count(self) -> int:
        return len(self._subscriptions)

    def _release(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    def _lookup(self, path: str) -> Any:
        node: Any = self._root
        for key in split(path):
            if not isinstance(node, dict) or key not in node:
                return None
            node = node[key]
        return node

    def _set(self, path: str, value: Any) -> None:
        keys = split(path)
        if not keys:
            raise ValueError("Cannot write the store root")

        value = _prune(copy.deepcopy(value))
        if value is None:
            self._delete(keys)
            return

        node = self._root
        for key in keys[:-1]:
            child = node.get(key)
            # Writing below a leaf replaces the leaf with a node
            if not isinstance(child, dict):
                child = {}
                node[key] = child
            node = child
        node[keys[-1]] = value

    def _delete(self, keys: List[str]) -> None:
        trail = []
        node = self._root
        for key in keys[:-1]:
            if not isinstance(node.get(key), dict):
                return
            trail.append((node, key))
            node = node[key]
        node.pop(keys[-1], None)
        # Drop parents left empty
        for parent, key in reversed(trail):
            if parent[key]:
                break
            del parent[key]

    async def _notify(self, path: str) -> None:
        for subscription in list(self._subscriptions):
            if subscription.active and overlaps(subscription.path, path):
                await subscription.deliver(await self.read(subscription.path))


def _prune(value: Any) -> Any:
    """Drop None leaves and empty nodes, mirroring what reads can observe"""
    if not isinstance(value, dict):
        return value
    pruned = {}
    for key, child in value.items():
        child = _prune(child)
        if child is not None:
            pruned[key] = child
    return pruned or None
