"""Redis-backed realtime store with pub/sub change notifications"""

import asyncio
import json
import logging
import time
from typing import Any, Dict, Iterable, List, Optional, Tuple

import redis.asyncio as redis
from redis.exceptions import RedisError
from tenacity import (
    AsyncRetrying,
    before_sleep_log,
    retry_if_exception_type,
    wait_exponential,
)

from marine_workorders.exceptions import StoreUnavailable
from marine_workorders.monitoring.metrics import metrics_collector
from marine_workorders.store.base import RealtimeStore, SnapshotCallback, Subscription
from marine_workorders.store.paths import join, overlaps, split

logger = logging.getLogger(__name__)


def flatten(path: str, value: Any) -> Dict[str, str]:
    """
    Flatten a value into leaf paths mapped to JSON-encoded leaves.

    None leaves and empty nodes produce nothing.
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        return {path: json.dumps(value)}

    leaves: Dict[str, str] = {}
    for key, child in value.items():
        leaves.update(flatten(join(path, key), child))
    return leaves


def unflatten(path: str, leaves: Iterable[Tuple[str, Optional[str]]]) -> Any:
    """Rebuild the value at path from (leaf path, JSON) pairs"""
    base = split(path)
    result: Dict[str, Any] = {}
    for leaf_path, raw in leaves:
        if raw is None:
            continue
        keys = split(leaf_path)[len(base):]
        if not keys:
            return json.loads(raw)
        node = result
        for key in keys[:-1]:
            node = node.setdefault(key, {})
        node[keys[-1]] = json.loads(raw)
    return result or None


def ancestors(path: str) -> List[str]:
    keys = split(path)
    return ["/".join(keys[:i]) for i in range(1, len(keys))]


class RedisStore(RealtimeStore):
    """
    Realtime store on plain Redis.

    Every leaf lives as one field of a single hash; a sorted set of leaf paths
    (all scored 0) gives lexical range scans for subtrees. Writes run in a
    WATCHed MULTI transaction over the index and publish the changed path,
    so each single-path write is atomic and every listener re-reads its own
    snapshot on notification.
    """

    def __init__(self, url: str, key_prefix: str, reconnect_max_wait: float = 30.0):
        super().__init__()
        self.url = url
        self.reconnect_max_wait = reconnect_max_wait
        self.data_key = f"{key_prefix}:tree"
        self.index_key = f"{key_prefix}:paths"
        self.channel = f"{key_prefix}:changes"
        self._client: Optional[redis.Redis] = None
        self._pubsub = None
        self._listener: Optional[asyncio.Task] = None
        self._subscriptions: List[Subscription] = []

    async def get_client(self) -> redis.Redis:
        """Get or create Redis client"""
        if self._client is None:
            self._client = redis.from_url(
                self.url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    async def close(self):
        """Stop listening and close Redis connection"""
        for subscription in list(self._subscriptions):
            subscription.unsubscribe()
        await self._stop_listener()
        if self._client:
            await self._client.aclose()
            self._client = None

    async def read(self, path: str) -> Any:
        start = time.monotonic()
        try:
            client = await self.get_client()
            exact = await client.hget(self.data_key, path)
            if exact is not None:
                return json.loads(exact)
            leaf_paths = await self._descendants(client, path)
            if not leaf_paths:
                return None
            raw_values = await client.hmget(self.data_key, leaf_paths)
            return unflatten(path, zip(leaf_paths, raw_values))
        except RedisError as e:
            logger.error(f"Redis read failed for {path}: {e}")
            metrics_collector.record_store_failure("read")
            raise StoreUnavailable("read", str(e))
        finally:
            metrics_collector.record_store_duration("read", time.monotonic() - start)

    async def write(self, path: str, value: Any) -> None:
        await self._apply("write", path, {path: value})

    async def merge(self, path: str, partial: Dict[str, Any]) -> None:
        await self._apply("merge", path, {join(path, key): value for key, value in partial.items()})

    async def merge_existing(self, path: str, partial: Dict[str, Any]) -> bool:
        return await self._apply(
            "merge",
            path,
            {join(path, key): value for key, value in partial.items()},
            require_existing=True,
        )

    async def remove(self, path: str) -> None:
        await self._apply("remove", path, {path: None})

    async def subscribe(self, path: str, callback: SnapshotCallback) -> Subscription:
        subscription = Subscription(path, callback, release=self._release)
        self._subscriptions.append(subscription)
        try:
            await self._ensure_listener()
        except RedisError as e:
            subscription.unsubscribe()
            logger.error(f"Redis subscribe failed for {path}: {e}")
            metrics_collector.record_store_failure("subscribe")
            raise StoreUnavailable("subscribe", str(e))
        await subscription.deliver(await self.read(path))
        return subscription

    def _release(self, subscription: Subscription) -> None:
        if subscription in self._subscriptions:
            self._subscriptions.remove(subscription)

    async def _exists(self, client, path: str) -> bool:
        if await client.hexists(self.data_key, path):
            return True
        return bool(await self._descendants(client, path))

    async def _descendants(self, client, path: str) -> List[str]:
        # Every key starting with "path/" sorts in ["path/", "path0")
        return await client.zrangebylex(self.index_key, f"[{path}/", f"({path}0")

    async def _apply(
        self,
        operation: str,
        path: str,
        changes: Dict[str, Any],
        require_existing: bool = False,
    ) -> bool:
        """
        Replace each changed subtree atomically and announce the write.

        With require_existing, nothing is written unless a value exists at
        path when the transaction runs.

        Returns:
            True if applied
        """
        start = time.monotonic()

        async def replace(pipe) -> bool:
            if require_existing and not await self._exists(pipe, path):
                return False

            stale: List[str] = []
            for target in changes:
                stale.extend(await self._descendants(pipe, target))
                stale.append(target)
                parents = ancestors(target)
                if parents:
                    # A leaf above the target is replaced by the new node
                    existing = await pipe.hmget(self.data_key, parents)
                    stale.extend(p for p, raw in zip(parents, existing) if raw is not None)

            leaves: Dict[str, str] = {}
            for target, value in changes.items():
                leaves.update(flatten(target, value))

            pipe.multi()
            if stale:
                pipe.hdel(self.data_key, *stale)
                pipe.zrem(self.index_key, *stale)
            if leaves:
                pipe.hset(self.data_key, mapping=leaves)
                pipe.zadd(self.index_key, {leaf: 0 for leaf in leaves})
            pipe.publish(self.channel, path)
            return True

        try:
            client = await self.get_client()
            applied = await client.transaction(replace, self.index_key, value_from_callable=True)
            if applied:
                logger.debug(f"Redis {operation} applied at {path}")
            else:
                logger.info(f"Redis {operation} skipped at {path}: nothing exists there")
            return applied
        except RedisError as e:
            logger.error(f"Redis {operation} failed for {path}: {e}")
            metrics_collector.record_store_failure(operation)
            raise StoreUnavailable(operation, str(e))
        finally:
            metrics_collector.record_store_duration(operation, time.monotonic() - start)

    async def _ensure_listener(self) -> None:
        if self._listener is not None and not self._listener.done():
            return
        await self._close_pubsub()
        await self._open_pubsub()
        self._listener = asyncio.create_task(self._listen())

    async def _open_pubsub(self) -> None:
        client = await self.get_client()
        self._pubsub = client.pubsub()
        await self._pubsub.subscribe(self.channel)

    async def _close_pubsub(self) -> None:
        pubsub, self._pubsub = self._pubsub, None
        if pubsub is None:
            return
        try:
            await pubsub.unsubscribe(self.channel)
        except RedisError as e:
            logger.warning(f"Error unsubscribing Redis pubsub: {e}")
        try:
            await pubsub.aclose()
        except RedisError as e:
            logger.warning(f"Error closing Redis pubsub: {e}")

    async def _stop_listener(self) -> None:
        if self._listener is not None:
            self._listener.cancel()
            try:
                await self._listener
            except asyncio.CancelledError:
                pass
            self._listener = None
        await self._close_pubsub()

    async def _listen(self) -> None:
        """Fan change notifications out to overlapping subscriptions, reconnecting on connection loss"""
        while True:
            try:
                async for message in self._pubsub.listen():
                    if message.get("type") != "message":
                        continue
                    changed_path = message["data"]
                    for subscription in list(self._subscriptions):
                        if subscription.active and overlaps(subscription.path, changed_path):
                            await self._push(subscription)
                return
            except RedisError as e:
                logger.error(f"Redis change listener disconnected: {e}")
                metrics_collector.record_store_failure("listen")
                await self._reconnect()

    async def _reconnect(self) -> None:
        """Reopen the pubsub until it succeeds, then resend every live snapshot"""
        retrying = AsyncRetrying(
            retry=retry_if_exception_type(RedisError),
            wait=wait_exponential(multiplier=0.5, max=self.reconnect_max_wait),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )
        async for attempt in retrying:
            with attempt:
                await self._close_pubsub()
                await self._open_pubsub()
        logger.info(f"Redis change listener resubscribed to {self.channel}")

        # Changes published while disconnected were never seen
        for subscription in list(self._subscriptions):
            if subscription.active:
                await self._push(subscription)

    async def _push(self, subscription: Subscription) -> None:
        try:
            snapshot = await self.read(subscription.path)
        except StoreUnavailable:
            # Next notification re-reads the latest value anyway
            return
        await subscription.deliver(snapshot)
