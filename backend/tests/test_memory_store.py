"""Tests for the in-memory realtime store"""

import pytest

from marine_workorders.exceptions import ValidationFailed
from marine_workorders.store import InMemoryStore, TenantPaths
from marine_workorders.store.paths import is_ancestor_or_self, join, overlaps, validate_key


class TestPaths:
    """Test path helpers and tenant layout"""

    def test_join_strips_slashes(self):
        assert join("tenants/", "/t1", "workOrders") == "tenants/t1/workOrders"

    def test_validate_key_rejects_reserved_characters(self):
        for bad in ["a/b", "a.b", "a#b", "a$b", "a[b", "a]b", ""]:
            with pytest.raises(ValidationFailed):
                validate_key(bad)

    def test_overlaps(self):
        assert is_ancestor_or_self("a/b", "a/b/c")
        assert overlaps("a/b/c", "a/b")
        assert overlaps("a/b", "a/b/c")
        assert not overlaps("a/b", "a/bc")

    def test_tenant_layout(self):
        paths = TenantPaths("acme")

        assert paths.work_order("wo1") == "tenants/acme/workOrders/wo1"
        assert paths.history_event("wo1", "e1") == "tenants/acme/workOrdersStatusHistory/wo1/e1"
        assert paths.photo("wo1", "p1") == "tenants/acme/workOrders/wo1/photos/p1"
        assert paths.photo_blob("wo1", "p1", "jpg") == "tenants/acme/workOrders/wo1/p1.jpg"
        assert paths.collection("clients") == "tenants/acme/clients"


@pytest.mark.asyncio
class TestInMemoryStore:
    """Test read/write semantics"""

    async def test_write_and_read(self):
        store = InMemoryStore()
        await store.write("a/b", {"x": 1, "y": {"z": "v"}})

        assert await store.read("a/b") == {"x": 1, "y": {"z": "v"}}
        assert await store.read("a/b/y/z") == "v"
        assert await store.read("a") == {"b": {"x": 1, "y": {"z": "v"}}}

    async def test_read_missing_returns_none(self):
        store = InMemoryStore()
        assert await store.read("nothing/here") is None

    async def test_read_returns_copy(self):
        store = InMemoryStore()
        await store.write("a", {"x": 1})
        value = await store.read("a")
        value["x"] = 2

        assert await store.read("a") == {"x": 1}

    async def test_none_leaves_are_pruned(self):
        store = InMemoryStore()
        await store.write("a", {"x": 1, "y": None, "z": {}})

        assert await store.read("a") == {"x": 1}

    async def test_merge_touches_only_given_children(self):
        store = InMemoryStore()
        await store.write("a", {"x": 1, "y": 2})
        await store.merge("a", {"y": 3, "n/m": "deep"})

        assert await store.read("a") == {"x": 1, "y": 3, "n": {"m": "deep"}}

    async def test_merge_none_removes_child(self):
        store = InMemoryStore()
        await store.write("a", {"x": 1, "y": 2})
        await store.merge("a", {"y": None})

        assert await store.read("a") == {"x": 1}

    async def test_merge_existing_updates_present_value(self):
        store = InMemoryStore()
        await store.write("a", {"x": 1})

        assert await store.merge_existing("a", {"y": 2}) is True
        assert await store.read("a") == {"x": 1, "y": 2}

    async def test_merge_existing_never_recreates_removed_value(self):
        store = InMemoryStore()
        await store.write("a", {"x": 1})
        await store.remove("a")
        snapshots = []
        await store.subscribe("a", snapshots.append)

        assert await store.merge_existing("a", {"status": "DONE"}) is False
        assert await store.read("a") is None
        assert snapshots == [None]

    async def test_remove_cleans_empty_parents(self):
        store = InMemoryStore()
        await store.write("a/b/c", 1)
        await store.remove("a/b/c")

        assert await store.read("a") is None

    async def test_remove_missing_is_noop(self):
        store = InMemoryStore()
        await store.remove("a/b")
        assert await store.read("a") is None

    async def test_append_unique_generates_ordered_ids(self):
        store = InMemoryStore()
        ids = [await store.append_unique("items", {"n": n}) for n in range(5)]

        assert ids == sorted(ids)
        assert len(set(ids)) == 5
        snapshot = await store.read("items")
        assert [snapshot[i]["n"] for i in sorted(snapshot)] == [0, 1, 2, 3, 4]


@pytest.mark.asyncio
class TestSubscriptions:
    """Test live snapshot delivery"""

    async def test_initial_snapshot_delivered(self):
        store = InMemoryStore()
        await store.write("a/b", 1)
        received = []

        await store.subscribe("a", received.append)

        assert received == [{"b": 1}]

    async def test_snapshot_after_descendant_write(self):
        store = InMemoryStore()
        received = []
        await store.subscribe("a", received.append)

        await store.write("a/b/c", 1)
        await store.merge("a/b", {"d": 2})

        assert received == [None, {"b": {"c": 1}}, {"b": {"c": 1, "d": 2}}]

    async def test_snapshot_after_ancestor_write(self):
        store = InMemoryStore()
        received = []
        await store.subscribe("a/b", received.append)

        await store.write("a", {"b": 5, "c": 6})
        await store.remove("a")

        assert received == [None, 5, None]

    async def test_unrelated_write_not_delivered(self):
        store = InMemoryStore()
        received = []
        await store.subscribe("a", received.append)

        await store.write("b", 1)

        assert received == [None]

    async def test_unsubscribe_is_idempotent(self):
        store = InMemoryStore()
        received = []
        subscription = await store.subscribe("a", received.append)

        subscription.unsubscribe()
        subscription.unsubscribe()
        await store.write("a", 1)

        assert received == [None]
        assert not subscription.active
        assert store.subscription_count == 0

    async def test_unsubscribe_after_close(self):
        store = InMemoryStore()
        subscription = await store.subscribe("a", lambda snapshot: None)

        await store.close()
        subscription.unsubscribe()

        assert not subscription.active

    async def test_async_callback_awaited(self):
        store = InMemoryStore()
        received = []

        async def on_snapshot(snapshot):
            received.append(snapshot)

        await store.subscribe("a", on_snapshot)
        await store.write("a", "v")

        assert received == [None, "v"]

    async def test_failing_callback_does_not_break_writer(self):
        store = InMemoryStore()
        received = []

        def broken(snapshot):
            raise RuntimeError("listener bug")

        await store.subscribe("a", broken)
        await store.subscribe("a", received.append)
        await store.write("a", 1)

        assert await store.read("a") == 1
        assert received == [None, 1]
