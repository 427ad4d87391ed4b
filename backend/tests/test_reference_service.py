"""Tests for client, vessel and equipment repositories"""

import pytest
from unittest.mock import AsyncMock, patch

from marine_workorders.exceptions import NotFound, ValidationFailed
from marine_workorders.models import SystemType


@pytest.mark.asyncio
class TestReferenceRepositories:
    """Test the shared create/update/delete/subscribe contract"""

    async def test_create_stamps_timestamps(self, container, clock):
        client_id = await container.clients.create({"name": "Harbor Ferries", "phone": "555-0101"})

        client = await container.clients.get(client_id)
        assert client.name == "Harbor Ferries"
        assert client.created_at == clock.now
        assert client.updated_at == clock.now

    async def test_create_requires_name(self, container):
        with pytest.raises(ValidationFailed):
            await container.vessels.create({"registration": "NO-123"})

    async def test_create_rejects_unknown_fields(self, container):
        with pytest.raises(ValidationFailed, match="Unknown"):
            await container.clients.create({"name": "A", "fax": "none"})

    async def test_update_merges(self, container, clock):
        equipment_id = await container.equipment.create({"name": "Winch", "serial": "W-1"})
        clock.advance(hours=1)

        await container.equipment.update(equipment_id, {"system_type": "offshore"})

        equipment = await container.equipment.get(equipment_id)
        assert equipment.system_type == SystemType.OFFSHORE
        assert equipment.serial == "W-1"
        assert equipment.updated_at == clock.now
        assert equipment.created_at < equipment.updated_at

    async def test_update_read_only_fields(self, container):
        client_id = await container.clients.create({"name": "A"})

        with pytest.raises(ValidationFailed, match="cannot be updated"):
            await container.clients.update(client_id, {"created_at": "2020-01-01T00:00:00Z"})

    async def test_update_missing(self, container):
        with pytest.raises(NotFound):
            await container.vessels.update("missing", {"name": "B"})

    async def test_update_after_concurrent_delete(self, container, store, paths):
        vessel_id = await container.vessels.create({"name": "Sea Breeze"})
        stale = await container.vessels.get(vessel_id)
        await container.vessels.delete(vessel_id)

        with patch.object(container.vessels, "get", AsyncMock(return_value=stale)):
            with pytest.raises(NotFound):
                await container.vessels.update(vessel_id, {"registration": "NO-123"})

        assert await store.read(paths.collection("vessels")) is None

    async def test_list_most_recently_updated_first(self, container, clock):
        first = await container.clients.create({"name": "First"})
        clock.advance(minutes=1)
        second = await container.clients.create({"name": "Second"})
        clock.advance(minutes=1)
        await container.clients.update(first, {"email": "ops@first.example"})

        assert [c.id for c in await container.clients.list()] == [first, second]

    async def test_delete_does_not_cascade(self, container, work_orders):
        client_id = await container.clients.create({"name": "Gone Soon"})
        work_order_id = await work_orders.create({"client_id": client_id, "reported_defect": "Leak"})

        await container.clients.delete(client_id)

        assert await container.clients.find(client_id) is None
        assert (await work_orders.get(work_order_id)).client_id == client_id

    async def test_subscribe_collection(self, container):
        snapshots = []
        subscription = await container.vessels.subscribe(None, snapshots.append)

        vessel_id = await container.vessels.create({"name": "MV Gull"})
        subscription.unsubscribe()

        assert snapshots[0] == []
        assert [v.id for v in snapshots[-1]] == [vessel_id]
