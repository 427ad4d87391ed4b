"""Tests for board, dashboard and reference endpoints"""

import pytest
from fastapi import status
from httpx import AsyncClient


@pytest.mark.asyncio
class TestBoardEndpoints:
    """Test board columns and moves"""

    async def test_columns(self, async_client: AsyncClient, work_order_id):
        response = await async_client.get("/api/v1/board")

        assert response.status_code == status.HTTP_200_OK
        columns = response.json()["columns"]
        assert list(columns) == [
            "UNDER_REVIEW",
            "AWAITING_PART",
            "AWAITING_BUDGET_APPROVAL",
            "IN_PROGRESS",
            "DONE",
            "CANCELED",
        ]
        assert [card["id"] for card in columns["UNDER_REVIEW"]] == [work_order_id]

    async def test_move_committed(self, async_client: AsyncClient, work_order_id):
        response = await async_client.post(
            "/api/v1/board/moves", json={"work_order_id": work_order_id, "target_status": "IN_PROGRESS"}
        )

        data = response.json()
        assert data["outcome"] == "committed"
        assert data["event"]["note"] == "moved via board"
        assert data["event"]["to"] == "IN_PROGRESS"

    async def test_move_rejected(self, async_client: AsyncClient, work_order_id):
        response = await async_client.post(
            "/api/v1/board/moves", json={"work_order_id": work_order_id, "target_status": "DONE"}
        )

        data = response.json()
        assert response.status_code == status.HTTP_200_OK
        assert data["outcome"] == "rejected"
        assert data["action"] == "open_work_order"

    async def test_note_required_then_confirm(self, async_client: AsyncClient, work_order_id):
        response = await async_client.post(
            "/api/v1/board/moves", json={"work_order_id": work_order_id, "target_status": "AWAITING_PART"}
        )
        pending_move_id = response.json()["pending_move_id"]
        assert response.json()["outcome"] == "note_required"

        response = await async_client.post(f"/api/v1/board/moves/{pending_move_id}/confirm", json={"note": ""})
        assert response.json()["outcome"] == "note_required"

        response = await async_client.post(
            f"/api/v1/board/moves/{pending_move_id}/confirm", json={"note": "Impeller on order"}
        )
        assert response.json()["outcome"] == "committed"

        response = await async_client.get(f"/api/v1/work-orders/{work_order_id}")
        assert response.json()["status"] == "AWAITING_PART"

    async def test_cancel_move(self, async_client: AsyncClient, work_order_id):
        response = await async_client.post(
            "/api/v1/board/moves", json={"work_order_id": work_order_id, "target_status": "AWAITING_BUDGET_APPROVAL"}
        )
        pending_move_id = response.json()["pending_move_id"]

        response = await async_client.delete(f"/api/v1/board/moves/{pending_move_id}")
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = await async_client.delete(f"/api/v1/board/moves/{pending_move_id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
class TestDashboardEndpoint:
    """Test dashboard endpoint"""

    async def test_dashboard(self, async_client: AsyncClient, work_order_id):
        response = await async_client.get("/api/v1/dashboard")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["kpis"]["active"] == 1
        assert data["queue"][0]["id"] == work_order_id
        assert data["queue"][0]["age"] == "now"
        assert data["focus_now"] == []


@pytest.mark.asyncio
class TestReferenceEndpoints:
    """Test client, vessel and equipment CRUD"""

    @pytest.mark.parametrize(
        "collection,payload,update",
        [
            ("clients", {"name": "Harbor Ferries"}, {"phone": "555-0101"}),
            ("vessels", {"name": "MV Gull", "registration": "NO-1"}, {"type": "ferry"}),
            ("equipment", {"name": "Main winch", "system_type": "hydraulic"}, {"serial": "W-42"}),
        ],
    )
    async def test_crud(self, async_client: AsyncClient, collection, payload, update):
        base = f"/api/v1/{collection}"

        response = await async_client.post(base, json=payload)
        assert response.status_code == status.HTTP_201_CREATED
        record_id = response.json()["id"]

        response = await async_client.patch(f"{base}/{record_id}", json=update)
        assert response.status_code == status.HTTP_200_OK
        for key, value in {**payload, **update}.items():
            assert response.json()[key] == value

        response = await async_client.get(base)
        assert [r["id"] for r in response.json()] == [record_id]

        response = await async_client.delete(f"{base}/{record_id}")
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = await async_client.get(f"{base}/{record_id}")
        assert response.status_code == status.HTTP_404_NOT_FOUND

    async def test_patch_read_only_field(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/clients", json={"name": "A"})
        record_id = response.json()["id"]

        response = await async_client.patch(f"/api/v1/clients/{record_id}", json={"id": "other"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
