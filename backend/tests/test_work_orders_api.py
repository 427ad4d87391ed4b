"""Tests for work order, history and transition endpoints"""

import pytest
from fastapi import status
from httpx import AsyncClient


async def create_work_order(async_client: AsyncClient, **overrides) -> str:
    payload = {"client_id": "client-1", "reported_defect": "Bilge pump runs continuously", **overrides}
    response = await async_client.post("/api/v1/work-orders", json=payload, headers={"X-Actor-Id": "tech-1"})
    assert response.status_code == status.HTTP_201_CREATED
    return response.json()["id"]


@pytest.mark.asyncio
class TestWorkOrderCrud:
    """Test work order CRUD endpoints"""

    async def test_create_and_get(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client, priority="high")

        response = await async_client.get(f"/api/v1/work-orders/{work_order_id}")

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert data["id"] == work_order_id
        assert data["code"] == "PENDING"
        assert data["status"] == "UNDER_REVIEW"
        assert data["priority"] == "high"
        assert data["created_by"] == "tech-1"
        assert data["photos"] == []

    async def test_create_missing_defect(self, async_client: AsyncClient):
        response = await async_client.post("/api/v1/work-orders", json={"client_id": "c1"})

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        data = response.json()
        assert data["type"].endswith("/validation_error")
        assert data["errors"]

    async def test_get_missing(self, async_client: AsyncClient):
        response = await async_client.get("/api/v1/work-orders/missing")

        assert response.status_code == status.HTTP_404_NOT_FOUND
        data = response.json()
        assert data["title"] == "Not Found"
        assert data["instance"] == "/api/v1/work-orders/missing"

    async def test_list_with_filters(self, async_client: AsyncClient):
        leak = await create_work_order(async_client, reported_defect="Hull leak", priority="critical")
        await create_work_order(async_client, reported_defect="Radar drift", priority="low")

        response = await async_client.get("/api/v1/work-orders", params={"q": "leak"})
        assert [row["id"] for row in response.json()] == [leak]
        assert response.json()[0]["client_name"] == "-"

        response = await async_client.get("/api/v1/work-orders", params={"priority": "low"})
        assert len(response.json()) == 1

        response = await async_client.get("/api/v1/work-orders", params={"status": "DONE"})
        assert response.json() == []

    async def test_patch_fields(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client)

        response = await async_client.patch(
            f"/api/v1/work-orders/{work_order_id}", json={"service_report": "Replaced float switch"}
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json()["service_report"] == "Replaced float switch"

    async def test_patch_status_is_conflict(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client)

        response = await async_client.patch(f"/api/v1/work-orders/{work_order_id}", json={"status": "DONE"})

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["type"].endswith("/invalid_transition")

    async def test_delete(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client)

        response = await async_client.delete(f"/api/v1/work-orders/{work_order_id}")
        assert response.status_code == status.HTTP_204_NO_CONTENT

        response = await async_client.get(f"/api/v1/work-orders/{work_order_id}/history")
        assert response.status_code == status.HTTP_404_NOT_FOUND


@pytest.mark.asyncio
class TestTransitions:
    """Test transition and history endpoints"""

    async def test_scenario_transition_then_history(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client)

        response = await async_client.post(
            f"/api/v1/work-orders/{work_order_id}/transitions",
            json={"target_status": "IN_PROGRESS"},
            headers={"X-Actor-Id": "tech-2"},
        )

        assert response.status_code == status.HTTP_201_CREATED
        event = response.json()
        assert event["from"] == "UNDER_REVIEW"
        assert event["to"] == "IN_PROGRESS"
        assert event["changed_by"] == "tech-2"

        response = await async_client.get(f"/api/v1/work-orders/{work_order_id}/history")
        history = response.json()
        assert history["consistency"] == "consistent"
        assert [(e["from"], e["to"]) for e in history["events"]] == [
            (None, "UNDER_REVIEW"),
            ("UNDER_REVIEW", "IN_PROGRESS"),
        ]

        response = await async_client.get(
            f"/api/v1/work-orders/{work_order_id}/history", params={"order": "descending"}
        )
        assert response.json()["events"][0]["to"] == "IN_PROGRESS"

    async def test_same_status_is_no_op(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client)

        response = await async_client.post(
            f"/api/v1/work-orders/{work_order_id}/transitions", json={"target_status": "UNDER_REVIEW"}
        )

        assert response.status_code == status.HTTP_409_CONFLICT
        assert response.json()["type"].endswith("/no_op")

    async def test_done_without_report_is_guard_failure(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client)

        response = await async_client.post(
            f"/api/v1/work-orders/{work_order_id}/transitions", json={"target_status": "DONE"}
        )

        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        data = response.json()
        assert data["reason"] == "report-required"
        assert data["action"] == "open_work_order"
        assert data["prompt"]

    async def test_awaiting_part_needs_note(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client)
        url = f"/api/v1/work-orders/{work_order_id}/transitions"

        response = await async_client.post(url, json={"target_status": "AWAITING_PART"})
        assert response.status_code == status.HTTP_422_UNPROCESSABLE_ENTITY
        assert response.json()["reason"] == "note-required"

        response = await async_client.post(url, json={"target_status": "AWAITING_PART", "note": "Seal kit ordered"})
        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["note"] == "Seal kit ordered"

    async def test_unknown_status_rejected(self, async_client: AsyncClient):
        work_order_id = await create_work_order(async_client)

        response = await async_client.post(
            f"/api/v1/work-orders/{work_order_id}/transitions", json={"target_status": "SHIPPED"}
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    async def test_transition_missing_work_order(self, async_client: AsyncClient):
        response = await async_client.post(
            "/api/v1/work-orders/missing/transitions", json={"target_status": "DONE"}
        )

        assert response.status_code == status.HTTP_404_NOT_FOUND
