"""Tests for live WebSocket streams"""

import pytest
from fastapi.testclient import TestClient

from marine_workorders.main import app


@pytest.fixture
def client(container):
    """FastAPI test client fixture"""
    app.state.container = container
    with TestClient(app) as test_client:
        yield test_client
    app.state.container = None


def create_work_order(client: TestClient) -> str:
    response = client.post("/api/v1/work-orders", json={"client_id": "c1", "reported_defect": "Leak"})
    return response.json()["id"]


class TestWorkOrderStreams:
    """Test snapshot delivery over WebSocket"""

    def test_work_order_stream(self, client):
        work_order_id = create_work_order(client)

        with client.websocket_connect(f"/api/v1/ws/work-orders/{work_order_id}") as websocket:
            message = websocket.receive_json()
            assert message["type"] == "work_order"
            assert message["data"]["id"] == work_order_id

            websocket.send_json({"type": "ping"})
            assert websocket.receive_json() == {"type": "pong"}

    def test_missing_work_order_stream(self, client):
        with client.websocket_connect("/api/v1/ws/work-orders/missing") as websocket:
            assert websocket.receive_json() == {"type": "work_order", "data": None}

    def test_collection_stream(self, client):
        work_order_id = create_work_order(client)

        with client.websocket_connect("/api/v1/ws/work-orders") as websocket:
            message = websocket.receive_json()
            assert message["type"] == "work_orders"
            assert [row["id"] for row in message["data"]] == [work_order_id]

    def test_history_stream(self, client):
        work_order_id = create_work_order(client)

        with client.websocket_connect(f"/api/v1/ws/work-orders/{work_order_id}/history") as websocket:
            message = websocket.receive_json()
            assert message["type"] == "history"
            assert message["data"]["consistency"] == "consistent"
            assert [e["to"] for e in message["data"]["events"]] == ["UNDER_REVIEW"]

    def test_board_stream(self, client):
        work_order_id = create_work_order(client)

        with client.websocket_connect("/api/v1/ws/board") as websocket:
            message = websocket.receive_json()
            assert message["type"] == "board"
            assert [card["id"] for card in message["data"]["UNDER_REVIEW"]] == [work_order_id]
