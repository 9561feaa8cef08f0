"""Tests for the FastAPI control API."""

import asyncio

import pytest
from fastapi.testclient import TestClient

from autocart.backend.main import create_app


class IdleRunner:
    """Stands in for the browser runner: runs until cancelled"""

    instances = []

    def __init__(self):
        self.started_with = None
        self.closed = False
        IdleRunner.instances.append(self)

    async def run(self, keyword=None, already_started=False):
        self.started_with = already_started
        await asyncio.sleep(3600)

    async def close(self):
        self.closed = True


@pytest.fixture
def api(coordinator):
    with TestClient(create_app(coordinator)) as test_client:
        yield test_client


def test_root(api):
    response = api.get("/")
    assert response.status_code == 200
    assert response.json()["message"] == "autocart API is running"


def test_initial_state(api):
    data = api.get("/api/state").json()
    assert data["is_running"] is False
    assert data["processed_products"] == 0
    assert data["browser_active"] is False


def test_start_and_stop(api):
    response = api.post("/api/automation/start", json={"keyword": "女裝"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["state"]["is_running"] is True
    assert body["state"]["search_term"] == "女裝"

    body = api.post("/api/automation/stop").json()
    assert body["state"]["is_running"] is False
    assert api.get("/api/state").json()["search_term"] == "女裝"


def test_start_without_keyword(api):
    body = api.post("/api/automation/start", json={}).json()
    assert body["state"]["search_term"] != ""


def test_processed_list_and_clear(api, tracker):
    tracker.mark_processed("1_2")
    tracker.mark_processed("3_4")

    assert api.get("/api/processed").json() == {"count": 2, "product_ids": ["1_2", "3_4"]}
    assert api.delete("/api/processed").json() == {"success": True, "cleared": 2}
    assert api.get("/api/state").json()["processed_products"] == 0


def test_config(api):
    data = api.get("/api/config").json()
    assert data["max_carts_with_variants"] == 5
    assert data["max_carts_no_variants"] == 3


def test_logs(api):
    api.post("/api/automation/start", json={"keyword": "男裝"})
    messages = [entry["message"] for entry in api.get("/api/logs").json()]
    assert "Automation started, keyword: 男裝" in messages


def test_start_launches_one_background_runner(coordinator):
    IdleRunner.instances.clear()
    with TestClient(create_app(coordinator, runner_factory=IdleRunner)) as api:
        assert api.post("/api/automation/start", json={"keyword": "女裝"}).status_code == 200
        assert api.get("/api/state").json()["browser_active"] is True
        assert api.post("/api/automation/start", json={"keyword": "男裝"}).status_code == 409

    assert len(IdleRunner.instances) == 1
    runner = IdleRunner.instances[0]
    assert runner.started_with is True
    assert runner.closed is True


def test_events_websocket(api):
    with api.websocket_connect("/ws/events") as websocket:
        api.post("/api/automation/start", json={"keyword": "女裝"})
        message = websocket.receive_json()
        assert message["type"] == "STATE_UPDATE"
        assert message["payload"]["search_term"] == "女裝"
