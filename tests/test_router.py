"""Tests for the incoming sync API routes."""

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from incoming_sync.core.errors import ExplorerHTTPError
from incoming_sync.sync.router import router
from incoming_sync.sync.service import set_coordinator
from incoming_sync.sync.state import EngineState

GOERLI = "0x5"


@pytest.fixture
def engine(make_engine, make_tx):
    engine = make_engine(
        transactions={GOERLI: [make_tx(), make_tx(hash="0xnewer", block_number="12")]},
        initial_state=EngineState(cursors={GOERLI: 1}),
    )
    set_coordinator(engine.coordinator)
    yield engine
    set_coordinator(None)


@pytest.fixture
def client(engine):
    app = FastAPI()
    app.include_router(router)
    return TestClient(app)


class TestIncomingRoutes:
    def test_status_before_sync(self, client):
        response = client.get("/incoming/status")

        assert response.status_code == 200
        data = response.json()
        assert data["chain_id"] == GOERLI
        assert data["cursor"] == 1
        assert data["transaction_count"] == 0
        assert data["last_result"] is None

    def test_manual_sync(self, client):
        response = client.post("/incoming/sync")

        assert response.status_code == 200
        data = response.json()
        assert data["outcome"] == "synced"
        assert data["details"]["cursor"] == 13
        assert data["details"]["new"] == 2

        status = client.get("/incoming/status").json()
        assert status["transaction_count"] == 2
        assert status["last_result"]["outcome"] == "synced"

    def test_transactions_after_sync(self, client):
        client.post("/incoming/sync")

        response = client.get("/incoming/transactions", params={"chain_id": GOERLI})

        assert response.status_code == 200
        data = response.json()
        assert data["count"] == 2
        assert [tx["hash"] for tx in data["transactions"]] == ["0xnewer", "0xfake"]
        assert data["transactions"][1]["params"]["gasPrice"] == "0x0"
        assert data["transactions"][1]["status"] == "confirmed"

    def test_transactions_for_all_chains(self, client):
        client.post("/incoming/sync")

        data = client.get("/incoming/transactions").json()

        assert data["chain_id"] is None
        assert data["count"] == 2

    def test_unknown_chain_is_404(self, client):
        response = client.get("/incoming/transactions", params={"chain_id": "0x539"})
        assert response.status_code == 404

    def test_failed_sync_is_reported(self, client, engine):
        engine.client.fail_with = ExplorerHTTPError("explorer returned HTTP 502", 502)

        data = client.post("/incoming/sync").json()

        assert data["outcome"] == "failed"
        assert data["message"].startswith("Sync failed")
        assert client.get("/incoming/status").json()["cursor"] == 1

    def test_gated_sync_is_reported(self, client, engine):
        engine.onboarding.completed_onboarding = False

        data = client.post("/incoming/sync").json()

        assert data["outcome"] == "gated"
        assert data["message"] == "Sync skipped: onboarding_incomplete"

    def test_metrics(self, client):
        client.post("/incoming/sync")

        data = client.get("/incoming/metrics").json()

        assert data["aggregate"]["total_cycles"] == 1
        assert data["success_rate"] == 1.0
        assert len(data["history"]) == 1


class TestAppRoutes:
    def test_health_endpoints(self):
        from incoming_sync.main import app

        client = TestClient(app)
        assert client.get("/").json() == {"status": "ok"}
        response = client.get("/healthz")
        assert response.json()["status"] == "healthy"
        assert "x-request-id" in response.headers
