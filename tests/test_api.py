"""Tests for the HTTP API."""

import pytest
from fastapi.testclient import TestClient

from agentfleet.api import create_fastapi_app
from agentfleet.app import Application
from agentfleet.config import load_config
from agentfleet.models import CIStatus
from conftest import make_pr, serve_prs


@pytest.fixture
def client(gateway):
    config = load_config(
        {
            "owner": "acme",
            "repo": "widgets",
            "auto_merge": {"enabled": False},
            "agents": [
                {
                    "id": "heartbeat",
                    "agent_type": "echo",
                    "persona": {"name": "Heartbeat", "role": "Echo"},
                    "domain": {"write_paths": ["status/**"]},
                }
            ],
        }
    )
    application = Application(config, db_path=":memory:", gateway=gateway)
    with TestClient(create_fastapi_app(application)) as test_client:
        yield test_client


class TestStatus:
    """Tests for GET /api/status."""

    def test_status(self, client):
        """Test the coordinator status summary."""
        response = client.get("/api/status")

        assert response.status_code == 200
        data = response.json()
        assert data["state"] == "running"
        assert data["agent_count"] == 1
        assert data["agent_statuses"] == [{"id": "heartbeat", "status": "idle"}]
        assert data["total_runs"] == 0
        assert data["last_run"] is None


class TestControl:
    """Tests for /api/control routes."""

    def test_run(self, client, gateway):
        """Test triggering a run."""
        serve_prs(gateway, [make_pr(1, CIStatus.SUCCESS)])

        response = client.post("/api/control/run", json={"dry_run": True})

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "success"
        assert data["agent_results"][0]["agent_id"] == "heartbeat"
        assert data["pr_decisions"][0]["action"] == "merge"
        gateway.merge_pr.assert_not_awaited()

    def test_runs_and_decisions_listed(self, client, gateway):
        """Test that runs and decisions are observable afterwards."""
        serve_prs(gateway, [make_pr(2, CIStatus.FAILURE)])
        client.post("/api/control/run", json={})

        runs = client.get("/api/runs").json()
        decisions = client.get("/api/decisions", params={"pr_number": 2}).json()
        latest = client.get("/api/decisions/2").json()

        assert len(runs) == 1
        assert decisions[0]["action"] == "review"
        assert latest["reason"] == "CI status: failure"

    def test_unknown_decision(self, client):
        """Test 404 for a PR without a decision."""
        assert client.get("/api/decisions/77").status_code == 404

    def test_stop(self, client):
        """Test stopping the coordinator."""
        response = client.post("/api/control/stop")

        assert response.json() == {"status": "ok"}
        assert client.get("/api/status").json()["state"] == "stopped"


class TestMessaging:
    """Tests for /api/messages routes."""

    def test_publish_and_read(self, client):
        """Test that published messages are stored and readable."""
        response = client.post(
            "/api/messages",
            json={
                "sender": "architect",
                "target": "heartbeat",
                "type": "request",
                "payload": {"task": "ping"},
            },
        )

        assert response.status_code == 200
        published = response.json()
        assert published["path"].startswith(".agents/messages/")
        assert published["path"].endswith(f"/{published['id']}.json")

        messages = client.get("/api/messages/heartbeat").json()
        requests = [m for m in messages if m["type"] == "request"]
        assert requests[0]["id"] == published["id"]
        assert requests[0]["payload"] == {"task": "ping"}

    def test_invalid_type_rejected(self, client):
        """Test that unknown message types fail validation."""
        response = client.post(
            "/api/messages",
            json={"sender": "a", "target": "b", "type": "gossip"},
        )

        assert response.status_code == 422
