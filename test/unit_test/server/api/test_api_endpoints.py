"""
Unit tests for the HTTP API.

Tests cover health/version, executing automations, reading and cancelling
runs, platform discovery and credential tests.
"""

import asyncio

import pytest
from httpx import AsyncClient

from automation_engine import __version__
from automation_engine.schemas.domain import Automation, AutomationRun, PlatformCredential

pytestmark = pytest.mark.asyncio

SLACK_BLUEPRINT = {
    "steps": [
        {
            "id": "send",
            "type": "action",
            "action": {
                "integration": "slack",
                "method": "post_message",
                "parameters": {"channel": "#general", "text": "{{text}}"},
                "output_variable": "sent",
            },
        }
    ]
}


class TestHealth:
    async def test_health(self, client: AsyncClient):
        response = await client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    async def test_version(self, client: AsyncClient):
        response = await client.get("/version")
        assert response.json()["version"] == __version__


class TestExecutions:
    async def test_execute_automation(self, client: AsyncClient, fake_repos):
        fake_repos.automations.add(Automation(id="auto-1", user_id="u1", blueprint=SLACK_BLUEPRINT))
        fake_repos.credentials.add(PlatformCredential(user_id="u1", platform_name="slack", credentials='{"token": "t"}'))

        response = await client.post(
            "/api/v1/executions", json={"automation_id": "auto-1", "user_id": "u1", "trigger_data": {"text": "hi"}}
        )

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["result"] == {"text": "hi", "sent": {"ok": True}}
        assert data["run_id"] in fake_repos.runs.by_id

    async def test_failed_execution_is_reported_in_body(self, client: AsyncClient, fake_repos):
        fake_repos.automations.add(Automation(id="auto-1", user_id="u1", blueprint=SLACK_BLUEPRINT))

        response = await client.post("/api/v1/executions", json={"automation_id": "auto-1", "user_id": "u1"})

        assert response.status_code == 200
        assert response.json()["success"] is False
        assert response.json()["error"] == "No credentials found for platform: slack"

    async def test_missing_fields(self, client: AsyncClient):
        response = await client.post("/api/v1/executions", json={"automation_id": "auto-1"})
        assert response.status_code == 422


class TestRuns:
    async def test_get_run(self, client: AsyncClient, fake_repos):
        await fake_repos.runs.create(AutomationRun(id="run-1", automation_id="auto-1", user_id="u1"))

        response = await client.get("/api/v1/runs/run-1")

        assert response.status_code == 200
        assert response.json()["status"] == "running"

    async def test_get_unknown_run(self, client: AsyncClient):
        response = await client.get("/api/v1/runs/missing")
        assert response.status_code == 404

    async def test_cancel_run_not_in_flight(self, client: AsyncClient, fake_repos):
        await fake_repos.runs.create(AutomationRun(id="run-1", automation_id="auto-1", user_id="u1"))

        response = await client.post("/api/v1/runs/run-1/cancel")

        assert response.status_code == 200
        assert response.json() == {"run_id": "run-1", "cancelled": False}

    async def test_cancel_run_in_flight(self, client: AsyncClient, fake_repos, service):
        fake_repos.automations.add(
            Automation(
                id="auto-1",
                user_id="u1",
                blueprint={"steps": [{"id": "d", "type": "delay", "delay": {"duration_seconds": 30}}]},
            )
        )
        execution = asyncio.create_task(service.execute(automation_id="auto-1", user_id="u1"))
        for _ in range(100):
            if service.active_run_ids:
                break
            await asyncio.sleep(0.01)
        (run_id,) = service.active_run_ids

        response = await client.post(f"/api/v1/runs/{run_id}/cancel")

        assert response.json() == {"run_id": run_id, "cancelled": True}
        result = await asyncio.wait_for(execution, timeout=5)
        assert result.success is False

    async def test_cancel_unknown_run(self, client: AsyncClient):
        response = await client.post("/api/v1/runs/missing/cancel")
        assert response.status_code == 404


class TestPlatforms:
    async def test_platform_config_fallback(self, client: AsyncClient):
        response = await client.get("/api/v1/platforms/Newtool/config")

        assert response.status_code == 200
        data = response.json()
        assert data["name"] == "newtool"
        assert data["base_url"] == "https://api.newtool.com"
        assert data["source"] == "fallback"
        assert "universal_call" in data["endpoints"]

    async def test_invalid_platform_name(self, client: AsyncClient):
        response = await client.get("/api/v1/platforms/-bad!/config")
        assert response.status_code == 422

    async def test_credentials_accepted(self, client: AsyncClient):
        response = await client.post("/api/v1/platforms/acme/test", json={"credentials": {"access_token": "good"}})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["endpoint_tested"] == "GET /me"

    async def test_credentials_rejected(self, client: AsyncClient):
        response = await client.post("/api/v1/platforms/acme/test", json={"credentials": {"access_token": "bad"}})

        data = response.json()
        assert data["success"] is False
        assert data["error_type"] == "authentication_error"
        assert data["status_code"] == 401
