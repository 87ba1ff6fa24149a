from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import httpx
import pytest

from automation_engine.schemas.domain import (
    AIAgent,
    Automation,
    AutomationRun,
    PlatformCredential,
    RunProgress,
    RunStatus,
)
from automation_engine.service import AutomationServiceDeps


@pytest.fixture(autouse=True)
def _global_offline_http_guard(monkeypatch: pytest.MonkeyPatch):
    allowed_prefixes: Iterable[str] = (
        "http://mock",
        "https://mock",
        "http://localhost",
        "http://127.0.0.1",
        "http://0.0.0.0",
        "/",  # Allow relative paths (used by ASGI transport)
    )

    orig_sync = httpx._client.Client.request
    orig_async = httpx._client.AsyncClient.request

    def _is_allowed(client: Any, url_str: str) -> bool:
        # Clients wired to a MockTransport never leave the process.
        if isinstance(getattr(client, "_transport", None), httpx.MockTransport):
            return True
        return any(url_str.startswith(p) for p in allowed_prefixes)

    def offline_sync(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(self, url_str):
            return orig_sync(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard: {url_str}")

    async def offline_async(self, method, url, *args, **kwargs):
        url_str = str(url)
        if _is_allowed(self, url_str):
            return await orig_async(self, method, url, *args, **kwargs)
        raise RuntimeError(f"External HTTP blocked by global offline guard (async): {url_str}")

    monkeypatch.setattr(httpx._client.Client, "request", offline_sync, raising=True)
    monkeypatch.setattr(httpx._client.AsyncClient, "request", offline_async, raising=True)


class _AutomationsRepo:
    def __init__(self) -> None:
        self.by_id: Dict[str, Automation] = {}

    def add(self, automation: Automation) -> Automation:
        self.by_id[automation.id] = automation
        return automation

    async def get(self, automation_id: str) -> Optional[Automation]:
        return self.by_id.get(automation_id)


class _RunsRepo:
    def __init__(self) -> None:
        self.by_id: Dict[str, AutomationRun] = {}
        self.snapshots: List[RunProgress] = []

    async def create(self, run: AutomationRun) -> None:
        self.by_id[run.id] = run

    async def save_progress(self, run_id: str, progress: RunProgress) -> None:
        self.snapshots.append(progress)
        run = self.by_id.get(run_id)
        if run is not None:
            run.progress = progress

    async def complete(
        self,
        run_id: str,
        *,
        status: RunStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        run = self.by_id.get(run_id)
        if run is None:
            return
        run.status = status
        run.result = result
        run.error = error
        run.duration_ms = duration_ms

    async def get(self, run_id: str) -> Optional[AutomationRun]:
        return self.by_id.get(run_id)


class _CredentialsRepo:
    def __init__(self) -> None:
        self.records: List[PlatformCredential] = []

    def add(self, credential: PlatformCredential) -> PlatformCredential:
        self.records.append(credential)
        return credential

    async def list_active(self, *, user_id: str, automation_id: Optional[str] = None) -> List[PlatformCredential]:
        return [
            r
            for r in self.records
            if r.user_id == user_id and r.is_active and r.automation_id in (None, automation_id)
        ]


class _AgentsRepo:
    def __init__(self) -> None:
        self.by_id: Dict[str, AIAgent] = {}
        self.memory_updates: List[tuple[str, Dict[str, Any]]] = []

    def add(self, agent: AIAgent) -> AIAgent:
        self.by_id[agent.id] = agent
        return agent

    async def get(self, agent_id: str) -> Optional[AIAgent]:
        return self.by_id.get(agent_id)

    async def update_memory(self, agent_id: str, memory: Dict[str, Any]) -> None:
        self.memory_updates.append((agent_id, memory))
        agent = self.by_id.get(agent_id)
        if agent is not None:
            agent.agent_memory = memory


@dataclass
class FakeRepos:
    automations: _AutomationsRepo = field(default_factory=_AutomationsRepo)
    runs: _RunsRepo = field(default_factory=_RunsRepo)
    credentials: _CredentialsRepo = field(default_factory=_CredentialsRepo)
    agents: _AgentsRepo = field(default_factory=_AgentsRepo)

    def service_deps(self) -> AutomationServiceDeps:
        return AutomationServiceDeps(
            automations=self.automations,
            runs=self.runs,
            credentials=self.credentials,
            agents=self.agents,
        )


@pytest.fixture
def fake_repos() -> FakeRepos:
    """In-memory repositories implementing the engine's repository protocols."""
    return FakeRepos()
