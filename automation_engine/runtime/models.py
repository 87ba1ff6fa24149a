"""Runtime dependency bundle and options.

The step interpreter is dependency-injected:

- ``EngineDeps`` collects the collaborators steps need (API caller, agent
  invoker, run repository for progress snapshots).
- ``EngineOptions`` holds behavioural switches read from settings.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Mapping, Optional, Protocol

from ..repos.interfaces import RunRepository


class ApiCaller(Protocol):
    async def call(
        self,
        platform: str,
        endpoint_name: str,
        parameters: Optional[Mapping[str, Any]],
        credentials: Optional[Mapping[str, Any]],
    ) -> Any: ...


class AgentInvoker(Protocol):
    async def invoke(self, agent_id: str, prompt: str) -> str: ...


class LoopScoping(str, Enum):
    scoped = "scoped"
    flat = "flat"


@dataclass(frozen=True)
class EngineDeps:
    """Dependency bundle for ``StepInterpreter``.

    ``runs`` is optional: without it progress is only kept in memory.
    ``agents`` is optional: without it ``ai_agent_call`` steps fail.
    """

    caller: ApiCaller
    agents: Optional[AgentInvoker] = None
    runs: Optional[RunRepository] = None


@dataclass(frozen=True)
class EngineOptions:
    loop_scoping: LoopScoping = LoopScoping.scoped
