"""High-level orchestration service for automation runs.

``AutomationService`` provides an application-friendly API for executing
automations without manually wiring discovery, the API caller, the agent
invoker and the step interpreter.

Workflow
--------

- ``execute``:

  1. Loads the automation and creates a ``running`` run record.
  2. Validates the blueprint and seeds variables (blueprint variables
     overlaid by trigger data).
  3. Loads the user's credentials for the automation.
  4. Builds a per-run runtime (HTTP client, discovery, caller, invoker) and
     runs the interpreter under the run timeout.
  5. Marks the run ``completed`` or ``failed`` and returns an
     ``ExecutionResult``. Failures are reported in the result, never raised.

- ``cancel`` signals a running execution to stop before its next step.

``AutomationService`` is intentionally thin: execution semantics live in the
``StepInterpreter``.
"""

from __future__ import annotations

import asyncio
import logging
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncIterator, Callable, Dict, Mapping, Optional

import httpx

from .agents.invoker import AIAgentInvoker
from .agents.providers import LLMProvider, build_openai_provider
from .blueprint import Blueprint
from .core.errors import AutomationError
from .integrations.caller import UniversalApiCaller
from .integrations.credentials import CredentialLoader, index_credentials
from .integrations.discovery import DiscoveryCache, PlatformDiscovery
from .integrations.models import PlatformConfig
from .integrations.verification import CredentialCheckResult, check_platform_credentials
from .repos.interfaces import AgentRepository, AutomationRepository, CredentialRepository, RunRepository
from .runtime.context import ExecutionContext
from .runtime.errors import RunTimeout
from .runtime.interpreter import StepInterpreter
from .runtime.models import EngineDeps, EngineOptions, LoopScoping
from .schemas.base import BaseSchema
from .schemas.domain import AutomationRun, RunStatus

logger = logging.getLogger(__name__)


class AutomationNotFound(AutomationError):
    code = "automation_not_found"

    def __init__(self, automation_id: str) -> None:
        super().__init__(f"Automation not found: {automation_id}")
        self.automation_id = automation_id


class ExecutionResult(BaseSchema):
    success: bool
    run_id: Optional[str] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None


@dataclass(frozen=True)
class AutomationServiceDeps:
    """Dependency bundle for ``AutomationService``."""

    automations: AutomationRepository
    runs: RunRepository
    credentials: CredentialRepository
    agents: AgentRepository


@dataclass(frozen=True)
class ServiceOptions:
    http_timeout_seconds: float = 30.0
    user_agent: str = "AutomationEngine-Universal-Integrator/1.0"
    error_body_limit: int = 500
    probe_timeout_seconds: float = 5.0
    exclude_path_params_from_body: bool = True
    loop_scoping: LoopScoping = LoopScoping.scoped
    run_timeout_seconds: float = 300.0
    openai_base_url: Optional[str] = None
    default_agent_model: str = "gpt-4o-mini"
    agent_memory_limit: int = 50


@dataclass(frozen=True)
class _Runtime:
    client: httpx.AsyncClient
    discovery: PlatformDiscovery
    caller: UniversalApiCaller
    agents: AIAgentInvoker


def _default_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(follow_redirects=True)


class AutomationService:
    """Execute automations and track the runs in flight."""

    def __init__(
        self,
        *,
        deps: AutomationServiceDeps,
        options: Optional[ServiceOptions] = None,
        http_client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
        llm_providers: Optional[Mapping[str, LLMProvider]] = None,
        discovery_cache: Optional[DiscoveryCache] = None,
    ) -> None:
        """
        Initialize the AutomationService.

        Args:
            deps: Repositories for automations, runs, credentials and agents.
            options: Timeouts and behavioural switches.
            http_client_factory: Builds the HTTP client used for one run; the
                client is closed when the run ends.
            llm_providers: LLM providers by name; defaults to OpenAI.
            discovery_cache: Process-wide discovery cache shared across runs.
        """
        self._deps = deps
        self._options = options or ServiceOptions()
        self._client_factory = http_client_factory or _default_client
        self._llm_providers = llm_providers
        self._discovery_cache = discovery_cache
        self._active: Dict[str, ExecutionContext] = {}

    @property
    def active_run_ids(self) -> list[str]:
        return list(self._active)

    async def execute(
        self,
        *,
        automation_id: str,
        user_id: str,
        trigger_data: Optional[Dict[str, Any]] = None,
    ) -> ExecutionResult:
        """Execute a stored automation; failures are returned, not raised."""
        try:
            automation = await self._deps.automations.get(automation_id)
            if automation is None:
                raise AutomationNotFound(automation_id)
            run = AutomationRun(automation_id=automation_id, user_id=user_id, trigger_data=dict(trigger_data or {}))
            await self._deps.runs.create(run)
        except Exception as e:
            logger.error("Could not start automation %s: %s", automation_id, e, exc_info=True)
            return ExecutionResult(success=False, error=str(e))

        logger.info("Starting run %s of automation %s", run.id, automation_id)
        return await self.run_blueprint(
            automation.blueprint,
            run_id=run.id,
            automation_id=automation_id,
            user_id=user_id,
            trigger_data=trigger_data,
        )

    async def run_blueprint(
        self,
        blueprint: Any,
        *,
        run_id: str,
        automation_id: str,
        user_id: str,
        trigger_data: Optional[Dict[str, Any]] = None,
        credentials: Optional[Mapping[str, Any]] = None,
    ) -> ExecutionResult:
        """
        Execute a blueprint for an existing run record.

        Args:
            blueprint: A ``Blueprint`` or its raw payload.
            run_id: The run record to update.
            automation_id: The automation being run (scopes credentials).
            user_id: The user the run executes for.
            trigger_data: Values overlaid on the blueprint variables.
            credentials: Pre-decoded ``{platform: bundle}`` pairs; when omitted
                they are loaded from the credential repository.

        Returns:
            The execution result; the run record holds the same outcome.
        """
        started = time.monotonic()
        context: Optional[ExecutionContext] = None
        try:
            parsed = blueprint if isinstance(blueprint, Blueprint) else Blueprint.from_payload(blueprint)
            context = ExecutionContext(
                run_id=run_id,
                automation_id=automation_id,
                user_id=user_id,
                variables={**parsed.variables, **(trigger_data or {})},
            )
            self._active[run_id] = context

            if credentials is None:
                index = await CredentialLoader(self._deps.credentials).load(
                    user_id=user_id, automation_id=automation_id
                )
            else:
                index = index_credentials(credentials)

            async with self._runtime() as runtime:
                interpreter = StepInterpreter(
                    deps=EngineDeps(caller=runtime.caller, agents=runtime.agents, runs=self._deps.runs),
                    credentials=index,
                    options=EngineOptions(loop_scoping=self._options.loop_scoping),
                )
                variables = await self._with_timeout(interpreter.run(parsed, context), run_id)
        except Exception as e:
            duration_ms = int((time.monotonic() - started) * 1000)
            logger.error("Run %s failed: %s", run_id, e)
            await self._finish(run_id, status=RunStatus.failed, error=str(e), duration_ms=duration_ms)
            return ExecutionResult(success=False, run_id=run_id, error=str(e))
        finally:
            if context is not None:
                self._active.pop(run_id, None)

        duration_ms = int((time.monotonic() - started) * 1000)
        logger.info("Run %s completed in %d ms", run_id, duration_ms)
        await self._finish(run_id, status=RunStatus.completed, result=variables, duration_ms=duration_ms)
        return ExecutionResult(success=True, run_id=run_id, result=variables)

    async def get_run(self, run_id: str) -> Optional[AutomationRun]:
        return await self._deps.runs.get(run_id)

    def cancel(self, run_id: str) -> bool:
        """Request cancellation of a running execution; False if it is not running here."""
        context = self._active.get(run_id)
        if context is None:
            return False
        logger.info("Cancellation requested for run %s", run_id)
        context.cancel()
        return True

    async def discover_platform(self, platform: str) -> PlatformConfig:
        async with self._runtime() as runtime:
            return await runtime.discovery.discover(platform)

    async def check_credentials(self, platform: str, credentials: Mapping[str, Any]) -> CredentialCheckResult:
        async with self._runtime() as runtime:
            return await check_platform_credentials(
                platform,
                credentials,
                discovery=runtime.discovery,
                client=runtime.client,
                timeout=self._options.http_timeout_seconds,
                user_agent=self._options.user_agent,
                error_body_limit=self._options.error_body_limit,
            )

    async def _with_timeout(self, coro: Any, run_id: str) -> Dict[str, Any]:
        timeout = self._options.run_timeout_seconds
        if not timeout or timeout <= 0:
            return await coro
        try:
            return await asyncio.wait_for(coro, timeout=timeout)
        except asyncio.TimeoutError as e:
            raise RunTimeout(run_id, timeout) from e

    @asynccontextmanager
    async def _runtime(self) -> AsyncIterator[_Runtime]:
        client = self._client_factory()
        try:
            opts = self._options
            discovery = PlatformDiscovery(
                client=client, probe_timeout=opts.probe_timeout_seconds, shared_cache=self._discovery_cache
            )
            caller = UniversalApiCaller(
                discovery=discovery,
                client=client,
                timeout=opts.http_timeout_seconds,
                user_agent=opts.user_agent,
                error_body_limit=opts.error_body_limit,
                exclude_path_params_from_body=opts.exclude_path_params_from_body,
            )
            providers = self._llm_providers or {
                "openai": build_openai_provider(
                    base_url=opts.openai_base_url, http_client=client, timeout=opts.http_timeout_seconds
                )
            }
            agents = AIAgentInvoker(
                agents=self._deps.agents,
                providers=providers,
                default_model=opts.default_agent_model,
                memory_limit=opts.agent_memory_limit,
            )
            yield _Runtime(client=client, discovery=discovery, caller=caller, agents=agents)
        finally:
            await client.aclose()

    async def _finish(
        self,
        run_id: str,
        *,
        status: RunStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        try:
            await self._deps.runs.complete(
                run_id, status=status, result=result, error=error, duration_ms=duration_ms
            )
        except Exception:
            logger.error("Failed to record the outcome of run %s", run_id, exc_info=True)
