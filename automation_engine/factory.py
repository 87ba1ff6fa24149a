"""Convenience factories for wiring the automation service.

The intent is to keep application wiring and tests concise: settings are
translated into ``ServiceOptions`` once, and the SQL repositories are bundled
into ``AutomationServiceDeps``.
"""

from __future__ import annotations

from typing import Callable, Mapping, Optional

import httpx
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from .agents.providers import LLMProvider
from .integrations.discovery import DiscoveryCache
from .repos.sql import build_sql_repos
from .runtime.models import LoopScoping
from .server.core.config import Settings
from .service import AutomationService, AutomationServiceDeps, ServiceOptions


def build_service_options(settings: Settings) -> ServiceOptions:
    """Translate settings into ``ServiceOptions``."""
    http = settings.http
    engine = settings.engine
    agents = settings.agents
    return ServiceOptions(
        http_timeout_seconds=http.timeout_seconds,
        user_agent=http.user_agent,
        error_body_limit=http.error_body_limit,
        probe_timeout_seconds=settings.discovery.probe_timeout_seconds,
        exclude_path_params_from_body=engine.exclude_path_params_from_body,
        loop_scoping=LoopScoping(engine.loop_variable_scoping),
        run_timeout_seconds=engine.run_timeout_seconds,
        openai_base_url=agents.openai_base_url,
        default_agent_model=agents.default_model,
        agent_memory_limit=agents.memory_limit,
    )


def build_automation_service(
    *,
    session_factory: async_sessionmaker[AsyncSession],
    settings: Settings,
    http_client_factory: Optional[Callable[[], httpx.AsyncClient]] = None,
    llm_providers: Optional[Mapping[str, LLMProvider]] = None,
) -> AutomationService:
    """Construct an ``AutomationService`` over the SQL repositories."""
    repos = build_sql_repos(session_factory=session_factory)
    ttl = settings.discovery.cache_ttl_seconds
    return AutomationService(
        deps=AutomationServiceDeps(
            automations=repos.automations,
            runs=repos.runs,
            credentials=repos.credentials,
            agents=repos.agents,
        ),
        options=build_service_options(settings),
        http_client_factory=http_client_factory,
        llm_providers=llm_providers,
        discovery_cache=DiscoveryCache(ttl) if ttl > 0 else None,
    )
