"""SQLAlchemy async repository implementations.

This module provides a SQL-backed persistence implementation for the
repository interfaces defined in ``automation_engine.repos.interfaces``.

Usage
-----

Typical wiring (tests or application setup):

- Create an async engine with ``create_engine``.
- Create tables with ``create_all`` (for tests/dev; production uses the
  Alembic migrations).
- Create a session factory with ``create_sessionmaker``.
- Build repository instances with ``build_sql_repos``.

Transaction model
-----------------

Each repository method opens an ``AsyncSession``, performs its operation, and
commits. Every progress snapshot is therefore durable when ``save_progress``
returns, which is what lets callers follow a run while it executes.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from ..schemas.domain import AIAgent, Automation, AutomationRun, PlatformCredential, RunProgress, RunStatus
from .interfaces import AgentRepository, AutomationRepository, CredentialRepository, RunRepository
from .models import AIAgentRow, AutomationRow, AutomationRunRow, Base, PlatformCredentialRow


def create_engine(db_url: str) -> AsyncEngine:
    """Create an async SQLAlchemy engine.

    The helper normalizes Postgres URLs to ensure the async driver is used.
    For example, it rewrites ``postgresql://`` and other variants to
    ``postgresql+asyncpg://``.
    """
    url = re.sub(r"^postgres(?:ql)?(?:\+[a-z0-9_]+)?://", "postgresql+asyncpg://", db_url, count=1)
    if url.startswith("sqlite"):
        return create_async_engine(url)
    return create_async_engine(url, pool_pre_ping=True)


def create_sessionmaker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Create an ``async_sessionmaker`` with safe defaults for this project."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def create_all(engine: AsyncEngine) -> None:
    """Create all tables for the current ORM metadata.

    This is mainly intended for tests and local development.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _encode_credentials(value: Any) -> str:
    if isinstance(value, bytes):
        return value.decode("utf-8")
    if isinstance(value, str):
        return value
    return json.dumps(value)


@dataclass(frozen=True)
class SqlAutomationRepository(AutomationRepository):
    """SQL implementation of ``AutomationRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def create(self, automation: Automation) -> None:
        """
        Persist a new automation.

        Args:
            automation: The automation to insert.
        """
        async with self.session_factory() as s:
            s.add(
                AutomationRow(
                    id=automation.id,
                    user_id=automation.user_id,
                    title=automation.title,
                    blueprint=automation.blueprint,
                    created_at=automation.created_at,
                )
            )
            await s.commit()

    async def get(self, automation_id: str) -> Optional[Automation]:
        async with self.session_factory() as s:
            row = await s.get(AutomationRow, automation_id)
            if row is None:
                return None
            return Automation(
                id=row.id,
                user_id=row.user_id,
                title=row.title,
                blueprint=row.blueprint or {},
                created_at=row.created_at,
            )


@dataclass(frozen=True)
class SqlRunRepository(RunRepository):
    """SQL implementation of ``RunRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def create(self, run: AutomationRun) -> None:
        """
        Persist a new run record.

        Args:
            run: The run domain object to insert.
        """
        async with self.session_factory() as s:
            s.add(
                AutomationRunRow(
                    id=run.id,
                    automation_id=run.automation_id,
                    user_id=run.user_id,
                    status=str(getattr(run.status, "value", run.status)),
                    trigger_data=run.trigger_data,
                    details_log=run.progress.model_dump(mode="json") if run.progress else None,
                    result=run.result,
                    error_message=run.error,
                    duration_ms=run.duration_ms,
                    created_at=run.created_at,
                    updated_at=run.updated_at,
                )
            )
            await s.commit()

    async def save_progress(self, run_id: str, progress: RunProgress) -> None:
        async with self.session_factory() as s:
            row = await s.get(AutomationRunRow, run_id)
            if row is None:
                return
            row.details_log = progress.model_dump(mode="json")
            row.updated_at = _utc_now()
            await s.commit()

    async def complete(
        self,
        run_id: str,
        *,
        status: RunStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        async with self.session_factory() as s:
            row = await s.get(AutomationRunRow, run_id)
            if row is None:
                return
            row.status = str(getattr(status, "value", status))
            row.result = result
            row.error_message = error
            row.duration_ms = duration_ms
            row.updated_at = _utc_now()
            await s.commit()

    async def get(self, run_id: str) -> Optional[AutomationRun]:
        """
        Retrieve a run by its ID.

        Args:
            run_id: The run identifier.

        Returns:
            The AutomationRun domain object if found, otherwise None.
        """
        async with self.session_factory() as s:
            row = await s.get(AutomationRunRow, run_id)
            if row is None:
                return None
            return AutomationRun(
                id=row.id,
                automation_id=row.automation_id,
                user_id=row.user_id,
                status=RunStatus(row.status),
                trigger_data=row.trigger_data or {},
                progress=RunProgress.model_validate(row.details_log) if row.details_log else None,
                result=row.result,
                error=row.error_message,
                duration_ms=row.duration_ms,
                created_at=row.created_at,
                updated_at=row.updated_at,
            )


@dataclass(frozen=True)
class SqlCredentialRepository(CredentialRepository):
    """SQL implementation of ``CredentialRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def create(self, credential: PlatformCredential) -> None:
        """
        Persist a credential record. Non-string bundles are stored as JSON text.

        Args:
            credential: The credential record to insert.
        """
        async with self.session_factory() as s:
            s.add(
                PlatformCredentialRow(
                    id=credential.id,
                    user_id=credential.user_id,
                    automation_id=credential.automation_id,
                    platform_name=credential.platform_name,
                    credentials=_encode_credentials(credential.credentials),
                    is_active=credential.is_active,
                    created_at=credential.created_at,
                )
            )
            await s.commit()

    async def list_active(self, *, user_id: str, automation_id: Optional[str] = None) -> List[PlatformCredential]:
        async with self.session_factory() as s:
            stmt = select(PlatformCredentialRow).where(
                PlatformCredentialRow.user_id == user_id,
                PlatformCredentialRow.is_active.is_(True),
            )
            if automation_id is None:
                stmt = stmt.where(PlatformCredentialRow.automation_id.is_(None))
            else:
                stmt = stmt.where(
                    or_(
                        PlatformCredentialRow.automation_id == automation_id,
                        PlatformCredentialRow.automation_id.is_(None),
                    )
                )
            stmt = stmt.order_by(PlatformCredentialRow.created_at.asc())
            rows = (await s.execute(stmt)).scalars().all()
            return [
                PlatformCredential(
                    id=row.id,
                    user_id=row.user_id,
                    automation_id=row.automation_id,
                    platform_name=row.platform_name,
                    credentials=row.credentials,
                    is_active=row.is_active,
                    created_at=row.created_at,
                )
                for row in rows
            ]


@dataclass(frozen=True)
class SqlAgentRepository(AgentRepository):
    """SQL implementation of ``AgentRepository``."""

    session_factory: async_sessionmaker[AsyncSession]

    async def create(self, agent: AIAgent) -> None:
        """
        Persist a new AI agent.

        Args:
            agent: The agent to insert.
        """
        async with self.session_factory() as s:
            s.add(
                AIAgentRow(
                    id=agent.id,
                    agent_name=agent.agent_name,
                    agent_role=agent.agent_role,
                    agent_goal=agent.agent_goal,
                    agent_rules=agent.agent_rules,
                    agent_memory=agent.agent_memory,
                    llm_provider=agent.llm_provider,
                    model=agent.model,
                    api_key=agent.api_key,
                    created_at=agent.created_at,
                )
            )
            await s.commit()

    async def get(self, agent_id: str) -> Optional[AIAgent]:
        async with self.session_factory() as s:
            row = await s.get(AIAgentRow, agent_id)
            if row is None:
                return None
            return AIAgent(
                id=row.id,
                agent_name=row.agent_name,
                agent_role=row.agent_role,
                agent_goal=row.agent_goal,
                agent_rules=row.agent_rules,
                agent_memory=row.agent_memory or {},
                llm_provider=row.llm_provider,
                model=row.model,
                api_key=row.api_key,
                created_at=row.created_at,
            )

    async def update_memory(self, agent_id: str, memory: Dict[str, Any]) -> None:
        async with self.session_factory() as s:
            row = await s.get(AIAgentRow, agent_id)
            if row is None:
                return
            row.agent_memory = memory
            await s.commit()


@dataclass(frozen=True)
class SqlRepoBundle:
    automations: SqlAutomationRepository
    runs: SqlRunRepository
    credentials: SqlCredentialRepository
    agents: SqlAgentRepository


def build_sql_repos(*, session_factory: async_sessionmaker[AsyncSession]) -> SqlRepoBundle:
    """Build a ``SqlRepoBundle`` from a session factory."""
    return SqlRepoBundle(
        automations=SqlAutomationRepository(session_factory=session_factory),
        runs=SqlRunRepository(session_factory=session_factory),
        credentials=SqlCredentialRepository(session_factory=session_factory),
        agents=SqlAgentRepository(session_factory=session_factory),
    )
