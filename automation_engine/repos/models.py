"""SQLAlchemy ORM models for engine persistence.

These ORM models define the SQL schema used by the SQL repository
implementation in ``automation_engine.repos.sql``.

Design
------

- Automations hold the blueprint document authored by the user.
- Runs store status, the live progress snapshot (``details_log``) and the
  final result or error.
- Platform credentials keep their bundle as stored JSON text; decoding happens
  when a run loads them.
- AI agents carry their provider, model, key and a JSON memory document.

JSON columns use ``JSONB`` on PostgreSQL and plain ``JSON`` elsewhere.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from sqlalchemy import JSON, Boolean, DateTime, Integer, String, Text
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

JSONType = JSON().with_variant(JSONB(), "postgresql")


class Base(DeclarativeBase):
    """Declarative base for all ORM models."""


class AutomationRow(Base):
    """Row model for ``automations``."""

    __tablename__ = "automations"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    title: Mapped[str] = mapped_column(String(255), default="")
    blueprint: Mapped[Dict[str, Any]] = mapped_column(JSONType)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class AutomationRunRow(Base):
    """Row model for ``automation_runs``.

    ``details_log`` holds the progress snapshot rewritten after every step log
    entry: ``started_at``, ``current_step``, ``total_steps``, ``steps`` and
    ``variables``.
    """

    __tablename__ = "automation_runs"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    automation_id: Mapped[str] = mapped_column(String(64), index=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)

    status: Mapped[str] = mapped_column(String(32))
    trigger_data: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict)

    details_log: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    result: Mapped[Optional[Dict[str, Any]]] = mapped_column(JSONType, nullable=True)
    error_message: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration_ms: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class PlatformCredentialRow(Base):
    """Row model for ``platform_credentials``."""

    __tablename__ = "platform_credentials"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    user_id: Mapped[str] = mapped_column(String(128), index=True)
    automation_id: Mapped[Optional[str]] = mapped_column(String(64), nullable=True, index=True)
    platform_name: Mapped[str] = mapped_column(String(128))
    credentials: Mapped[str] = mapped_column(Text)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))


class AIAgentRow(Base):
    """Row model for ``ai_agents``."""

    __tablename__ = "ai_agents"

    id: Mapped[str] = mapped_column(String(64), primary_key=True)
    agent_name: Mapped[str] = mapped_column(String(255))
    agent_role: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    agent_goal: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    agent_rules: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    agent_memory: Mapped[Dict[str, Any]] = mapped_column(JSONType, default=dict)

    llm_provider: Mapped[str] = mapped_column(String(64), default="openai")
    model: Mapped[Optional[str]] = mapped_column(String(128), nullable=True)
    api_key: Mapped[Optional[str]] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True))
