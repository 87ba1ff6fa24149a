from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import uuid4

from pydantic import Field

from .base import BaseSchema


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class RunStatus(str, Enum):
    running = "running"
    completed = "completed"
    failed = "failed"


class StepStatus(str, Enum):
    running = "running"
    completed = "completed"
    failed = "failed"


class LogEntry(BaseSchema):
    """One line of a run's execution log."""

    step_id: str
    status: StepStatus
    timestamp: datetime = Field(default_factory=_utc_now)
    message: str
    error: Optional[str] = None
    output: Any = None


class RunProgress(BaseSchema):
    """Snapshot of a running execution, persisted after every log entry."""

    started_at: datetime
    current_step: int = 0
    total_steps: int = 0
    steps: List[LogEntry] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)


class Automation(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    title: str = ""
    blueprint: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=_utc_now)


class AutomationRun(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    automation_id: str
    user_id: str

    status: RunStatus = RunStatus.running
    trigger_data: Dict[str, Any] = Field(default_factory=dict)

    progress: Optional[RunProgress] = None
    result: Optional[Dict[str, Any]] = None
    error: Optional[str] = None
    duration_ms: Optional[int] = None

    created_at: datetime = Field(default_factory=_utc_now)
    updated_at: datetime = Field(default_factory=_utc_now)


class PlatformCredential(BaseSchema):
    """A stored credential bundle for one platform.

    ``credentials`` keeps the stored form (usually a JSON text); decoding
    happens when credentials are loaded for a run.
    """

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: str
    automation_id: Optional[str] = None
    platform_name: str
    credentials: Any
    is_active: bool = True
    created_at: datetime = Field(default_factory=_utc_now)


class AIAgent(BaseSchema):
    id: str = Field(default_factory=lambda: str(uuid4()))
    agent_name: str
    agent_role: Optional[str] = None
    agent_goal: Optional[str] = None
    agent_rules: Optional[str] = None
    agent_memory: Dict[str, Any] = Field(default_factory=dict)

    llm_provider: str = "openai"
    model: Optional[str] = None
    api_key: Optional[str] = None

    created_at: datetime = Field(default_factory=_utc_now)
