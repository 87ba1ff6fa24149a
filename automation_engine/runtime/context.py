from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from automation_engine.schemas.domain import LogEntry, RunProgress, StepStatus

from .errors import RunCancelled

logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class ExecutionContext:
    """Mutable state of one run, passed explicitly to every step.

    ``variables`` is the run's variable map: seeded from the blueprint and
    trigger data, extended by step outputs and the loop variables
    ``loop_item``/``loop_index``. ``logs`` is append-only.
    """

    run_id: str
    automation_id: str
    user_id: str
    variables: Dict[str, Any] = field(default_factory=dict)
    logs: List[LogEntry] = field(default_factory=list)
    started_at: datetime = field(default_factory=_utc_now)
    current_step: int = 0
    total_steps: int = 0
    loop_depth: int = 0
    cancel_event: asyncio.Event = field(default_factory=asyncio.Event)

    def log(
        self,
        step_id: str,
        status: StepStatus,
        message: str,
        *,
        error: Optional[str] = None,
        output: Any = None,
    ) -> LogEntry:
        entry = LogEntry(step_id=step_id, status=status, message=message, error=error, output=output)
        self.logs.append(entry)
        return entry

    def cancel(self) -> None:
        self.cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self.cancel_event.is_set()

    def raise_if_cancelled(self) -> None:
        if self.cancel_event.is_set():
            raise RunCancelled(self.run_id)

    def progress(self) -> RunProgress:
        """Snapshot for persistence; lists and dicts are copied."""
        return RunProgress(
            started_at=self.started_at,
            current_step=self.current_step,
            total_steps=self.total_steps,
            steps=list(self.logs),
            variables=dict(self.variables),
        )
