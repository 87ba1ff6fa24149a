"""Repository interface contracts.

The engine depends on these Protocols instead of concrete persistence
implementations.

Contract guidelines
-------------------

- All methods are async.
- Repository implementations should be safe to call from the step interpreter
  without leaking SQLAlchemy sessions/transactions.
- Updating an unknown run is a no-op.
- Credential listing only returns records the engine may use: active records
  owned by the user and either bound to the automation or global.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional, Protocol

from ..schemas.domain import AIAgent, Automation, AutomationRun, PlatformCredential, RunProgress, RunStatus


class AutomationRepository(Protocol):
    """Read automations and their blueprints."""

    async def get(self, automation_id: str) -> Optional[Automation]:
        """
        Retrieve an automation by its ID.

        Args:
            automation_id: The automation identifier.

        Returns:
            The Automation if found, else None.
        """
        ...


class RunRepository(Protocol):
    """Persist and query the lifecycle of an automation run."""

    async def create(self, run: AutomationRun) -> None:
        """
        Create a new run record.

        Args:
            run: The initial run state to persist.
        """
        ...

    async def save_progress(self, run_id: str, progress: RunProgress) -> None:
        """
        Replace the persisted progress snapshot of a running execution.

        Args:
            run_id: The ID of the run to update.
            progress: Current step counters, log entries and variables.
        """
        ...

    async def complete(
        self,
        run_id: str,
        *,
        status: RunStatus,
        result: Optional[Dict[str, Any]] = None,
        error: Optional[str] = None,
        duration_ms: Optional[int] = None,
    ) -> None:
        """
        Record the terminal state of a run.

        Args:
            run_id: The ID of the run to update.
            status: ``completed`` or ``failed``.
            result: Final variables of a completed run.
            error: Error message of a failed run.
            duration_ms: Wall clock duration of the run.
        """
        ...

    async def get(self, run_id: str) -> Optional[AutomationRun]:
        """
        Retrieve a run by its ID.

        Args:
            run_id: The run identifier.

        Returns:
            The AutomationRun if found, else None.
        """
        ...


class CredentialRepository(Protocol):
    """Read stored platform credentials."""

    async def list_active(self, *, user_id: str, automation_id: Optional[str] = None) -> List[PlatformCredential]:
        """
        List active credentials usable by a run.

        Args:
            user_id: Owner of the credentials.
            automation_id: The running automation; records bound to another
                automation are excluded, global records (no automation) are kept.

        Returns:
            Matching credential records, oldest first.
        """
        ...


class AgentRepository(Protocol):
    """Read AI agent definitions and update their memory."""

    async def get(self, agent_id: str) -> Optional[AIAgent]:
        """
        Retrieve an agent by its ID.

        Args:
            agent_id: The agent identifier.

        Returns:
            The AIAgent if found, else None.
        """
        ...

    async def update_memory(self, agent_id: str, memory: Dict[str, Any]) -> None:
        """
        Replace the agent's memory document.

        Args:
            agent_id: The agent identifier.
            memory: The new memory document.
        """
        ...
