from __future__ import annotations

from automation_engine.core.errors import AutomationError


class AgentNotFound(AutomationError):
    code = "agent_not_found"

    def __init__(self, agent_id: str) -> None:
        super().__init__(f"AI agent not found: {agent_id}")
        self.agent_id = agent_id


class UnsupportedAIProvider(AutomationError):
    code = "unsupported_ai_provider"

    def __init__(self, provider: str) -> None:
        super().__init__(f"Unsupported AI provider: {provider}")
        self.provider = provider


class AgentConfigurationError(AutomationError):
    """The agent record cannot be used as configured (e.g. no API key)."""

    code = "agent_configuration_error"


class AIAgentCallFailure(AutomationError):
    """The LLM provider call failed."""

    code = "ai_agent_call_failure"

    def __init__(self, message: str, *, provider: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.provider = provider
        self.status_code = status_code
