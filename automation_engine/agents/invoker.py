from __future__ import annotations

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping

from automation_engine.repos.interfaces import AgentRepository
from automation_engine.schemas.domain import AIAgent

from .errors import AgentConfigurationError, AgentNotFound, UnsupportedAIProvider
from .providers import LLMProvider

logger = logging.getLogger(__name__)

DEFAULT_SYSTEM_PROMPT = "You are a helpful assistant."
DEFAULT_MODEL = "gpt-4o-mini"
MEMORY_CONTEXT = "automation_execution"


class AIAgentInvoker:
    """
    Run a stored AI agent on a prompt.

    The agent record supplies the provider, model, API key and rules (used
    as the system prompt). After a successful call the exchange is appended to
    the agent's ``recent_interactions`` memory, capped at ``memory_limit``
    entries; a memory write failure is logged and does not fail the step.
    """

    def __init__(
        self,
        *,
        agents: AgentRepository,
        providers: Mapping[str, LLMProvider],
        default_model: str = DEFAULT_MODEL,
        memory_limit: int = 50,
    ) -> None:
        self._agents = agents
        self._providers = {name.lower(): provider for name, provider in providers.items()}
        self._default_model = default_model
        self._memory_limit = memory_limit

    async def invoke(self, agent_id: str, prompt: str) -> str:
        agent = await self._agents.get(agent_id)
        if agent is None:
            raise AgentNotFound(agent_id)

        provider_name = (agent.llm_provider or "").strip().lower()
        provider = self._providers.get(provider_name)
        if provider is None:
            raise UnsupportedAIProvider(agent.llm_provider)
        if not agent.api_key:
            raise AgentConfigurationError(f"No API key configured for AI agent: {agent.agent_name}")

        logger.info("Invoking AI agent %s (%s) via %s", agent.id, agent.agent_name, provider_name)
        answer = await provider.complete(
            model=agent.model or self._default_model,
            system_prompt=agent.agent_rules or DEFAULT_SYSTEM_PROMPT,
            prompt=prompt,
            api_key=agent.api_key,
        )
        await self._remember(agent, prompt, answer)
        return answer

    async def _remember(self, agent: AIAgent, prompt: str, answer: str) -> None:
        if self._memory_limit <= 0:
            return
        memory: Dict[str, Any] = dict(agent.agent_memory or {})
        history: List[Any] = list(memory.get("recent_interactions") or [])
        history.append(
            {
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "input": prompt,
                "output": answer,
                "context": MEMORY_CONTEXT,
            }
        )
        memory["recent_interactions"] = history[-self._memory_limit :]
        try:
            await self._agents.update_memory(agent.id, memory)
        except Exception:
            logger.warning("Failed to update memory of AI agent %s", agent.id, exc_info=True)
