"""LLM providers used by the AI agent invoker.

A provider turns ``(model, system prompt, user prompt, api key)`` into the
model's text answer. The built-in provider runs a single-turn pydantic_ai
``Agent``; the concrete pydantic_ai model is produced by a factory so tests can
substitute ``FunctionModel``/``TestModel`` and deployments can point the OpenAI
client at a compatible endpoint.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Protocol

import httpx
import openai
from pydantic_ai import Agent
from pydantic_ai.exceptions import AgentRunError, ModelHTTPError
from pydantic_ai.models import Model
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from .errors import AIAgentCallFailure

logger = logging.getLogger(__name__)

DEFAULT_TEMPERATURE = 0.7

ModelFactory = Callable[[str, str], Model]


class LLMProvider(Protocol):
    """Single-turn text completion against one LLM vendor."""

    name: str

    async def complete(self, *, model: str, system_prompt: str, prompt: str, api_key: str) -> str:
        """
        Run one completion.

        Args:
            model: Vendor model identifier.
            system_prompt: System instructions (the agent's rules).
            prompt: The resolved user prompt.
            api_key: The agent's API key for the vendor.

        Returns:
            The model's text answer.
        """
        ...


def openai_model_factory(
    *, base_url: Optional[str] = None, http_client: Optional[httpx.AsyncClient] = None
) -> ModelFactory:
    """Build OpenAI chat-completions models bound to a per-agent API key."""

    def _build(model_name: str, api_key: str) -> Model:
        provider = OpenAIProvider(api_key=api_key, base_url=base_url, http_client=http_client)
        return OpenAIChatModel(model_name, provider=provider)

    return _build


class PydanticAIChatProvider:
    """LLM provider backed by a pydantic_ai ``Agent``."""

    def __init__(
        self,
        *,
        name: str,
        model_factory: ModelFactory,
        temperature: float = DEFAULT_TEMPERATURE,
        timeout: float = 30.0,
    ) -> None:
        self.name = name
        self._model_factory = model_factory
        self._temperature = temperature
        self._timeout = timeout

    async def complete(self, *, model: str, system_prompt: str, prompt: str, api_key: str) -> str:
        agent = Agent(self._model_factory(model, api_key), system_prompt=system_prompt)
        settings = ModelSettings(temperature=self._temperature, timeout=self._timeout)
        logger.debug("PydanticAIChatProvider.complete: provider=%s model=%s", self.name, model)
        try:
            result = await agent.run(prompt, model_settings=settings)
        except ModelHTTPError as e:
            raise AIAgentCallFailure(
                f"{self.name} request failed: {e.status_code} {e.body}", provider=self.name, status_code=e.status_code
            ) from e
        except (AgentRunError, openai.OpenAIError, httpx.HTTPError) as e:
            raise AIAgentCallFailure(f"{self.name} request failed: {e}", provider=self.name) from e
        return str(result.output or "")


def build_openai_provider(
    *,
    base_url: Optional[str] = None,
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0,
) -> PydanticAIChatProvider:
    return PydanticAIChatProvider(
        name="openai",
        model_factory=openai_model_factory(base_url=base_url, http_client=http_client),
        timeout=timeout,
    )
