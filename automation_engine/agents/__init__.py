"""AI agent invocation over pluggable LLM providers."""

from .errors import AgentConfigurationError, AgentNotFound, AIAgentCallFailure, UnsupportedAIProvider
from .invoker import AIAgentInvoker
from .providers import LLMProvider, PydanticAIChatProvider, build_openai_provider, openai_model_factory

__all__ = [
    "AIAgentCallFailure",
    "AIAgentInvoker",
    "AgentConfigurationError",
    "AgentNotFound",
    "LLMProvider",
    "PydanticAIChatProvider",
    "UnsupportedAIProvider",
    "build_openai_provider",
    "openai_model_factory",
]
