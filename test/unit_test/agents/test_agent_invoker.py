from __future__ import annotations

from typing import Any, Dict, List

import pytest

from automation_engine.agents import (
    AgentConfigurationError,
    AgentNotFound,
    AIAgentInvoker,
    UnsupportedAIProvider,
)
from automation_engine.agents.invoker import DEFAULT_SYSTEM_PROMPT
from automation_engine.schemas.domain import AIAgent

pytestmark = pytest.mark.asyncio


class _EchoProvider:
    name = "openai"

    def __init__(self) -> None:
        self.calls: List[Dict[str, Any]] = []

    async def complete(self, *, model: str, system_prompt: str, prompt: str, api_key: str) -> str:
        self.calls.append({"model": model, "system_prompt": system_prompt, "prompt": prompt, "api_key": api_key})
        return f"echo: {prompt}"


def _agent(**overrides) -> AIAgent:
    values = {"id": "agent-1", "agent_name": "Summariser", "api_key": "sk-test", "model": "gpt-4o"}
    values.update(overrides)
    return AIAgent(**values)


async def test_invoke_runs_provider_and_returns_text(fake_repos) -> None:
    fake_repos.agents.add(_agent(agent_rules="Answer briefly."))
    provider = _EchoProvider()
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"OpenAI": provider})

    answer = await invoker.invoke("agent-1", "hello")

    assert answer == "echo: hello"
    assert provider.calls == [
        {"model": "gpt-4o", "system_prompt": "Answer briefly.", "prompt": "hello", "api_key": "sk-test"}
    ]


async def test_defaults_for_missing_model_and_rules(fake_repos) -> None:
    fake_repos.agents.add(_agent(model=None, agent_rules=None))
    provider = _EchoProvider()
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"openai": provider}, default_model="gpt-4.1-mini")

    await invoker.invoke("agent-1", "hi")

    assert provider.calls[0]["model"] == "gpt-4.1-mini"
    assert provider.calls[0]["system_prompt"] == DEFAULT_SYSTEM_PROMPT


async def test_unknown_agent(fake_repos) -> None:
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"openai": _EchoProvider()})

    with pytest.raises(AgentNotFound) as exc:
        await invoker.invoke("missing", "hi")
    assert str(exc.value) == "AI agent not found: missing"


async def test_unsupported_provider(fake_repos) -> None:
    fake_repos.agents.add(_agent(llm_provider="anthropic"))
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"openai": _EchoProvider()})

    with pytest.raises(UnsupportedAIProvider) as exc:
        await invoker.invoke("agent-1", "hi")
    assert str(exc.value) == "Unsupported AI provider: anthropic"


async def test_provider_name_is_case_insensitive(fake_repos) -> None:
    fake_repos.agents.add(_agent(llm_provider="OpenAI"))
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"openai": _EchoProvider()})

    assert await invoker.invoke("agent-1", "x") == "echo: x"


async def test_missing_api_key(fake_repos) -> None:
    fake_repos.agents.add(_agent(api_key=None))
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"openai": _EchoProvider()})

    with pytest.raises(AgentConfigurationError):
        await invoker.invoke("agent-1", "hi")


async def test_interactions_are_remembered_and_capped(fake_repos) -> None:
    fake_repos.agents.add(_agent(agent_memory={"notes": "keep", "recent_interactions": [{"input": "old"}]}))
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"openai": _EchoProvider()}, memory_limit=2)

    await invoker.invoke("agent-1", "first")
    await invoker.invoke("agent-1", "second")

    memory = fake_repos.agents.by_id["agent-1"].agent_memory
    assert memory["notes"] == "keep"
    history = memory["recent_interactions"]
    assert [h["input"] for h in history] == ["first", "second"]
    assert history[-1]["output"] == "echo: second"
    assert history[-1]["context"] == "automation_execution"
    assert "timestamp" in history[-1]


async def test_memory_write_failure_does_not_fail_the_call(fake_repos) -> None:
    fake_repos.agents.add(_agent())

    async def broken_update(agent_id: str, memory: Dict[str, Any]) -> None:
        raise RuntimeError("database is down")

    fake_repos.agents.update_memory = broken_update  # type: ignore[method-assign]
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"openai": _EchoProvider()})

    assert await invoker.invoke("agent-1", "hi") == "echo: hi"


async def test_memory_disabled_with_zero_limit(fake_repos) -> None:
    fake_repos.agents.add(_agent())
    invoker = AIAgentInvoker(agents=fake_repos.agents, providers={"openai": _EchoProvider()}, memory_limit=0)

    await invoker.invoke("agent-1", "hi")

    assert fake_repos.agents.memory_updates == []
