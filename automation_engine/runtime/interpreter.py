"""Blueprint step interpreter.

``StepInterpreter`` walks a validated blueprint depth first and executes each
step against an explicit :class:`ExecutionContext`.

Execution model
---------------

- Every step logs ``running`` when it starts and ``completed`` or ``failed``
  when it ends; the progress snapshot is persisted after each log entry.
- Condition branches and loop bodies are executed through the same
  ``execute_step`` entry point, so the failure policy applies at every depth.
- ``current_step`` counts top-level steps only (1-based).

Failure policy
--------------

``on_error`` decides what a failed step does to the run:

- ``stop`` (default): the failure propagates and the run fails.
- ``continue``: the failure is logged and the next step runs.
- ``retry``: the step runs once more immediately; a second failure
  propagates.

Cancellation is checked before every step and during delays. A cancelled run
raises :class:`RunCancelled`, which no policy absorbs.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Dict, List, Mapping, Optional

from automation_engine.agents.errors import AgentConfigurationError
from automation_engine.blueprint import (
    ActionStep,
    AIAgentCallStep,
    Blueprint,
    ConditionStep,
    DelayStep,
    LoopStep,
    OnErrorPolicy,
    Step,
    UnknownStepType,
)
from automation_engine.integrations.credentials import require_credentials
from automation_engine.integrations.identifiers import PlatformName
from automation_engine.schemas.domain import StepStatus

from .context import ExecutionContext
from .errors import LoopSourceTypeError, RunCancelled
from .expressions import evaluate_condition
from .models import EngineDeps, EngineOptions, LoopScoping
from .templates import lookup, resolve_templates, stringify, tokenize

logger = logging.getLogger(__name__)

LOOP_VARIABLES = ("loop_item", "loop_index")


class StepInterpreter:
    """Execute blueprint steps for one run."""

    def __init__(
        self,
        *,
        deps: EngineDeps,
        credentials: Mapping[str, Dict[str, Any]],
        options: Optional[EngineOptions] = None,
    ) -> None:
        """
        Initialize the StepInterpreter.

        Args:
            deps: Collaborators used by steps (API caller, agent invoker, runs repository).
            credentials: The run's decoded credentials keyed by platform name.
            options: Behavioural switches; defaults apply when omitted.
        """
        self._deps = deps
        self._credentials = credentials
        self._options = options or EngineOptions()

    async def run(self, blueprint: Blueprint, context: ExecutionContext) -> Dict[str, Any]:
        """Execute every top-level step in order and return the final variables."""
        context.total_steps = len(blueprint.steps)
        for index, step in enumerate(blueprint.steps):
            context.current_step = index + 1
            await self.execute_step(step, context)
        return context.variables

    async def execute_step(self, step: Step, context: ExecutionContext) -> None:
        """Execute one step under its ``on_error`` policy."""
        context.raise_if_cancelled()
        try:
            await self._attempt(step, context)
            return
        except RunCancelled:
            raise
        except Exception as first_error:
            error = first_error

        if step.on_error is OnErrorPolicy.retry:
            await self._record(context, step, StepStatus.failed, f"Step failed, retrying: {step.label}", error=error)
            context.raise_if_cancelled()
            try:
                await self._attempt(step, context)
                return
            except RunCancelled:
                raise
            except Exception as retry_error:
                await self._record(
                    context, step, StepStatus.failed, f"Step failed after retry: {step.label}", error=retry_error
                )
                raise

        if step.on_error is OnErrorPolicy.continue_:
            await self._record(
                context, step, StepStatus.failed, f"Step failed but continuing: {step.label}", error=error
            )
            return

        await self._record(context, step, StepStatus.failed, f"Step failed: {step.label}", error=error)
        raise error

    async def _attempt(self, step: Step, context: ExecutionContext) -> None:
        await self._record(context, step, StepStatus.running, f"Starting step: {step.label}")
        output = await self._dispatch(step, context)
        await self._record(context, step, StepStatus.completed, f"Completed step: {step.label}", output=output)

    async def _dispatch(self, step: Step, context: ExecutionContext) -> Any:
        match step:
            case ActionStep():
                return await self._run_action(step, context)
            case ConditionStep():
                return await self._run_condition(step, context)
            case LoopStep():
                return await self._run_loop(step, context)
            case DelayStep():
                return await self._run_delay(step, context)
            case AIAgentCallStep():
                return await self._run_ai_agent_call(step, context)
            case _:
                raise UnknownStepType(str(getattr(step, "type", type(step).__name__)))

    async def _run_action(self, step: ActionStep, context: ExecutionContext) -> Any:
        action = step.action
        platform = PlatformName(action.integration)
        credentials = require_credentials(self._credentials, platform)
        parameters = resolve_templates(action.parameters, context.variables)

        logger.info("Executing action %s.%s (step %s)", platform, action.method, step.id)
        result = await self._deps.caller.call(platform, action.method, parameters, credentials)
        if action.output_variable:
            context.variables[action.output_variable] = result
        return {"platform": str(platform), "method": action.method}

    async def _run_condition(self, step: ConditionStep, context: ExecutionContext) -> Any:
        condition = step.condition
        outcome = evaluate_condition(condition.expression, context.variables)
        logger.debug("Condition %r evaluated to %s (step %s)", condition.expression, outcome, step.id)

        branch: List[Step] = condition.if_true if outcome else (condition.if_false or [])
        for nested in branch:
            await self.execute_step(nested, context)
        return {"result": outcome}

    async def _run_loop(self, step: LoopStep, context: ExecutionContext) -> Any:
        loop = step.loop
        items = self._resolve_loop_source(loop.array_source, context)
        if not isinstance(items, (list, tuple)):
            raise LoopSourceTypeError(loop.array_source, type(items).__name__)

        scoped = self._options.loop_scoping is LoopScoping.scoped and context.loop_depth > 0
        outer = {name: context.variables[name] for name in LOOP_VARIABLES if name in context.variables}

        context.loop_depth += 1
        try:
            for index, item in enumerate(items):
                context.variables["loop_item"] = item
                context.variables["loop_index"] = index
                for nested in loop.steps:
                    await self.execute_step(nested, context)
        finally:
            context.loop_depth -= 1
            if scoped:
                for name in LOOP_VARIABLES:
                    context.variables.pop(name, None)
                context.variables.update(outer)
        return {"iterations": len(items)}

    def _resolve_loop_source(self, source: Any, context: ExecutionContext) -> Any:
        if not isinstance(source, str):
            return resolve_templates(source, context.variables)
        text = source.strip()
        if "{{" in text:
            tokens = tokenize(text)
            if len(tokens) == 1 and tokens[0].kind == "ref":
                found, value = lookup(context.variables, tokens[0].value)
                return value if found else None
            return resolve_templates(text, context.variables)
        found, value = lookup(context.variables, text)
        return value if found else None

    async def _run_delay(self, step: DelayStep, context: ExecutionContext) -> Any:
        seconds = step.delay.duration_seconds
        if seconds > 0:
            try:
                await asyncio.wait_for(context.cancel_event.wait(), timeout=seconds)
            except asyncio.TimeoutError:
                return {"waited_seconds": seconds}
            raise RunCancelled(context.run_id)
        return {"waited_seconds": 0}

    async def _run_ai_agent_call(self, step: AIAgentCallStep, context: ExecutionContext) -> Any:
        call = step.ai_agent_call
        if self._deps.agents is None:
            raise AgentConfigurationError("No AI agent invoker is configured")
        prompt = stringify(resolve_templates(call.input_prompt, context.variables))

        logger.info("Calling AI agent %s (step %s)", call.agent_id, step.id)
        answer = await self._deps.agents.invoke(call.agent_id, prompt)
        if call.output_variable:
            context.variables[call.output_variable] = answer
        return {"agent_id": call.agent_id}

    async def _record(
        self,
        context: ExecutionContext,
        step: Step,
        status: StepStatus,
        message: str,
        *,
        error: Optional[BaseException] = None,
        output: Any = None,
    ) -> None:
        entry = context.log(step.id, status, message, error=str(error) if error else None, output=output)
        if status is StepStatus.failed:
            logger.warning("[%s] %s: %s", context.run_id, entry.message, entry.error)
        else:
            logger.debug("[%s] %s", context.run_id, entry.message)
        await self._persist(context)

    async def _persist(self, context: ExecutionContext) -> None:
        if self._deps.runs is None:
            return
        try:
            await self._deps.runs.save_progress(context.run_id, context.progress())
        except Exception:
            logger.warning("Failed to persist progress of run %s", context.run_id, exc_info=True)
