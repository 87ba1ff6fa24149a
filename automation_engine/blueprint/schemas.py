"""Blueprint models.

A blueprint is an ordered list of steps. Each step is one variant of a tagged
union discriminated by its ``type`` field; nested step lists (condition
branches and loop bodies) use the same union so trees of any depth validate in
one pass.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Any, Dict, List, Literal, Optional, Union

from pydantic import ConfigDict, Field, ValidationError, field_validator, model_validator

from automation_engine.schemas.base import BaseSchema

from .errors import InvalidBlueprint, UnknownStepType


class OnErrorPolicy(str, Enum):
    stop = "stop"
    continue_ = "continue"
    retry = "retry"


class BlueprintSchema(BaseSchema):
    # Blueprints are authored outside the engine and may carry extra
    # presentation keys, so unknown fields are ignored rather than rejected.
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class ActionSpec(BlueprintSchema):
    integration: str
    method: str
    parameters: Dict[str, Any] = Field(default_factory=dict)
    output_variable: Optional[str] = None


class ConditionSpec(BlueprintSchema):
    expression: str
    if_true: List["Step"] = Field(default_factory=list)
    if_false: Optional[List["Step"]] = None


class LoopSpec(BlueprintSchema):
    array_source: Any
    steps: List["Step"] = Field(default_factory=list)


class DelaySpec(BlueprintSchema):
    duration_seconds: float = Field(default=0, ge=0)


class AIAgentCallSpec(BlueprintSchema):
    agent_id: str
    input_prompt: str = ""
    output_variable: Optional[str] = None


class _StepBase(BlueprintSchema):
    id: str = ""
    name: str = ""
    on_error: OnErrorPolicy = OnErrorPolicy.stop

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        return "" if value is None else str(value)

    @field_validator("on_error", mode="before")
    @classmethod
    def _normalize_on_error(cls, value: Any) -> OnErrorPolicy:
        if isinstance(value, OnErrorPolicy):
            return value
        try:
            return OnErrorPolicy(str(value).strip().lower())
        except ValueError:
            return OnErrorPolicy.stop

    @property
    def label(self) -> str:
        return self.name or self.id


class ActionStep(_StepBase):
    type: Literal["action"] = "action"
    action: ActionSpec


class ConditionStep(_StepBase):
    type: Literal["condition"] = "condition"
    condition: ConditionSpec


class LoopStep(_StepBase):
    type: Literal["loop"] = "loop"
    loop: LoopSpec


class DelayStep(_StepBase):
    type: Literal["delay"] = "delay"
    delay: DelaySpec = Field(default_factory=DelaySpec)


class AIAgentCallStep(_StepBase):
    type: Literal["ai_agent_call"] = "ai_agent_call"
    ai_agent_call: AIAgentCallSpec


Step = Annotated[
    Union[ActionStep, ConditionStep, LoopStep, DelayStep, AIAgentCallStep],
    Field(discriminator="type"),
]

ConditionSpec.model_rebuild()
LoopSpec.model_rebuild()
ConditionStep.model_rebuild()
LoopStep.model_rebuild()


def child_step_lists(step: Step) -> List[List[Step]]:
    """Return the nested step lists owned by ``step``."""
    if isinstance(step, ConditionStep):
        lists = [step.condition.if_true]
        if step.condition.if_false is not None:
            lists.append(step.condition.if_false)
        return lists
    if isinstance(step, LoopStep):
        return [step.loop.steps]
    return []


def _assign_ids(steps: List[Step], prefix: str) -> None:
    seen: set[str] = set()
    for step in steps:
        if not step.id:
            continue
        if step.id in seen:
            raise ValueError(f"Duplicate step id {step.id!r}")
        seen.add(step.id)

    for position, step in enumerate(steps, start=1):
        if not step.id:
            candidate = f"{prefix}step_{position}"
            suffix = 2
            while candidate in seen:
                candidate = f"{prefix}step_{position}_{suffix}"
                suffix += 1
            step.id = candidate
            seen.add(candidate)
        for branch, nested in enumerate(child_step_lists(step), start=1):
            _assign_ids(nested, f"{step.id}.{branch}.")


class Blueprint(BlueprintSchema):
    version: str = "1.0"
    description: str = ""
    trigger: Any = None
    steps: List[Step] = Field(default_factory=list)
    variables: Dict[str, Any] = Field(default_factory=dict)

    @field_validator("version", mode="before")
    @classmethod
    def _coerce_version(cls, value: Any) -> str:
        return "1.0" if value is None else str(value)

    @field_validator("variables", mode="before")
    @classmethod
    def _default_variables(cls, value: Any) -> Any:
        return {} if value is None else value

    @model_validator(mode="after")
    def _check_step_ids(self) -> "Blueprint":
        # Steps without an id get a positional one; ids must be unique per list.
        _assign_ids(self.steps, "")
        return self

    @classmethod
    def from_payload(cls, payload: Any) -> "Blueprint":
        """Validate a raw blueprint payload.

        Raises:
            UnknownStepType: a step (at any depth) names an unsupported type.
            InvalidBlueprint: any other schema violation.
        """
        if not isinstance(payload, dict):
            raise InvalidBlueprint(f"Blueprint must be an object, got {type(payload).__name__}")
        try:
            return cls.model_validate(payload)
        except ValidationError as exc:
            for error in exc.errors():
                if error.get("type") == "union_tag_invalid":
                    tag = (error.get("ctx") or {}).get("tag", "")
                    raise UnknownStepType(str(tag)) from exc
            raise InvalidBlueprint(f"Invalid blueprint: {exc}") from exc
