"""Blueprint schema: the validated, tagged-union form of an automation."""

from .errors import InvalidBlueprint, UnknownStepType
from .schemas import (
    ActionSpec,
    ActionStep,
    AIAgentCallSpec,
    AIAgentCallStep,
    Blueprint,
    ConditionSpec,
    ConditionStep,
    DelaySpec,
    DelayStep,
    LoopSpec,
    LoopStep,
    OnErrorPolicy,
    Step,
)

__all__ = [
    "ActionSpec",
    "ActionStep",
    "AIAgentCallSpec",
    "AIAgentCallStep",
    "Blueprint",
    "ConditionSpec",
    "ConditionStep",
    "DelaySpec",
    "DelayStep",
    "InvalidBlueprint",
    "LoopSpec",
    "LoopStep",
    "OnErrorPolicy",
    "Step",
    "UnknownStepType",
]
