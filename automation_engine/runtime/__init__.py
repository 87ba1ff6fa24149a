"""Blueprint runtime: execution context, templates, expressions and the step interpreter."""

from .context import ExecutionContext
from .errors import ExpressionValidationFailure, LoopSourceTypeError, RunCancelled, RunTimeout
from .expressions import evaluate_condition
from .interpreter import StepInterpreter
from .models import EngineDeps, EngineOptions, LoopScoping
from .templates import resolve_templates

__all__ = [
    "EngineDeps",
    "EngineOptions",
    "ExecutionContext",
    "ExpressionValidationFailure",
    "LoopScoping",
    "LoopSourceTypeError",
    "RunCancelled",
    "RunTimeout",
    "StepInterpreter",
    "evaluate_condition",
    "resolve_templates",
]
