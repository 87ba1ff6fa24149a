from __future__ import annotations

from automation_engine.core.errors import AutomationError


class ExpressionValidationFailure(AutomationError):
    """A condition expression was rejected; conditions fail closed."""

    code = "expression_validation_failure"

    def __init__(self, expression: str, reason: str) -> None:
        super().__init__(f"Invalid condition expression {expression!r}: {reason}")
        self.expression = expression
        self.reason = reason


class LoopSourceTypeError(AutomationError):
    code = "loop_source_type_error"

    def __init__(self, source: object, actual_type: str) -> None:
        super().__init__(f"Loop array_source {source!r} must resolve to an array, got {actual_type}")
        self.source = source
        self.actual_type = actual_type


class RunCancelled(AutomationError):
    """The run was cancelled; never absorbed by a step's failure policy."""

    code = "run_cancelled"

    def __init__(self, run_id: str) -> None:
        super().__init__(f"Run {run_id} was cancelled")
        self.run_id = run_id


class RunTimeout(AutomationError):
    code = "run_timeout"

    def __init__(self, run_id: str, timeout_seconds: float) -> None:
        super().__init__(f"Run {run_id} exceeded the timeout of {timeout_seconds:g} seconds")
        self.run_id = run_id
        self.timeout_seconds = timeout_seconds
