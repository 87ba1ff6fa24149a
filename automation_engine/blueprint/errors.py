from __future__ import annotations

from automation_engine.core.errors import AutomationError


class InvalidBlueprint(AutomationError):
    """The blueprint payload does not match the blueprint schema."""

    code = "invalid_blueprint"


class UnknownStepType(InvalidBlueprint):
    """A step declares a ``type`` the engine does not implement."""

    code = "unknown_step_type"

    def __init__(self, step_type: str) -> None:
        super().__init__(f"Unknown step type: {step_type}")
        self.step_type = step_type
