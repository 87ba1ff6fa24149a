"""Root of the engine's error taxonomy.

Every failure the engine raises on purpose derives from :class:`AutomationError`
so callers can separate expected execution failures from programming errors.
Each subclass carries a stable machine readable ``code`` that is surfaced in API
error responses.
"""

from __future__ import annotations


class AutomationError(Exception):
    """Base class for all engine errors."""

    code: str = "automation_error"

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message

    def __str__(self) -> str:
        return self.message
