"""Schemas and DTOs for the automation engine."""

from .domain import (
    AIAgent,
    Automation,
    AutomationRun,
    LogEntry,
    PlatformCredential,
    RunProgress,
    RunStatus,
    StepStatus,
)

__all__ = [
    "AIAgent",
    "Automation",
    "AutomationRun",
    "LogEntry",
    "PlatformCredential",
    "RunProgress",
    "RunStatus",
    "StepStatus",
]
