"""Shared enumerations used across the orchestrator."""

from __future__ import annotations

from enum import StrEnum

# -- Workspace ---------------------------------------------------------------


class PromptRole(StrEnum):
    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


# -- Pipeline ----------------------------------------------------------------


class StepStatus(StrEnum):
    """Per-step runtime status."""

    IDLE = "idle"
    RUNNING = "running"
    COMPLETED = "completed"
    ERROR = "error"


class RunnerStatus(StrEnum):
    """Per-workspace pipeline status.

    ``ERROR`` is not terminal: the current step may be retried.
    """

    IDLE = "idle"
    RUNNING = "running"
    PAUSED = "paused"
    COMPLETED = "completed"
    ERROR = "error"
