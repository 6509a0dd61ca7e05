"""Pipeline definitions and per-workspace runtime state."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field, model_validator

from speckit.orchestrator.models.base import CamelModel
from speckit.orchestrator.models.enums import RunnerStatus, StepStatus

# -- Definitions ---------------------------------------------------------------


class StepPrompt(CamelModel):
    model_config = ConfigDict(frozen=True)

    template: str
    required_inputs: tuple[str, ...] = ()
    expected_outputs: tuple[str, ...] = ()


class PipelineStepDefinition(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    description: str | None = None
    prompt: StepPrompt
    metadata: dict[str, Any] | None = None


class PipelineDefinition(CamelModel):
    """Ordered list of steps.  Immutable once handed to a runner."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(min_length=1)
    name: str
    steps: tuple[PipelineStepDefinition, ...] = ()
    metadata: dict[str, Any] | None = None

    @model_validator(mode="after")
    def _unique_step_ids(self) -> PipelineDefinition:
        seen: set[str] = set()
        for step in self.steps:
            if step.id in seen:
                msg = f"Duplicate step id '{step.id}' in pipeline '{self.id}'"
                raise ValueError(msg)
            seen.add(step.id)
        return self

    def index_of(self, step_id: str) -> int | None:
        for index, step in enumerate(self.steps):
            if step.id == step_id:
                return index
        return None

    @property
    def last_index(self) -> int:
        return len(self.steps) - 1


# -- Runtime -------------------------------------------------------------------


class StepResult(CamelModel):
    """Output of one step execution."""

    content: str
    metadata: dict[str, Any] | None = None


class StepRuntimeState(CamelModel):
    id: str
    status: StepStatus = StepStatus.IDLE
    inputs: dict[str, Any] = Field(default_factory=dict)
    response: StepResult | None = None
    error: str | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None


class WorkspaceRunState(CamelModel):
    """Progress of one pipeline in one workspace.

    ``history`` is never empty and its last element is always
    ``current_step_index``.
    """

    workspace_id: str
    pipeline_id: str
    current_step_index: int = 0
    status: RunnerStatus = RunnerStatus.IDLE
    steps: dict[str, StepRuntimeState] = Field(default_factory=dict)
    history: list[int] = Field(default_factory=lambda: [0])
    started_at: datetime | None = None
    finished_at: datetime | None = None
    error: str | None = None

    @classmethod
    def initial(cls, pipeline: PipelineDefinition, workspace_id: str) -> WorkspaceRunState:
        return cls(
            workspace_id=workspace_id,
            pipeline_id=pipeline.id,
            steps={step.id: StepRuntimeState(id=step.id) for step in pipeline.steps},
        )
