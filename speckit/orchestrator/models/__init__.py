"""Data models for the orchestrator."""

from speckit.orchestrator.models.api import (
    WorkspaceArchive,
    WorkspaceCreate,
    WorkspaceLookup,
    WorkspaceMetadataUpdate,
)
from speckit.orchestrator.models.enums import PromptRole, RunnerStatus, StepStatus
from speckit.orchestrator.models.pipeline import (
    PipelineDefinition,
    PipelineStepDefinition,
    StepPrompt,
    StepResult,
    StepRuntimeState,
    WorkspaceRunState,
)
from speckit.orchestrator.models.workspace import (
    PatchPointer,
    PromptMessage,
    SpecRevision,
    Workspace,
    WorkspaceKey,
    WorkspaceMetadata,
    default_metadata,
)

__all__ = [
    "PatchPointer",
    "PipelineDefinition",
    "PipelineStepDefinition",
    "PromptMessage",
    "PromptRole",
    "RunnerStatus",
    "SpecRevision",
    "StepPrompt",
    "StepResult",
    "StepRuntimeState",
    "StepStatus",
    "Workspace",
    "WorkspaceArchive",
    "WorkspaceCreate",
    "WorkspaceKey",
    "WorkspaceLookup",
    "WorkspaceMetadata",
    "WorkspaceMetadataUpdate",
    "WorkspaceRunState",
    "default_metadata",
]
