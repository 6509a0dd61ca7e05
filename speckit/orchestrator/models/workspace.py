"""Workspace data model.

A workspace is one unit of spec work scoped to an organization, repository
and feature.  It is persisted as a single JSON document by the workspace
store and never hard-deleted (``archived`` is a soft delete).
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import ConfigDict, Field, field_validator

from speckit.orchestrator.models.base import CamelModel
from speckit.orchestrator.models.enums import PromptRole


class WorkspaceKey(CamelModel):
    """Three-part workspace address."""

    model_config = ConfigDict(frozen=True)

    org: str = Field(min_length=1)
    repo: str = Field(min_length=1)
    feature: str = Field(min_length=1)


# -- Metadata entries ----------------------------------------------------------


class PromptMessage(CamelModel):
    id: str
    role: PromptRole
    content: str
    created_at: datetime
    metadata: dict[str, Any] | None = None


class SpecRevision(CamelModel):
    id: str
    summary: str | None = None
    created_at: datetime
    author: str | None = None
    metadata: dict[str, Any] | None = None


class PatchPointer(CamelModel):
    """Reference to a generated patch on disk."""

    id: str
    description: str | None = None
    path: str
    created_at: datetime
    metadata: dict[str, Any] | None = None


class WorkspaceMetadata(CamelModel):
    """Workspace history plus open-ended extra fields.

    Unknown keys (for example saved pipeline runs) are kept verbatim.
    """

    model_config = ConfigDict(extra="allow")

    prompt_history: list[PromptMessage] = Field(default_factory=list)
    spec_revisions: list[SpecRevision] = Field(default_factory=list)
    generated_patch_pointers: list[PatchPointer] = Field(default_factory=list)

    @field_validator("prompt_history", "spec_revisions", "generated_patch_pointers", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return [] if value is None else value


def default_metadata() -> WorkspaceMetadata:
    return WorkspaceMetadata()


class Workspace(CamelModel):
    """Persisted workspace record."""

    id: str
    key: WorkspaceKey
    title: str | None = None
    description: str | None = None
    created_at: datetime
    updated_at: datetime
    archived: bool = False
    metadata: WorkspaceMetadata = Field(default_factory=WorkspaceMetadata)
