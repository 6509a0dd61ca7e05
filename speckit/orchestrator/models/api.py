"""Request schemas for the workspace endpoints.

Responses reuse the domain ``Workspace`` model directly.
"""

from __future__ import annotations

from pydantic import Field

from speckit.orchestrator.models.base import CamelModel
from speckit.orchestrator.models.workspace import WorkspaceKey, WorkspaceMetadata


class WorkspaceCreate(CamelModel):
    """Input for creating a workspace.  Missing metadata arrays default to empty."""

    key: WorkspaceKey
    title: str | None = None
    description: str | None = None
    metadata: WorkspaceMetadata | None = None


class WorkspaceLookup(CamelModel):
    key: WorkspaceKey


class WorkspaceMetadataUpdate(CamelModel):
    """Wholesale metadata replacement (not a merge)."""

    key: WorkspaceKey
    metadata: WorkspaceMetadata


class WorkspaceArchive(CamelModel):
    key: WorkspaceKey
    archived: bool = Field(default=True, description="Defaults to archiving; pass false to restore.")
