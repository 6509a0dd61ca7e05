"""Workspace store interface.

The store owns durable workspace records, one JSON document per
``(org, repo, feature)`` key.  The interface is async so that file I/O never
blocks the event loop driving the pipeline runner.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from speckit.orchestrator.models.api import WorkspaceCreate
from speckit.orchestrator.models.workspace import Workspace, WorkspaceKey, WorkspaceMetadata


@runtime_checkable
class WorkspaceStore(Protocol):
    """Async protocol for workspace persistence.

    Storage layout::

        {root}/{org}/{repo}/{feature}.json
    """

    async def init(self) -> None:
        """Create the storage root.  Raises ``StorageUnavailableError``."""
        ...

    async def list_workspaces(self) -> list[Workspace]:
        """All readable workspaces, most recently updated first."""
        ...

    async def get_workspace(self, key: WorkspaceKey) -> Workspace | None:
        """Return the workspace, or ``None`` if no record exists."""
        ...

    async def get_workspace_by_id(self, workspace_id: str) -> Workspace | None:
        """Like ``get_workspace``.  Raises ``MalformedIdentifierError`` on a bad id."""
        ...

    async def create_workspace(self, body: WorkspaceCreate) -> Workspace:
        """Create a record.  Raises ``WorkspaceAlreadyExistsError``."""
        ...

    async def update_metadata(self, key: WorkspaceKey, metadata: WorkspaceMetadata) -> Workspace:
        """Replace metadata wholesale.  Raises ``WorkspaceNotFoundError``."""
        ...

    async def archive_workspace(self, key: WorkspaceKey, *, archived: bool = True) -> Workspace:
        """Set the archived flag.  Raises ``WorkspaceNotFoundError``."""
        ...
