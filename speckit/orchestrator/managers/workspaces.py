"""Workspace manager -- store operations plus the current-workspace selection.

The hosting UI works against one "current" workspace at a time.  The
selection is persisted so it survives restarts, and is cleared whenever it
points at a workspace that was archived or no longer exists.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger

from speckit.orchestrator.errors import ArchivedWorkspaceError, MalformedIdentifierError, WorkspaceNotFoundError
from speckit.orchestrator.identifiers import to_id

if TYPE_CHECKING:
    from speckit.orchestrator.models.api import WorkspaceCreate
    from speckit.orchestrator.models.workspace import Workspace, WorkspaceKey, WorkspaceMetadata
    from speckit.orchestrator.store.base import WorkspaceStore
    from speckit.orchestrator.store.selection import LocalSelectionStore


class WorkspaceManager:
    """Facade used by the API layer and the CLI."""

    def __init__(self, store: WorkspaceStore, selection: LocalSelectionStore) -> None:
        self._store = store
        self._selection = selection

    @property
    def store(self) -> WorkspaceStore:
        return self._store

    async def init(self) -> None:
        await self._store.init()

    # -- Delegated reads -------------------------------------------------------

    async def list_workspaces(self) -> list[Workspace]:
        return await self._store.list_workspaces()

    async def get_workspace(self, key: WorkspaceKey) -> Workspace | None:
        return await self._store.get_workspace(key)

    async def get_workspace_by_id(self, workspace_id: str) -> Workspace | None:
        return await self._store.get_workspace_by_id(workspace_id)

    # -- Writes ----------------------------------------------------------------

    async def create_workspace(self, body: WorkspaceCreate) -> Workspace:
        """Create a workspace and make it the current one."""
        workspace = await self._store.create_workspace(body)
        await self._selection.set_current_id(workspace.id)
        return workspace

    async def update_workspace_metadata(self, key: WorkspaceKey, metadata: WorkspaceMetadata) -> Workspace:
        return await self._store.update_metadata(key, metadata)

    async def archive_workspace(self, key: WorkspaceKey, *, archived: bool = True) -> Workspace:
        """Archive (or restore) a workspace, dropping it from the selection if current."""
        workspace = await self._store.archive_workspace(key, archived=archived)
        if workspace.archived and await self._selection.get_current_id() == workspace.id:
            await self._selection.set_current_id(None)
        return workspace

    # -- Selection -------------------------------------------------------------

    async def select_workspace(self, key: WorkspaceKey) -> Workspace:
        workspace = await self._store.get_workspace(key)
        if workspace is None:
            raise WorkspaceNotFoundError(to_id(key))
        if workspace.archived:
            msg = f"Cannot select archived workspace '{workspace.id}'"
            raise ArchivedWorkspaceError(msg)
        await self._selection.set_current_id(workspace.id)
        return workspace

    async def get_current_workspace(self) -> Workspace | None:
        current_id = await self._selection.get_current_id()
        if current_id is None:
            return None

        try:
            workspace = await self._store.get_workspace_by_id(current_id)
        except MalformedIdentifierError:
            workspace = None
        if workspace is None or workspace.archived:
            logger.info("Clearing stale workspace selection {}", current_id)
            await self._selection.set_current_id(None)
            return None
        return workspace
