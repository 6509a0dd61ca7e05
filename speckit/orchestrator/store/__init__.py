"""Workspace persistence backends."""

from speckit.orchestrator.store.base import WorkspaceStore
from speckit.orchestrator.store.local import LocalWorkspaceStore
from speckit.orchestrator.store.selection import LocalSelectionStore

__all__ = ["LocalSelectionStore", "LocalWorkspaceStore", "WorkspaceStore"]
