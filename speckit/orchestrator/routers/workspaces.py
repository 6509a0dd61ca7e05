"""Workspace endpoints (RPC-style).

Writes use POST; reads of a single record also use POST because the key is
a structured body rather than a path segment.
"""

from __future__ import annotations

from collections.abc import Awaitable
from typing import TypeVar

from fastapi import APIRouter, HTTPException, status

from speckit.orchestrator.deps import Manager
from speckit.orchestrator.errors import (
    ArchivedWorkspaceError,
    MalformedIdentifierError,
    StorageUnavailableError,
    WorkspaceAlreadyExistsError,
    WorkspaceNotFoundError,
)
from speckit.orchestrator.models.api import (
    WorkspaceArchive,
    WorkspaceCreate,
    WorkspaceLookup,
    WorkspaceMetadataUpdate,
)
from speckit.orchestrator.models.workspace import Workspace

router = APIRouter(prefix="/workspaces", tags=["workspaces"])

T = TypeVar("T")


async def _call(operation: Awaitable[T]) -> T:
    """Await a manager call, translating domain errors to HTTP errors."""
    try:
        return await operation
    except WorkspaceNotFoundError as exc:
        raise HTTPException(status.HTTP_404_NOT_FOUND, detail=f"Workspace '{exc}' not found.") from None
    except WorkspaceAlreadyExistsError as exc:
        raise HTTPException(status.HTTP_409_CONFLICT, detail=f"Workspace '{exc}' already exists.") from None
    except (MalformedIdentifierError, ArchivedWorkspaceError) as exc:
        raise HTTPException(status.HTTP_400_BAD_REQUEST, detail=str(exc)) from None
    except StorageUnavailableError as exc:
        raise HTTPException(status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc)) from None


@router.get("/list", response_model=list[Workspace])
async def list_workspaces(manager: Manager) -> list[Workspace]:
    """List all workspaces, most recently updated first."""
    return await _call(manager.list_workspaces())


@router.post(
    "/create",
    response_model=Workspace,
    status_code=status.HTTP_201_CREATED,
)
async def create_workspace(body: WorkspaceCreate, manager: Manager) -> Workspace:
    """Create a workspace and select it."""
    return await _call(manager.create_workspace(body))


@router.post("/get", response_model=Workspace | None)
async def get_workspace(body: WorkspaceLookup, manager: Manager) -> Workspace | None:
    """Get a workspace by key; ``null`` when it does not exist."""
    return await _call(manager.get_workspace(body.key))


@router.post("/update-metadata", response_model=Workspace)
async def update_workspace_metadata(body: WorkspaceMetadataUpdate, manager: Manager) -> Workspace:
    """Replace a workspace's metadata."""
    return await _call(manager.update_workspace_metadata(body.key, body.metadata))


@router.post("/archive", response_model=Workspace)
async def archive_workspace(body: WorkspaceArchive, manager: Manager) -> Workspace:
    """Archive (or, with ``archived: false``, restore) a workspace."""
    return await _call(manager.archive_workspace(body.key, archived=body.archived))


@router.post("/select", response_model=Workspace)
async def select_workspace(body: WorkspaceLookup, manager: Manager) -> Workspace:
    """Make a workspace the current one."""
    return await _call(manager.select_workspace(body.key))


@router.get("/current", response_model=Workspace | None)
async def get_current_workspace(manager: Manager) -> Workspace | None:
    """Return the current workspace, or ``null`` if none is selected."""
    return await _call(manager.get_current_workspace())
