"""FastAPI dependency injection for the workspace manager.

Usage in route handlers::

    @router.get("/things")
    async def list_things(manager: Manager) -> list[Workspace]:
        ...
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, HTTPException, Request, status

from speckit.orchestrator.managers.workspaces import WorkspaceManager


def get_workspace_manager(request: Request) -> WorkspaceManager:
    """Return the manager created during app lifespan.  503 if storage failed to start."""
    manager: WorkspaceManager | None = getattr(request.app.state, "workspace_manager", None)
    if manager is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Workspace storage is not available.",
        )
    return manager


Manager = Annotated[WorkspaceManager, Depends(get_workspace_manager)]
"""Annotated dependency: the process-wide workspace manager."""
