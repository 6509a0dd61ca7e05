"""Persist pipeline progress through workspace metadata.

Run state is kept under an extra metadata field, one entry per pipeline::

    "metadata": {
      "promptHistory": [...],
      "pipelineRuns": {
        "<pipeline id>": { ...WorkspaceRunState... }
      }
    }

Saving is a read-modify-write of the whole metadata document, so it races
with any other writer updating the same workspace.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from loguru import logger
from pydantic import ValidationError

from speckit.orchestrator.errors import WorkspaceNotFoundError
from speckit.orchestrator.identifiers import from_id
from speckit.orchestrator.models.pipeline import WorkspaceRunState
from speckit.orchestrator.models.workspace import Workspace, WorkspaceMetadata

if TYPE_CHECKING:
    from speckit.orchestrator.execution.runner import PipelineRunner
    from speckit.orchestrator.store.base import WorkspaceStore

PIPELINE_RUNS_FIELD = "pipelineRuns"


async def save_checkpoint(
    store: WorkspaceStore,
    runner: PipelineRunner,
    workspace_id: str | None = None,
) -> Workspace:
    """Write the runner's state for *workspace_id* into the workspace metadata.

    Raises ``MalformedIdentifierError`` if the runner's workspace id is not a
    store id, and ``WorkspaceNotFoundError`` if the record does not exist.
    """
    workspace_id = workspace_id or runner.active_workspace_id
    key = from_id(workspace_id)
    workspace = await store.get_workspace(key)
    if workspace is None:
        raise WorkspaceNotFoundError(workspace_id)

    state = runner.state(workspace_id)
    data = workspace.metadata.model_dump(mode="json", by_alias=True)
    runs = dict(data.get(PIPELINE_RUNS_FIELD) or {})
    runs[state.pipeline_id] = state.to_json_dict()
    data[PIPELINE_RUNS_FIELD] = runs

    updated = await store.update_metadata(key, WorkspaceMetadata.model_validate(data))
    logger.debug("Saved run of pipeline {} for workspace {}", state.pipeline_id, workspace_id)
    return updated


def saved_run(workspace: Workspace, pipeline_id: str) -> WorkspaceRunState | None:
    """Return the saved run of *pipeline_id*, or ``None`` if absent or unreadable."""
    runs = (workspace.metadata.model_extra or {}).get(PIPELINE_RUNS_FIELD)
    if not isinstance(runs, dict) or pipeline_id not in runs:
        return None
    try:
        snapshot = WorkspaceRunState.model_validate(runs[pipeline_id])
    except ValidationError as exc:
        logger.warning("Ignoring unreadable saved run {} in workspace {}: {}", pipeline_id, workspace.id, exc)
        return None
    return snapshot.model_copy(update={"workspace_id": workspace.id})


async def load_checkpoint(
    store: WorkspaceStore,
    runner: PipelineRunner,
    workspace_id: str | None = None,
) -> bool:
    """Restore the runner's state for *workspace_id* from the store.

    Returns ``True`` if a saved run of the runner's pipeline was applied.
    """
    workspace_id = workspace_id or runner.active_workspace_id
    workspace = await store.get_workspace_by_id(workspace_id)
    if workspace is None:
        return False
    snapshot = saved_run(workspace, runner.pipeline.id)
    if snapshot is None:
        return False
    return runner.restore_state(snapshot)
