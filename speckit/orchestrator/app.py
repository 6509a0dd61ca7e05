"""FastAPI application exposing the workspace store to the hosting UI."""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.routing import APIRouter
from loguru import logger

from speckit.orchestrator.errors import StorageUnavailableError
from speckit.orchestrator.execution.executor import StepExecutor
from speckit.orchestrator.execution.runner import PipelineRunner
from speckit.orchestrator.log import setup_logging
from speckit.orchestrator.managers.workspaces import WorkspaceManager
from speckit.orchestrator.models.pipeline import PipelineDefinition
from speckit.orchestrator.settings import SpecKitSettings, get_settings
from speckit.orchestrator.store.local import LocalWorkspaceStore
from speckit.orchestrator.store.selection import LocalSelectionStore


def create_workspace_manager(settings: SpecKitSettings) -> WorkspaceManager:
    return WorkspaceManager(
        store=LocalWorkspaceStore(settings.data_root, prefix=settings.data_prefix),
        selection=LocalSelectionStore(settings.data_root, prefix=settings.data_prefix),
    )


def create_pipeline_runner(
    settings: SpecKitSettings,
    pipeline: PipelineDefinition,
    executor: StepExecutor | None = None,
    *,
    workspace_id: str | None = None,
) -> PipelineRunner:
    return PipelineRunner(pipeline, executor, workspace_id=workspace_id, auto_advance=settings.auto_advance)


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    # -- Startup ---------------------------------------------------------------
    settings = get_settings()
    setup_logging(settings.log_level)

    prefix_info = f", prefix={settings.data_prefix}" if settings.data_prefix else ""
    logger.info("Spec Kit orchestrator starting (data_root={}{})", settings.data_root, prefix_info)

    _app.state.workspace_manager = None
    manager = create_workspace_manager(settings)
    try:
        await manager.init()
    except StorageUnavailableError:
        logger.exception("Workspace storage unavailable -- workspace endpoints disabled")
    else:
        _app.state.workspace_manager = manager

    yield

    # -- Shutdown --------------------------------------------------------------
    logger.info("Spec Kit orchestrator shutting down")


app = FastAPI(title="Spec Kit Orchestrator", lifespan=lifespan)

# ---------------------------------------------------------------------------
# API router -- all endpoints live under /api
# ---------------------------------------------------------------------------
api = APIRouter(prefix="/api")


@api.get("/health")
async def health() -> dict[str, str]:
    return {"status": "ok"}


from speckit.orchestrator.routers.workspaces import router as workspaces_router  # noqa: E402

api.include_router(workspaces_router)

app.include_router(api)
