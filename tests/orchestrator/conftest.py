"""Fixtures for orchestrator tests."""

from __future__ import annotations

from collections.abc import AsyncIterator

import pytest
from httpx import ASGITransport, AsyncClient

from speckit.orchestrator.app import app
from speckit.orchestrator.managers.workspaces import WorkspaceManager
from speckit.orchestrator.models.pipeline import PipelineDefinition
from speckit.orchestrator.store.local import LocalWorkspaceStore
from speckit.orchestrator.store.selection import LocalSelectionStore
from tests.orchestrator.fakes import make_pipeline


@pytest.fixture
def pipeline() -> PipelineDefinition:
    return make_pipeline()


@pytest.fixture
def store(tmp_path) -> LocalWorkspaceStore:
    return LocalWorkspaceStore(tmp_path)


@pytest.fixture
def selection(tmp_path) -> LocalSelectionStore:
    return LocalSelectionStore(tmp_path)


@pytest.fixture
def manager(store: LocalWorkspaceStore, selection: LocalSelectionStore) -> WorkspaceManager:
    return WorkspaceManager(store=store, selection=selection)


@pytest.fixture
async def client(manager: WorkspaceManager) -> AsyncIterator[AsyncClient]:
    """Async HTTP client wired to the app with a temp-dir workspace manager.

    The app lifespan does NOT run under ``ASGITransport``, so the manager is
    pre-set on ``app.state``.
    """
    app.state.workspace_manager = manager
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.state.workspace_manager = None
