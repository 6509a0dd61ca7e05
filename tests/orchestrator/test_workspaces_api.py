"""Tests for the workspace HTTP endpoints."""

from __future__ import annotations

from httpx import AsyncClient

KEY = {"org": "acme", "repo": "widgets", "feature": "auth"}


async def test_health(client: AsyncClient) -> None:
    resp = await client.get("/api/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


async def test_workspace_lifecycle(client: AsyncClient) -> None:
    """Exercise create -> get -> update -> list -> archive in one test."""
    # Create
    resp = await client.post("/api/workspaces/create", json={"key": KEY, "title": "Auth"})
    assert resp.status_code == 201
    ws = resp.json()
    assert ws["id"] == "acme/widgets/auth"
    assert ws["title"] == "Auth"
    assert ws["archived"] is False
    assert ws["metadata"]["promptHistory"] == []
    assert ws["createdAt"] == ws["updatedAt"]

    # Created workspaces become current
    resp = await client.get("/api/workspaces/current")
    assert resp.json()["id"] == "acme/widgets/auth"

    # Get
    resp = await client.post("/api/workspaces/get", json={"key": KEY})
    assert resp.status_code == 200
    assert resp.json()["id"] == "acme/widgets/auth"

    # Update metadata (camelCase in, camelCase out; extra fields kept)
    metadata = {
        "promptHistory": [{"id": "m1", "role": "user", "content": "hi", "createdAt": "2024-05-01T00:00:00Z"}],
        "specRevisions": [],
        "generatedPatchPointers": [],
        "notes": {"pinned": True},
    }
    resp = await client.post("/api/workspaces/update-metadata", json={"key": KEY, "metadata": metadata})
    assert resp.status_code == 200
    body = resp.json()
    assert body["metadata"]["promptHistory"][0]["content"] == "hi"
    assert body["metadata"]["notes"] == {"pinned": True}

    # List
    resp = await client.get("/api/workspaces/list")
    assert resp.status_code == 200
    assert [w["id"] for w in resp.json()] == ["acme/widgets/auth"]

    # Archive clears the selection
    resp = await client.post("/api/workspaces/archive", json={"key": KEY})
    assert resp.status_code == 200
    assert resp.json()["archived"] is True
    resp = await client.get("/api/workspaces/current")
    assert resp.json() is None

    # Archived workspaces are still listed and readable
    resp = await client.get("/api/workspaces/list")
    assert resp.json()[0]["archived"] is True


async def test_get_missing_returns_null(client: AsyncClient) -> None:
    resp = await client.post("/api/workspaces/get", json={"key": KEY})
    assert resp.status_code == 200
    assert resp.json() is None


async def test_create_duplicate(client: AsyncClient) -> None:
    resp1 = await client.post("/api/workspaces/create", json={"key": KEY})
    assert resp1.status_code == 201
    resp2 = await client.post("/api/workspaces/create", json={"key": KEY})
    assert resp2.status_code == 409


async def test_create_rejects_empty_segment(client: AsyncClient) -> None:
    resp = await client.post("/api/workspaces/create", json={"key": {**KEY, "feature": ""}})
    assert resp.status_code == 422


async def test_update_missing(client: AsyncClient) -> None:
    resp = await client.post("/api/workspaces/update-metadata", json={"key": KEY, "metadata": {}})
    assert resp.status_code == 404


async def test_archive_missing(client: AsyncClient) -> None:
    resp = await client.post("/api/workspaces/archive", json={"key": KEY})
    assert resp.status_code == 404


async def test_select_and_restore(client: AsyncClient) -> None:
    other = {**KEY, "feature": "billing"}
    await client.post("/api/workspaces/create", json={"key": KEY})
    await client.post("/api/workspaces/create", json={"key": other})

    resp = await client.post("/api/workspaces/select", json={"key": KEY})
    assert resp.status_code == 200
    assert (await client.get("/api/workspaces/current")).json()["id"] == "acme/widgets/auth"

    await client.post("/api/workspaces/archive", json={"key": other})
    resp = await client.post("/api/workspaces/select", json={"key": other})
    assert resp.status_code == 400

    resp = await client.post("/api/workspaces/archive", json={"key": other, "archived": False})
    assert resp.json()["archived"] is False
    resp = await client.post("/api/workspaces/select", json={"key": other})
    assert resp.status_code == 200


async def test_select_missing(client: AsyncClient) -> None:
    resp = await client.post("/api/workspaces/select", json={"key": KEY})
    assert resp.status_code == 404


async def test_storage_unavailable(client: AsyncClient) -> None:
    from speckit.orchestrator.app import app

    app.state.workspace_manager = None
    resp = await client.get("/api/workspaces/list")
    assert resp.status_code == 503
