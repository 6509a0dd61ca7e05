"""Local filesystem workspace store.

Stores each workspace as a pretty-printed JSON file under a data root with
an optional namespace prefix::

    {data_root}/{prefix}/spec-kits/{org}/{repo}/{feature}.json

Path separators inside any segment are replaced with ``_`` so a key always
maps to exactly one file two directories below the root.

Uses ``anyio.to_thread.run_sync`` for non-blocking file I/O.  Writes are
atomic (temp file + rename) and writes to the same key are serialised by a
per-key lock, so concurrent updates from one process never interleave.
Separate processes writing the same key still race: last writer wins.

Records missing newer fields (``key``, timestamps, metadata arrays) are
backfilled on read so that older files stay loadable.
"""

from __future__ import annotations

import contextlib
import json
import os
import tempfile
from collections.abc import AsyncIterator
from datetime import UTC, datetime
from functools import partial
from pathlib import Path
from typing import Any

import anyio
from anyio import to_thread
from loguru import logger

from speckit.orchestrator.errors import (
    MalformedIdentifierError,
    StorageUnavailableError,
    WorkspaceAlreadyExistsError,
    WorkspaceNotFoundError,
)
from speckit.orchestrator.identifiers import from_id, sanitize_segment, to_id
from speckit.orchestrator.models.api import WorkspaceCreate
from speckit.orchestrator.models.workspace import Workspace, WorkspaceKey, WorkspaceMetadata

STORAGE_DIRNAME = "spec-kits"


def storage_root(data_root: str | Path, prefix: str | None = None) -> Path:
    base = Path(data_root)
    if prefix:
        base = base / prefix
    return base / STORAGE_DIRNAME


class LocalWorkspaceStore:
    """Local filesystem implementation of the WorkspaceStore protocol."""

    def __init__(self, data_root: str | Path, prefix: str | None = None) -> None:
        self._base = storage_root(data_root, prefix)
        self._locks: dict[str, anyio.Lock] = {}

    @property
    def base_path(self) -> Path:
        return self._base

    def workspace_path(self, key: WorkspaceKey) -> Path:
        return (
            self._base
            / sanitize_segment(key.org)
            / sanitize_segment(key.repo)
            / f"{sanitize_segment(key.feature)}.json"
        )

    @contextlib.asynccontextmanager
    async def _locked(self, key: WorkspaceKey) -> AsyncIterator[None]:
        """Hold the write lock of *key*.  The entry is dropped once nobody holds or awaits it."""
        path = str(self.workspace_path(key))
        lock = self._locks.get(path)
        if lock is None:
            lock = self._locks[path] = anyio.Lock()
        try:
            async with lock:
                yield
        finally:
            if not lock.locked() and lock.statistics().tasks_waiting == 0 and self._locks.get(path) is lock:
                del self._locks[path]

    # -- Lifecycle -------------------------------------------------------------

    async def init(self) -> None:
        try:
            await to_thread.run_sync(partial(self._base.mkdir, parents=True, exist_ok=True))
        except OSError as exc:
            msg = f"Cannot create workspace storage at {self._base}: {exc}"
            raise StorageUnavailableError(msg) from exc
        logger.info("Workspace store ready at {}", self._base)

    # -- Read ------------------------------------------------------------------

    async def list_workspaces(self) -> list[Workspace]:
        return await to_thread.run_sync(partial(_scan_workspaces, self._base))

    async def get_workspace(self, key: WorkspaceKey) -> Workspace | None:
        return await to_thread.run_sync(partial(_load_workspace, self.workspace_path(key)))

    async def get_workspace_by_id(self, workspace_id: str) -> Workspace | None:
        return await self.get_workspace(from_id(workspace_id))

    # -- Write -----------------------------------------------------------------

    async def create_workspace(self, body: WorkspaceCreate) -> Workspace:
        key = body.key
        async with self._locked(key):
            if await self.get_workspace(key) is not None:
                raise WorkspaceAlreadyExistsError(to_id(key))

            now = _utcnow()
            workspace = Workspace(
                id=to_id(key),
                key=key,
                title=body.title,
                description=body.description,
                created_at=now,
                updated_at=now,
                archived=False,
                metadata=_copy_metadata(body.metadata),
            )
            await self._persist(workspace)
        logger.debug("Created workspace {}", workspace.id)
        return workspace

    async def update_metadata(self, key: WorkspaceKey, metadata: WorkspaceMetadata) -> Workspace:
        async with self._locked(key):
            workspace = await self._require(key)
            workspace.metadata = _copy_metadata(metadata)
            _touch(workspace)
            await self._persist(workspace)
        return workspace

    async def archive_workspace(self, key: WorkspaceKey, *, archived: bool = True) -> Workspace:
        async with self._locked(key):
            workspace = await self._require(key)
            workspace.archived = archived
            _touch(workspace)
            await self._persist(workspace)
        logger.debug("Workspace {} archived={}", workspace.id, archived)
        return workspace

    async def _require(self, key: WorkspaceKey) -> Workspace:
        workspace = await self.get_workspace(key)
        if workspace is None:
            raise WorkspaceNotFoundError(to_id(key))
        return workspace

    async def _persist(self, workspace: Workspace) -> None:
        data = json.dumps(workspace.to_json_dict(), indent=2, ensure_ascii=False)
        await to_thread.run_sync(partial(atomic_write, self.workspace_path(workspace.key), data))


# -- Normalisation ---------------------------------------------------------------


def _utcnow() -> datetime:
    return datetime.now(tz=UTC)


def _as_utc(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _touch(workspace: Workspace) -> None:
    workspace.updated_at = max(_utcnow(), workspace.created_at)


def _copy_metadata(metadata: WorkspaceMetadata | None) -> WorkspaceMetadata:
    if metadata is None:
        return WorkspaceMetadata()
    return metadata.model_copy(deep=True)


def normalize_workspace(raw: Any) -> Workspace:
    """Build a ``Workspace`` from a decoded file, backfilling missing fields.

    Raises ``ValueError`` (including ``MalformedIdentifierError`` and pydantic
    ``ValidationError``) when the record cannot be recovered.
    """
    if not isinstance(raw, dict):
        msg = f"Expected a JSON object, got {type(raw).__name__}"
        raise ValueError(msg)  # noqa: TRY004

    workspace_id = raw.get("id")
    if raw.get("key") is not None:
        key = WorkspaceKey.model_validate(raw["key"])
    elif isinstance(workspace_id, str):
        key = from_id(workspace_id)
    else:
        msg = "Workspace record has neither 'key' nor 'id'"
        raise MalformedIdentifierError(msg)

    now = _utcnow()
    created_at = raw.get("createdAt") or now
    workspace = Workspace(
        id=workspace_id or to_id(key),
        key=key,
        title=raw.get("title"),
        description=raw.get("description"),
        created_at=created_at,
        updated_at=raw.get("updatedAt") or created_at,
        archived=bool(raw.get("archived")),
        metadata=WorkspaceMetadata.model_validate(raw.get("metadata") or {}),
    )
    workspace.created_at = _as_utc(workspace.created_at)
    workspace.updated_at = max(_as_utc(workspace.updated_at), workspace.created_at)
    return workspace


# -- Sync helpers (run in thread pool) -----------------------------------------


def _load_workspace(path: Path) -> Workspace | None:
    """Read and normalise one file.  ``None`` if missing or unreadable."""
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
        return normalize_workspace(raw)
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Skipping unreadable workspace file {}: {}", path, exc)
        return None


def _scan_workspaces(base: Path) -> list[Workspace]:
    """Walk ``org/repo/feature.json`` below *base*."""
    try:
        org_dirs = sorted(base.iterdir())
    except FileNotFoundError:
        return []
    except OSError as exc:
        msg = f"Cannot read workspace storage at {base}: {exc}"
        raise StorageUnavailableError(msg) from exc

    results: list[Workspace] = []
    for org_dir in _subdirectories(org_dirs):
        for repo_dir in _subdirectories(_list_or_skip(org_dir)):
            for path in _list_or_skip(repo_dir):
                if path.suffix != ".json" or not path.is_file():
                    continue
                workspace = _load_workspace(path)
                if workspace is not None:
                    results.append(workspace)

    results.sort(key=lambda w: w.updated_at, reverse=True)
    return results


def _list_or_skip(directory: Path) -> list[Path]:
    """Sorted entries of *directory*; an unreadable directory is logged and skipped."""
    try:
        return sorted(directory.iterdir())
    except OSError as exc:
        logger.warning("Skipping unreadable directory {}: {}", directory, exc)
        return []


def _subdirectories(entries: list[Path]) -> list[Path]:
    return [entry for entry in entries if entry.is_dir()]


def atomic_write(path: Path, data: str) -> None:
    """Write via a temp file in the same directory, then rename over *path*."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_path = tempfile.mkstemp(dir=path.parent, suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(data)
        os.replace(tmp_path, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_path)
        raise
