"""Persisted "current workspace" selection.

Stored next to the workspace tree as ``{root}/selection.json``::

    {"currentWorkspaceId": "acme/widgets/auth"}
"""

from __future__ import annotations

import json
from functools import partial
from pathlib import Path

from anyio import to_thread
from loguru import logger

from speckit.orchestrator.store.local import atomic_write, storage_root

SELECTION_FILENAME = "selection.json"


class LocalSelectionStore:
    def __init__(self, data_root: str | Path, prefix: str | None = None) -> None:
        self._path = storage_root(data_root, prefix) / SELECTION_FILENAME

    async def get_current_id(self) -> str | None:
        return await to_thread.run_sync(partial(_read_selection, self._path))

    async def set_current_id(self, workspace_id: str | None) -> None:
        data = json.dumps({"currentWorkspaceId": workspace_id}, indent=2)
        await to_thread.run_sync(partial(atomic_write, self._path, data))


def _read_selection(path: Path) -> str | None:
    try:
        raw = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as exc:
        logger.warning("Ignoring unreadable selection file {}: {}", path, exc)
        return None
    value = raw.get("currentWorkspaceId") if isinstance(raw, dict) else None
    if isinstance(value, str) and value:
        return value
    return None
