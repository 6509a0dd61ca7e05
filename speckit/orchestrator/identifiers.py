"""Workspace identifier helpers.

A workspace id is the string ``"{org}/{repo}/{feature}"``.  The feature
segment may itself contain ``/``; org and repo may not if the id is to
round-trip.
"""

from __future__ import annotations

import re

from pydantic import ValidationError

from speckit.orchestrator.errors import MalformedIdentifierError
from speckit.orchestrator.models.workspace import WorkspaceKey

_INVALID_SEGMENT = re.compile(r"[\\/]")


def to_id(key: WorkspaceKey) -> str:
    return f"{key.org}/{key.repo}/{key.feature}"


def from_id(workspace_id: str) -> WorkspaceKey:
    """Parse an id into its key.  Raises ``MalformedIdentifierError``."""
    parts = workspace_id.split("/", 2)
    if len(parts) < 3 or not all(parts):
        msg = f"Invalid workspace identifier: {workspace_id!r}"
        raise MalformedIdentifierError(msg)
    org, repo, feature = parts
    try:
        return WorkspaceKey(org=org, repo=repo, feature=feature)
    except ValidationError as exc:
        msg = f"Invalid workspace identifier: {workspace_id!r}"
        raise MalformedIdentifierError(msg) from exc


def sanitize_segment(segment: str) -> str:
    """Replace path separators so a segment maps to exactly one path component."""
    return _INVALID_SEGMENT.sub("_", segment)
