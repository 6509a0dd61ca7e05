"""Domain exceptions.

Each one subclasses a builtin so callers can catch broadly
(``LookupError``, ``ValueError``).  HTTP translation happens in the routers.
"""

from __future__ import annotations


class MalformedIdentifierError(ValueError):
    """A workspace id cannot be split into org, repo and feature."""


class WorkspaceAlreadyExistsError(ValueError):
    """A workspace record already exists for the key."""


class WorkspaceNotFoundError(LookupError):
    """No workspace record exists for the key."""


class ArchivedWorkspaceError(ValueError):
    """The operation is not allowed on an archived workspace."""


class StorageUnavailableError(RuntimeError):
    """The storage root cannot be created or read."""


class NoCurrentStepError(LookupError):
    """The pipeline has no step at the current index."""


class StepAlreadyRunningError(RuntimeError):
    """A step is already executing for this workspace."""


class StepCancelledError(RuntimeError):
    """The in-flight step was cancelled before it produced a result."""
