"""Orchestrator configuration loaded from SPECKIT_* environment variables."""

from __future__ import annotations

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class SpecKitSettings(BaseSettings):
    """Spec Kit orchestrator settings.

    All fields are read from environment variables with the ``SPECKIT_``
    prefix, e.g. ``SPECKIT_DATA_ROOT=/var/lib/speckit`` maps to ``data_root``.
    """

    model_config = SettingsConfigDict(
        env_prefix="SPECKIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "INFO"

    # -- Data storage ----------------------------------------------------------
    data_root: str = "./data"
    """Root directory for all persisted data."""

    data_prefix: str | None = None
    """Optional namespace directory inserted below ``data_root``.

    Workspace files then live under ``{data_root}/{data_prefix}/spec-kits``.
    """

    # -- Pipeline --------------------------------------------------------------
    auto_advance: bool = True
    """Move to the next step after a step completes successfully."""

    # -- Server ----------------------------------------------------------------
    host: str = "127.0.0.1"
    port: int = 8700


@lru_cache(maxsize=1)
def get_settings() -> SpecKitSettings:
    """Return a cached settings instance.

    Call ``get_settings.cache_clear()`` in tests after changing env vars.
    """
    return SpecKitSettings()
