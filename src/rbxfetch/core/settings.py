"""Environment-driven settings for rbxfetch.

``RbxFetchSettings`` collects everything a :class:`~rbxfetch.client.Client`
needs from the process environment: the cache mode and location, the HTTP
timeout, logging options and an optional configuration file that replaces the
built-in chains and methods.

Manifesto:
    Configuration should be explicit, validated, and environment-driven.

    - **Pydantic validation:** Type-checked at startup, not at first fetch
    - **Environment-driven:** Reads ``RBXFETCH_*`` env vars and ``.env``
    - **Sensible defaults:** Temporary-directory caching out of the box

Examples:
    >>> from rbxfetch.core.settings import RbxFetchSettings
    >>> settings = RbxFetchSettings(cache_mode="none")
    >>> settings.cache_mode.value
    'none'

Tags:
    settings, configuration, pydantic, environment, rbxfetch

Doc-Types:
    - API Reference
    - Configuration Guide
"""

from __future__ import annotations

from enum import Enum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheMode(str, Enum):
    """How fetched data is cached between calls."""

    NONE = "none"  # never cached
    TEMP = "temp"  # temporary directory
    PERM = "perm"  # user cache directory, temporary directory if unavailable
    CUSTOM = "custom"  # cache_location


class RbxFetchSettings(BaseSettings):
    """Settings shared by the client and the CLI.

    Fields
    ──────
    cache_mode     : How fetched files are cached
    cache_location : Cache directory used when cache_mode is ``custom``
    timeout        : Per-request HTTP timeout in seconds
    log_level      : Structlog log level
    json_logs      : JSON log lines (None → auto-detect from tty)
    config_file    : YAML or JSON client configuration replacing the defaults
    """

    model_config = SettingsConfigDict(
        env_prefix="RBXFETCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── Cache ────────────────────────────────────────────────────
    cache_mode: CacheMode = CacheMode.TEMP
    cache_location: Path | None = None

    # ── Transport ────────────────────────────────────────────────
    timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    # ── Observability ────────────────────────────────────────────
    log_level: str = "WARNING"
    json_logs: bool | None = None

    # ── Chains ───────────────────────────────────────────────────
    config_file: Path | None = None


__all__ = ["CacheMode", "RbxFetchSettings"]
