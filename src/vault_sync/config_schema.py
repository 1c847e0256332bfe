"""Unified configuration schema for vault_sync.

Defines Pydantic models for the unified config structure with dedicated
sections for the GitHub connection, the local vault, and logging.
Includes an adapter that flattens the YAML sections into the fallback
dict consumed by ``load_config()``.

Usage:
    from vault_sync.config_schema import build_config, to_yaml_fallbacks

    raw = load_hierarchical_config()
    unified = build_config(raw)
    fallbacks = to_yaml_fallbacks(unified)
"""

from __future__ import annotations

import logging
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Section models
# ---------------------------------------------------------------------------


class GitHubConfig(BaseModel):
    """GitHub connection settings.

    All fields are optional to support zero-config: env vars and CLI args
    can supply them at runtime instead.
    """

    token: str | None = Field(
        default=None, description="GitHub personal access token"
    )
    repository: str | None = Field(
        default=None, description="Remote repository as owner/name"
    )
    branches: list[str] | None = Field(
        default=None,
        description="Branch names tried in order (default: main, master)",
    )
    api_url: str | None = Field(
        default=None, description="GitHub API base URL"
    )
    request_timeout: int = Field(
        default=60,
        ge=1,
        le=600,
        description="Read timeout for GitHub requests in seconds (1-600)",
    )

    model_config = {"frozen": True}


class VaultConfig(BaseModel):
    """Local vault settings.

    Attributes:
        root: Vault directory (relative paths resolve against CWD).
        device_name: Label included in sync commit messages.
        extension: Tracked document extension.
    """

    root: str | None = Field(default=None, description="Vault directory")
    device_name: str | None = Field(
        default=None, description="Device label for commit messages"
    )
    extension: str = Field(
        default=".md", description="Tracked document extension"
    )
    debug: bool = Field(default=False, description="Enable debug mode")

    model_config = {"frozen": True}


class LoggingConfig(BaseModel):
    """Logging configuration.

    Attributes:
        level: Log level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        file: Optional log file path.
    """

    level: str | None = Field(
        default=None, description="Log level (overridden by LOG_LEVEL)"
    )
    file: str | None = Field(default=None, description="Log file path")

    model_config = {"frozen": True}


# ---------------------------------------------------------------------------
# Top-level unified config
# ---------------------------------------------------------------------------


class UnifiedConfig(BaseModel):
    """Top-level unified configuration.

    Every section has sensible defaults, so ``UnifiedConfig()`` is always
    valid.
    """

    github: GitHubConfig = Field(default_factory=GitHubConfig)
    vault: VaultConfig = Field(default_factory=VaultConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"frozen": True}


def build_config(raw_data: dict) -> UnifiedConfig:
    """Construct a ``UnifiedConfig`` from the raw dict returned by
    ``load_hierarchical_config()``.

    Handles missing sections gracefully: anything absent gets defaults.

    Args:
        raw_data: Merged configuration dictionary.

    Returns:
        Validated ``UnifiedConfig`` instance.
    """
    if not raw_data:
        return UnifiedConfig()

    return UnifiedConfig(**raw_data)


def to_yaml_fallbacks(unified: UnifiedConfig) -> dict[str, Any]:
    """Flatten the ``github`` and ``vault`` sections for ``load_config()``.

    ``None`` values are dropped so they never shadow built-in defaults.

    Args:
        unified: The unified config produced by ``build_config()``.

    Returns:
        Flat dict keyed by the names ``load_config()`` reads.
    """
    merged = {
        **unified.github.model_dump(),
        **unified.vault.model_dump(),
    }
    return {k: v for k, v in merged.items() if v is not None}
