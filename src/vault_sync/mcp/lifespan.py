"""Startup and shutdown of one MCP server session.

Startup resolves the configuration, checks the GitHub token and builds the
``SyncController`` the tools share.  Any failure is reported on stderr and
raised as ``RuntimeError`` so the entry point can exit non-zero before the
stdio transport starts.
"""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import yaml
from dotenv import load_dotenv

from ..config import Config, load_config
from ..config_loader import discover_config_files, load_hierarchical_config
from ..config_schema import build_config, to_yaml_fallbacks
from ..core.async_utils import run_sync
from ..core.client import GitHubClient
from ..sync.controller import SyncController, SyncSession

logger = logging.getLogger(__name__)

_CONFIG_HINT = "Ensure VAULT_SYNC_GITHUB_TOKEN and VAULT_SYNC_REPOSITORY are set."
_TOKEN_HINT = "Check VAULT_SYNC_GITHUB_TOKEN."


def _stderr_print(msg: str) -> None:
    """Print to stderr; stdout belongs to the MCP transport."""
    print(msg, file=sys.stderr, flush=True)


def _resolve_config(overrides: dict[str, Any]) -> tuple[Config, list[str]]:
    """Merge CLI > env > .env > YAML > defaults; return config and source names."""
    # .env first so YAML ${VAR} interpolation sees its values
    load_dotenv()

    sources: list[str] = []
    yaml_fallbacks = None
    config_files = discover_config_files()
    if config_files:
        yaml_fallbacks = to_yaml_fallbacks(build_config(load_hierarchical_config()))
        sources.append(f"config file: {config_files[0]}")

    config = load_config(
        token=overrides.get("token"),
        repository=overrides.get("repository"),
        vault_root=overrides.get("vault_root"),
        device_name=overrides.get("device_name"),
        debug=overrides.get("debug", False),
        yaml_fallbacks=yaml_fallbacks,
    )
    if overrides:
        sources.append("CLI arguments")
    sources.append("environment variables")
    return config, sources


@asynccontextmanager
async def server_lifespan(
    config_overrides: dict[str, Any] | None = None,
) -> AsyncIterator[dict[str, Any]]:
    """Yield ``{"controller": SyncController}`` for the session.

    Args:
        config_overrides: Values from the command line (token, repository,
            vault_root, device_name, debug).

    Raises:
        RuntimeError: On invalid configuration or a rejected token.
    """
    logger.info("MCP server starting...")
    _stderr_print("Vault Sync MCP Server starting...")

    try:
        config, sources = _resolve_config(config_overrides or {})
    except (ValueError, yaml.YAMLError) as e:
        logger.error("Configuration error: %s", e)
        _stderr_print(f"ERROR: Configuration error: {e}")
        _stderr_print(f"  {_CONFIG_HINT}")
        raise RuntimeError(f"Configuration error: {e}. {_CONFIG_HINT}") from e

    source_desc = ", ".join(sources)
    logger.info(
        "Configuration loaded from %s (repository %s, vault %s)",
        source_desc,
        config.repository,
        config.vault_path,
    )
    _stderr_print(f"  Configuration loaded from: {source_desc}")
    _stderr_print(f"  Repository: {config.repository}")
    _stderr_print(f"  Vault: {config.vault_path}")

    _stderr_print("  Validating GitHub token...")
    client = GitHubClient(config)
    try:
        login = await run_sync(client.get_authenticated_user)
    except Exception as e:
        logger.error("GitHub token check failed: %s", e)
        _stderr_print("ERROR: GitHub authentication failed.")
        _stderr_print(f"  {e}")
        _stderr_print(f"  {_TOKEN_HINT}")
        raise RuntimeError(f"GitHub authentication failed: {e}. {_TOKEN_HINT}") from e

    logger.info("Authenticated to GitHub as %s", login)
    _stderr_print(f"  Authenticated as {login}")
    _stderr_print("Server ready. Waiting for MCP client connection...")

    yield {"controller": SyncController(SyncSession.from_config(config, client))}

    logger.info("MCP server shutting down")
    _stderr_print("Vault Sync MCP Server shutting down.")
