"""Stdio MCP server exposing the vault sync tools.

An MCP client (Claude Desktop, an IDE agent) talks JSON-RPC over stdin and
stdout; every human-readable message goes to stderr or the log file.
"""

import argparse
import asyncio
import logging
import sys

import mcp.server.stdio
import mcp.types as types
import yaml
from mcp.server import NotificationOptions, Server
from mcp.server.models import InitializationOptions

from .. import __version__
from ..config_loader import ensure_config, load_hierarchical_config
from ..config_schema import LoggingConfig, build_config
from ..logger import setup_logging
from ..sync.controller import SyncController
from .lifespan import server_lifespan
from .tools import (
    ALL_SPECS,
    ToolRegistry,
    build_error_response,
    load_permissions_file,
)

logger = logging.getLogger(__name__)

SERVER_NAME = "vault-sync-mcp"

server = Server(SERVER_NAME)

# Installed by main() for the lifetime of one stdio session
_controller: SyncController | None = None
_registry: ToolRegistry | None = None


def get_controller() -> SyncController:
    """Controller of the running session.

    Raises:
        RuntimeError: Outside a running session.
    """
    if _controller is None:
        raise RuntimeError("SyncController not initialized; the server is not running.")
    return _controller


def set_controller(controller: SyncController | None) -> None:
    global _controller
    _controller = controller


def get_registry() -> ToolRegistry:
    """Tool registry of the running session.

    Raises:
        RuntimeError: Outside a running session.
    """
    if _registry is None:
        raise RuntimeError("ToolRegistry not initialized; the server is not running.")
    return _registry


def set_registry(registry: ToolRegistry | None) -> None:
    global _registry
    _registry = registry


# ---------------------------------------------------------------------------
# Protocol handlers
# ---------------------------------------------------------------------------


@server.list_tools()
async def handle_list_tools() -> list[types.Tool]:
    return get_registry().list_tools()


@server.call_tool()
async def handle_call_tool(
    name: str, arguments: dict | None
) -> types.CallToolResult:
    """Route a tool call through the registry.

    Tool failures are already error results; an unknown name is turned
    into one here.
    """
    controller = get_controller()
    try:
        return await get_registry().call_tool(name, arguments, controller)
    except ValueError as e:
        return build_error_response(
            "unknown_tool", str(e), "Use list_tools to see available tools."
        )


# ---------------------------------------------------------------------------
# Startup
# ---------------------------------------------------------------------------


def load_logging_config() -> LoggingConfig:
    """``logging`` section of the YAML config; defaults when unreadable.

    Runs before logging is set up, so problems are reported on stderr.
    """
    try:
        return build_config(load_hierarchical_config()).logging
    except (yaml.YAMLError, OSError, ValueError) as e:
        print(f"Ignoring logging config: {e}", file=sys.stderr)
        return LoggingConfig()


def build_registry(permissions_file: str | None = None) -> ToolRegistry:
    """Registry of all tools, narrowed by *permissions_file* when given."""
    allowed = load_permissions_file(permissions_file) if permissions_file else None
    registry = ToolRegistry(ALL_SPECS, allowed)
    if allowed is not None:
        logger.info(
            "Permissions from %s: %s", permissions_file, ", ".join(sorted(allowed))
        )
    logger.info("Exposing %d of %d tools", registry.tool_count(), len(ALL_SPECS))
    return registry


async def main(config_overrides: dict | None = None):
    """Serve one MCP session over stdio.

    Args:
        config_overrides: Values from the command line (token, repository,
            vault_root, device_name, log_file, permissions_file, debug);
            they win over env vars and config files.
    """
    overrides = config_overrides or {}
    logging_config = load_logging_config()

    # Logging must be file-only before stdio_server takes over stdout
    setup_logging(
        mode="mcp",
        debug=overrides.get("debug", False),
        log_file=overrides.get("log_file") or logging_config.file,
        level=logging_config.level,
    )
    logger.info("%s %s", SERVER_NAME, __version__)

    permissions_file = overrides.get("permissions_file")
    registry = build_registry(permissions_file)
    if permissions_file:
        print(
            f"Permissions file: {permissions_file} "
            f"({registry.tool_count()} of {len(ALL_SPECS)} tools enabled)",
            file=sys.stderr,
        )
    set_registry(registry)

    async with server_lifespan(config_overrides=overrides) as ctx:
        set_controller(ctx["controller"])
        try:
            async with mcp.server.stdio.stdio_server() as (read_stream, write_stream):
                await server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=SERVER_NAME,
                        server_version=__version__,
                        capabilities=server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                    ),
                )
        finally:
            set_controller(None)
            set_registry(None)


# ---------------------------------------------------------------------------
# Command line
# ---------------------------------------------------------------------------

_EPILOG = """
Configuration is read from (highest first): command line, environment,
.env, VAULT_SYNC_CONFIG, .vault_sync/config.yml in the working directory,
then ~/.config/vault_sync/config.yml.

Examples:
  vault-sync-mcp --repository me/notes --vault-root ~/notes
  vault-sync-mcp --device-name laptop --log-file ~/vault-sync.log
  vault-sync-mcp --permissions-file read-only.permissions
  vault-sync-mcp --init-config

The server speaks JSON-RPC on stdin/stdout; start it from an MCP client
rather than by hand.
"""


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog=SERVER_NAME,
        description="Sync a local Markdown vault with a GitHub repository over MCP.",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=_EPILOG,
    )
    parser.add_argument(
        "--token",
        help="GitHub token; prefer VAULT_SYNC_GITHUB_TOKEN, arguments show up in ps",
    )
    parser.add_argument("--repository", help="Target repository as owner/name")
    parser.add_argument("--vault-root", help="Local vault directory")
    parser.add_argument("--device-name", help="Label for sync commit messages")
    parser.add_argument("--debug", action="store_true", help="Log at DEBUG level")
    parser.add_argument(
        "--log-file",
        help="Log file (default: LOG_FILE, logging.file from YAML, or /tmp/vault-sync-mcp.log)",
    )
    parser.add_argument(
        "--permissions-file",
        help="Expose only tools allowed by this file "
        "(one of REPO_READ, REPO_WRITE, VAULT_WRITE per line, # comments)",
    )
    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a commented starter config to .vault_sync/config.yml and exit",
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"{SERVER_NAME} {__version__}",
    )
    return parser


_OVERRIDE_KEYS = (
    "token",
    "repository",
    "vault_root",
    "device_name",
    "log_file",
    "permissions_file",
)


def overrides_from_args(args: argparse.Namespace) -> dict:
    """Config overrides for the options given on the command line."""
    overrides = {key: getattr(args, key) for key in _OVERRIDE_KEYS if getattr(args, key)}
    if args.debug:
        overrides["debug"] = True
    return overrides


def run() -> None:
    """Console entry point."""
    args = build_parser().parse_args()
    if args.init_config:
        print(f"Config file: {ensure_config()}", file=sys.stderr)
        return

    overrides = overrides_from_args(args)
    shown = [key for key in overrides if key != "token"]
    if shown:
        print(f"Config overrides from CLI: {', '.join(shown)}", file=sys.stderr)

    try:
        asyncio.run(main(config_overrides=overrides or None))
    except RuntimeError:
        # lifespan already reported the cause on stderr
        sys.exit(1)
    except KeyboardInterrupt:
        print("\nInterrupted.", file=sys.stderr)
        sys.exit(0)


if __name__ == "__main__":
    run()
