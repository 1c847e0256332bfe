"""System tool handlers for MCP server.

This module implements connectivity tools: ``ping`` checks the GitHub
token and ``repo_list`` lists repositories the token can see, for picking
a sync target.
"""

import logging

import mcp.types as types

from ...core.async_utils import run_sync
from ...sync.controller import SyncController
from .registry import ToolSpec

logger = logging.getLogger(__name__)


async def _handle_ping(
    controller: SyncController, args: dict
) -> types.CallToolResult:
    """Handle ping tool -- validate the GitHub token."""
    session = controller.session
    login = await run_sync(session.client.get_authenticated_user)
    text = (
        f"Vault sync server connected to GitHub as {login}. "
        f"Repository: {session.config.repository}, vault: {session.config.vault_path}"
    )
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent={
            "login": login,
            "repository": session.config.repository,
            "vault_root": str(session.config.vault_path),
            "busy": controller.busy,
        },
    )


async def _handle_repo_list(
    controller: SyncController, args: dict
) -> types.CallToolResult:
    """Handle repo_list tool.

    Returns:
        CallToolResult listing up to 100 repositories, most recently
        updated first, with the configured one marked.
    """
    repos = await run_sync(controller.session.client.list_repositories)
    current = controller.session.config.repository

    if not repos:
        text = "No repositories visible to this token."
    else:
        lines = [f"{len(repos)} repositories (most recently updated first):"]
        for name in repos:
            marker = " (configured)" if name == current else ""
            lines.append(f"  {name}{marker}")
        text = "\n".join(lines)

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent={"repositories": repos, "configured": current},
    )


SYSTEM_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="ping",
            description="Test GitHub connectivity and return the authenticated login",
            inputSchema={
                "type": "object",
                "properties": {},
                "required": [],
            },
        ),
        permissions=frozenset(),
        handler=_handle_ping,
    ),
    ToolSpec(
        tool=types.Tool(
            name="repo_list",
            description=(
                "List repositories visible to the configured GitHub token, "
                "most recently updated first (up to 100)."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=True,
            ),
            inputSchema={
                "type": "object",
                "properties": {},
                "required": [],
            },
        ),
        permissions=frozenset({"REPO_READ"}),
        handler=_handle_repo_list,
    ),
]
