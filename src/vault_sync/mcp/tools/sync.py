"""MCP tool handlers for vault sync.

Defines four tools:

- ``sync_status`` -- run a reconciliation pass and list the differences.
- ``sync_diff`` -- show one difference from the last pass line by line.
- ``sync_pull`` -- apply remote content locally (remote wins).
- ``sync_push`` -- publish local changes as one commit.

Pull and push act on the diff list of the last ``sync_status`` call,
optionally narrowed with ``paths``.
"""

from __future__ import annotations

import logging
from typing import Any

import mcp.types as types

from ...sync.controller import SyncController
from ...sync.models import PULLABLE_STATUSES, PUSHABLE_STATUSES, SyncStatus
from ...sync.reporter import (
    diffs_to_json,
    format_diff_detail,
    format_diff_list,
    format_pull_result,
    format_push_result,
)
from .errors import build_error_response
from .registry import ToolSpec

logger = logging.getLogger(__name__)

_PATHS_SCHEMA = {
    "type": "array",
    "items": {"type": "string"},
    "description": (
        "Vault-relative paths to include. Defaults to every eligible path "
        "from the last sync_status."
    ),
}


# ---------------------------------------------------------------------------
# Individual handlers
# ---------------------------------------------------------------------------


def _paths_arg(args: dict[str, Any]) -> list[str] | None:
    paths = args.get("paths")
    if paths is None:
        return None
    if not isinstance(paths, list) or not all(isinstance(p, str) for p in paths):
        raise ValueError("paths must be a list of strings")
    return paths


def _select(
    controller: SyncController,
    statuses: frozenset[SyncStatus],
    paths: list[str] | None,
    action: str,
):
    selected = controller.select(statuses, paths)
    if paths is not None:
        missing = sorted(set(paths) - {d.path for d in selected})
        if missing:
            raise ValueError(
                f"Not {action}able in the last sync_status: {', '.join(missing)}"
            )
    return selected


async def _handle_sync_status(
    controller: SyncController, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sync_status`` tool."""
    diffs = await controller.run_reconciliation()

    text = format_diff_list(diffs)
    structured = diffs_to_json(diffs)
    structured["pull_enabled"] = controller.pull_enabled
    structured["push_enabled"] = controller.push_enabled
    return types.CallToolResult(
        content=[types.TextContent(type="text", text=text)],
        structuredContent=structured,
    )


async def _handle_sync_diff(
    controller: SyncController, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sync_diff`` tool."""
    path = args.get("path")
    if not path:
        raise ValueError("path is required")

    diff = controller.get_diff(path)
    if diff is None:
        return build_error_response(
            "not_found",
            f"No difference recorded for {path}.",
            "Run sync_status first and use a path from its output.",
        )

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=format_diff_detail(diff))],
        structuredContent={
            "path": diff.path,
            "status": diff.status.value,
            "local_content": diff.local_content,
            "remote_content": diff.remote_content,
            "observed_local_path": diff.observed_local_path,
        },
    )


async def _handle_sync_pull(
    controller: SyncController, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sync_pull`` tool."""
    selected = _select(controller, PULLABLE_STATUSES, _paths_arg(args), "pull")
    result = await controller.run_pull(selected)

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=format_pull_result(result))],
        structuredContent={
            "processed": result.processed,
            "count": result.count,
            "notices": result.notices,
            "warnings": result.warnings,
            "remaining": diffs_to_json(controller.session.diffs)["total"],
        },
    )


async def _handle_sync_push(
    controller: SyncController, args: dict[str, Any]
) -> types.CallToolResult:
    """Handle the ``sync_push`` tool."""
    selected = _select(controller, PUSHABLE_STATUSES, _paths_arg(args), "push")
    result = await controller.run_push(selected)

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=format_push_result(result))],
        structuredContent={
            "processed": result.processed,
            "count": result.count,
            "commit_sha": result.commit_sha,
            "branch": result.branch,
            "skipped": result.skipped,
            "warnings": result.warnings,
            "remaining": diffs_to_json(controller.session.diffs)["total"],
        },
    )


# ---------------------------------------------------------------------------
# Tool definitions
# ---------------------------------------------------------------------------


SYNC_SPECS: list[ToolSpec] = [
    ToolSpec(
        tool=types.Tool(
            name="sync_status",
            description=(
                "Compare the local vault with the remote branch and list every "
                "file that differs, grouped by status (added, modified, "
                "remote-modified, remote-only, case-conflict-only, unknown)."
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
        handler=_handle_sync_status,
    ),
    ToolSpec(
        tool=types.Tool(
            name="sync_diff",
            description=(
                "Show a line-by-line view of one file from the last sync_status "
                "(remote lines prefixed '-', local lines '+')."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=True,
                destructiveHint=False,
                idempotentHint=True,
                openWorldHint=False,
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "path": {
                        "type": "string",
                        "description": "Path as shown by sync_status",
                    },
                },
                "required": ["path"],
            },
        ),
        permissions=frozenset({"REPO_READ"}),
        handler=_handle_sync_diff,
    ),
    ToolSpec(
        tool=types.Tool(
            name="sync_pull",
            description=(
                "Overwrite local files with remote content for pullable "
                "differences. Case conflicts are written as '-remote-' and "
                "'-local-' sibling files for manual merging, never overwritten."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=True,
                idempotentHint=False,
                openWorldHint=True,
            ),
            inputSchema={
                "type": "object",
                "properties": {"paths": _PATHS_SCHEMA},
                "required": [],
            },
        ),
        permissions=frozenset({"VAULT_WRITE"}),
        handler=_handle_sync_pull,
    ),
    ToolSpec(
        tool=types.Tool(
            name="sync_push",
            description=(
                "Publish local changes as a single commit on the remote branch. "
                "Added and modified files are uploaded; remote-only files are "
                "deleted remotely."
            ),
            annotations=types.ToolAnnotations(
                readOnlyHint=False,
                destructiveHint=True,
                idempotentHint=False,
                openWorldHint=True,
            ),
            inputSchema={
                "type": "object",
                "properties": {"paths": _PATHS_SCHEMA},
                "required": [],
            },
        ),
        permissions=frozenset({"REPO_WRITE"}),
        handler=_handle_sync_push,
    ),
]
