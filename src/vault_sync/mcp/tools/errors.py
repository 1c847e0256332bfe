"""Error response builders for MCP tool handlers.

This module provides structured error responses with corrective actions
to help AI agents recover from errors without human intervention.
"""

import mcp.types as types

from ...core.errors import (
    AuthenticationError,
    NotFoundError,
    RemoteError,
    SyncInProgressError,
    SyncOperationError,
    VaultSyncError,
)


def build_error_response(
    error_type: str, message: str, corrective_action: str
) -> types.CallToolResult:
    """Build a structured error response with corrective action.

    Args:
        error_type: Error category (authentication_failed, not_found,
            remote_error, busy, sync_failed, validation_error, server_error)
        message: Human-readable error description
        corrective_action: Specific action the agent can take to resolve the error

    Returns:
        CallToolResult with isError=True

    Examples:
        >>> build_error_response("busy", "Push in progress", "Retry when it finishes.")
        CallToolResult(content=[TextContent(...)], isError=True)
    """
    error_text = f"Error ({error_type}): {message}\n\nAction: {corrective_action}"

    return types.CallToolResult(
        content=[types.TextContent(type="text", text=error_text)],
        isError=True,
    )


def translate_sync_error(error: VaultSyncError) -> types.CallToolResult:
    """Translate a vault-sync exception into a structured error response."""
    match error:
        case AuthenticationError():
            return build_error_response(
                "authentication_failed",
                str(error),
                "Check VAULT_SYNC_GITHUB_TOKEN and restart the server.",
            )
        case NotFoundError():
            return build_error_response(
                "not_found",
                str(error),
                "Use repo_list to verify the repository name and token access.",
            )
        case SyncInProgressError():
            return build_error_response(
                "busy",
                str(error),
                "Wait for the running operation to finish, then retry.",
            )
        case SyncOperationError():
            action = "Run sync_status to see what is left, then retry."
            if error.path:
                action = f"Check {error.path}, run sync_status, then retry."
            return build_error_response("sync_failed", str(error), action)
        case RemoteError():
            return build_error_response(
                "remote_error",
                str(error),
                "Check network connectivity and GitHub status, then retry.",
            )
        case _:
            return build_error_response(
                "server_error",
                str(error),
                "Check the server log and retry.",
            )
