"""MCP tool handlers for vault sync operations.

This package contains MCP tool implementations that wrap the sync
controller with async handlers, text/JSON rendering, and structured error
responses.
"""

from .errors import build_error_response, translate_sync_error
from .registry import ToolRegistry, ToolSpec, load_permissions_file, parse_permissions
from .sync import SYNC_SPECS
from .system import SYSTEM_SPECS

ALL_SPECS: list[ToolSpec] = SYSTEM_SPECS + SYNC_SPECS

__all__ = [
    "build_error_response",
    "translate_sync_error",
    # Registry
    "ToolSpec",
    "ToolRegistry",
    "load_permissions_file",
    "parse_permissions",
    # Spec lists
    "ALL_SPECS",
    "SYNC_SPECS",
    "SYSTEM_SPECS",
]
