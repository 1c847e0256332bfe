"""Core GitHub client functionality shared between the sync engine and MCP server."""

from .async_utils import run_sync
from .client import GitHubClient

__all__ = ["GitHubClient", "run_sync"]
