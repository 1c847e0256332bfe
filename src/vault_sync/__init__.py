"""Sync a local Markdown vault with a GitHub repository over MCP."""

__version__ = "0.1.0"
