"""MCP stdio server exposing the vault sync engine as tools."""
