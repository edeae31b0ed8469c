"""Command-line interface for the sandbox MCP server."""

from sandbox_mcp.cli.main import cli

__all__ = ["cli"]
