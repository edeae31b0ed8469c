"""
Sandbox MCP Server - sandboxed filesystem tools over the Model Context Protocol.

This package exposes a small set of filesystem and system-information
operations to a remote client, gated by a path-sandboxing validator.
"""

__version__ = "1.0.0"

from sandbox_mcp.filesystem import (
    Allowed,
    Denied,
    ErrorKind,
    ExtensionCheck,
    FileSystemError,
    Invalid,
    InvalidPathError,
    PathValidator,
    PolicyDeniedError,
    SandboxPolicy,
    ToolDispatcher,
    ToolRequest,
    ToolResult,
    ValidationResult,
)

from sandbox_mcp.settings import ServerConfig

__all__ = [
    # Version
    "__version__",
    # Policy and validation
    "SandboxPolicy",
    "PathValidator",
    "ValidationResult",
    "Allowed",
    "Denied",
    "Invalid",
    "ExtensionCheck",
    # Errors
    "ErrorKind",
    "FileSystemError",
    "InvalidPathError",
    "PolicyDeniedError",
    # Dispatch
    "ToolDispatcher",
    "ToolRequest",
    "ToolResult",
    # Settings
    "ServerConfig",
]
