"""
Sandboxed filesystem access.

This module provides the sandbox policy, the path validator that guards
every operation, and the tool dispatcher that exposes read, write, list and
system-information operations to a remote client.
"""

from sandbox_mcp.filesystem.config import SandboxPolicy
from sandbox_mcp.filesystem.exceptions import (
    ErrorKind,
    FileSystemError,
    InvalidPathError,
    MissingArgumentError,
    PolicyDeniedError,
    UnknownToolError,
)
from sandbox_mcp.filesystem.validator import (
    Allowed,
    Denied,
    ExtensionCheck,
    Invalid,
    PathValidator,
    ValidationResult,
)
from sandbox_mcp.filesystem.reader import DirectoryEntry, SandboxedFileReader
from sandbox_mcp.filesystem.writer import SandboxedFileWriter
from sandbox_mcp.filesystem.system_info import SystemInfo, collect_system_info
from sandbox_mcp.filesystem.tools import (
    TOOL_SCHEMAS,
    ToolDispatcher,
    ToolRequest,
    ToolResult,
)

__all__ = [
    "SandboxPolicy",
    "ErrorKind",
    "FileSystemError",
    "InvalidPathError",
    "MissingArgumentError",
    "PolicyDeniedError",
    "UnknownToolError",
    "Allowed",
    "Denied",
    "ExtensionCheck",
    "Invalid",
    "PathValidator",
    "ValidationResult",
    "DirectoryEntry",
    "SandboxedFileReader",
    "SandboxedFileWriter",
    "SystemInfo",
    "collect_system_info",
    "TOOL_SCHEMAS",
    "ToolDispatcher",
    "ToolRequest",
    "ToolResult",
]
