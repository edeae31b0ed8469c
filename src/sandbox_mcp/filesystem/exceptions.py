"""
Exceptions for sandboxed filesystem operations.
"""

from enum import Enum


class ErrorKind(str, Enum):
    """Category of a failed tool call, surfaced to the client as ``error_type``."""

    POLICY_DENIED = "PolicyDenied"
    MALFORMED_INPUT = "MalformedInput"
    NOT_FOUND = "NotFound"
    IO_FAILURE = "IOFailure"
    UNKNOWN_OPERATION = "UnknownOperation"


class FileSystemError(Exception):
    """Base exception for sandboxed filesystem operations."""

    kind = ErrorKind.IO_FAILURE


class PolicyDeniedError(FileSystemError):
    """Raised when the sandbox policy forbids touching a path."""

    kind = ErrorKind.POLICY_DENIED

    def __init__(self, path: str, reason: str = "Access denied"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path}")


class InvalidPathError(FileSystemError):
    """Raised when a path is invalid or malformed."""

    kind = ErrorKind.MALFORMED_INPUT

    def __init__(self, path: str, reason: str = "Invalid path"):
        self.path = path
        self.reason = reason
        super().__init__(f"{reason}: {path!r}")


class MissingArgumentError(FileSystemError):
    """Raised when a tool call lacks a required argument or has the wrong type."""

    kind = ErrorKind.MALFORMED_INPUT

    def __init__(self, tool: str, argument: str, reason: str = "Missing required argument"):
        self.tool = tool
        self.argument = argument
        self.reason = reason
        super().__init__(f"{reason} '{argument}' for tool {tool}")


class UnknownToolError(FileSystemError):
    """Raised when a tool name is not part of the catalog."""

    kind = ErrorKind.UNKNOWN_OPERATION

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")
