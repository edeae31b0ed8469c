"""
Tool dispatcher exposing sandboxed filesystem operations.

Maps a tool name and its arguments to one of six operations, gates every
path through the ``PathValidator`` and always answers with a ``ToolResult``
envelope. Nothing raised by an operation escapes ``execute_tool``.
"""

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Optional

from sandbox_mcp.filesystem.exceptions import (
    ErrorKind,
    FileSystemError,
    MissingArgumentError,
    UnknownToolError,
)
from sandbox_mcp.filesystem.reader import SandboxedFileReader
from sandbox_mcp.filesystem.system_info import as_raw_dict, collect_system_info
from sandbox_mcp.filesystem.validator import PathValidator
from sandbox_mcp.filesystem.writer import DEFAULT_SAMPLE_FILENAME, SandboxedFileWriter

logger = logging.getLogger(__name__)

TOOL_SCHEMAS: list[dict[str, Any]] = [
    {
        "name": "read_file",
        "description": "Read the contents of a file (allowed directories only)",
        "inputSchema": {
            "type": "object",
            "properties": {
                "filepath": {
                    "type": "string",
                    "description": "Path of the file to read",
                },
            },
            "required": ["filepath"],
        },
    },
    {
        "name": "write_file",
        "description": "Write text to a file (allowed directories only)",
        "inputSchema": {
            "type": "object",
            "properties": {
                "filepath": {
                    "type": "string",
                    "description": "Path of the file to write",
                },
                "content": {
                    "type": "string",
                    "description": "Content to write",
                },
            },
            "required": ["filepath", "content"],
        },
    },
    {
        "name": "list_directory",
        "description": "List the contents of a directory (allowed directories only)",
        "inputSchema": {
            "type": "object",
            "properties": {
                "dirpath": {
                    "type": "string",
                    "description": "Path of the directory to list",
                },
            },
            "required": ["dirpath"],
        },
    },
    {
        "name": "get_system_info",
        "description": "Get information about the host system",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    },
    {
        "name": "create_sample_file",
        "description": "Create a sample file (for testing)",
        "inputSchema": {
            "type": "object",
            "properties": {
                "filename": {
                    "type": "string",
                    "description": f"Name of the file to create (default: {DEFAULT_SAMPLE_FILENAME})",
                },
            },
        },
    },
    {
        "name": "get_allowed_paths",
        "description": "Show the list of accessible paths",
        "inputSchema": {
            "type": "object",
            "properties": {},
        },
    },
]


@dataclass
class ToolRequest:
    """One client call."""

    operation: str
    arguments: dict[str, Any] = field(default_factory=dict)


@dataclass
class ToolResult:
    """Uniform result-or-error envelope for a tool call."""

    is_error: bool
    message: str
    data: Optional[dict[str, Any]] = None

    @classmethod
    def ok(cls, message: str, **data: Any) -> "ToolResult":
        return cls(is_error=False, message=message, data=data or None)

    @classmethod
    def error(cls, message: str, kind: ErrorKind, **data: Any) -> "ToolResult":
        return cls(
            is_error=True,
            message=f"Error: {message}",
            data={"error_type": kind.value, **data},
        )

    @property
    def error_type(self) -> Optional[str]:
        if not self.is_error or not self.data:
            return None
        return self.data.get("error_type")

    def to_content(self) -> list[dict[str, str]]:
        """Content blocks in protocol shape."""
        return [{"type": "text", "text": self.message}]


def _classify(exc: BaseException) -> ErrorKind:
    if isinstance(exc, FileSystemError):
        return exc.kind
    if isinstance(exc, FileNotFoundError):
        return ErrorKind.NOT_FOUND
    return ErrorKind.IO_FAILURE


class ToolDispatcher:
    """
    Routes tool calls to sandboxed filesystem operations.

    Usage:
        validator = PathValidator(SandboxPolicy(allowed_roots=["/srv/sandbox"]))
        dispatcher = ToolDispatcher(validator)

        result = await dispatcher.execute_tool(
            "read_file", {"filepath": "/srv/sandbox/notes.md"}
        )
        if result.is_error:
            print(result.message)
    """

    # Prefix used in error messages for each operation
    FAILURE_PREFIXES = {
        "read_file": "Failed to read file",
        "write_file": "Failed to write file",
        "list_directory": "Failed to list directory",
        "get_system_info": "Failed to get system information",
        "create_sample_file": "Failed to create sample file",
        "get_allowed_paths": "Failed to get allowed paths",
    }

    def __init__(self, validator: PathValidator):
        """
        Initialize the dispatcher.

        Args:
            validator: Path validator shared by all operations
        """
        self.validator = validator
        self.reader = SandboxedFileReader(validator)
        self.writer = SandboxedFileWriter(validator)
        self._handlers = {
            "read_file": self._read_file,
            "write_file": self._write_file,
            "list_directory": self._list_directory,
            "get_system_info": self._get_system_info,
            "create_sample_file": self._create_sample_file,
            "get_allowed_paths": self._get_allowed_paths,
        }

    def get_tool_schemas(self) -> list[dict[str, Any]]:
        """Return a copy of the static tool catalog."""
        return json.loads(json.dumps(TOOL_SCHEMAS))

    @property
    def tool_names(self) -> list[str]:
        return [schema["name"] for schema in TOOL_SCHEMAS]

    async def dispatch(self, request: ToolRequest) -> ToolResult:
        """Execute a ``ToolRequest``."""
        return await self.execute_tool(request.operation, request.arguments)

    async def execute_tool(
        self, tool_name: str, arguments: Optional[dict[str, Any]] = None
    ) -> ToolResult:
        """
        Execute a tool call.

        Args:
            tool_name: Name of the tool to execute
            arguments: Tool arguments (``None`` is treated as no arguments)

        Returns:
            A ``ToolResult``; failures are flagged with ``is_error``
        """
        handler = self._handlers.get(tool_name)
        if handler is None:
            logger.warning(f"Unknown tool requested: {tool_name}")
            exc = UnknownToolError(tool_name)
            return ToolResult.error(str(exc), exc.kind, tool=tool_name)

        if arguments is None:
            arguments = {}
        if not isinstance(arguments, dict):
            return ToolResult.error(
                f"Arguments for {tool_name} must be an object",
                ErrorKind.MALFORMED_INPUT,
                tool=tool_name,
            )

        try:
            return await handler(arguments)
        except FileSystemError as e:
            logger.warning(f"{tool_name} failed: {e}")
            return self._failure(tool_name, e)
        except Exception as e:
            logger.error(f"{tool_name} unexpected error: {e}")
            return self._failure(tool_name, e)

    def _failure(self, tool_name: str, exc: Exception) -> ToolResult:
        prefix = self.FAILURE_PREFIXES[tool_name]
        return ToolResult.error(f"{prefix}: {exc}", _classify(exc), tool=tool_name)

    @staticmethod
    def _string_arg(
        tool_name: str, arguments: dict[str, Any], name: str, required: bool = True
    ) -> Optional[str]:
        value = arguments.get(name)
        if value is None:
            if required:
                raise MissingArgumentError(tool_name, name)
            return None
        if not isinstance(value, str):
            raise MissingArgumentError(tool_name, name, "Expected a string for argument")
        return value

    async def _read_file(self, arguments: dict[str, Any]) -> ToolResult:
        filepath = self._string_arg("read_file", arguments, "filepath")
        path, content = self.reader.read_file(filepath)
        return ToolResult.ok(
            f'Contents of file "{path}":\n\n{content}',
            path=str(path),
            content=content,
        )

    async def _write_file(self, arguments: dict[str, Any]) -> ToolResult:
        filepath = self._string_arg("write_file", arguments, "filepath")
        content = self._string_arg("write_file", arguments, "content")
        path = self.writer.write_file(filepath, content)
        return ToolResult.ok(
            f'Successfully wrote file "{path}"',
            path=str(path),
            size=len(content),
        )

    async def _list_directory(self, arguments: dict[str, Any]) -> ToolResult:
        dirpath = self._string_arg("list_directory", arguments, "dirpath")
        path, entries = self.reader.list_directory(dirpath)
        lines = [f"{'📁' if e.is_dir else '📄'} {e.name}" for e in entries]
        return ToolResult.ok(
            f'Contents of directory "{path}":\n\n' + "\n".join(lines),
            path=str(path),
            entries=[{"name": e.name, "type": e.type} for e in entries],
        )

    async def _get_system_info(self, arguments: dict[str, Any]) -> ToolResult:
        info = collect_system_info()
        return ToolResult.ok(
            "System information:\n\n" + json.dumps(info.to_dict(), indent=2),
            **as_raw_dict(info),
        )

    async def _create_sample_file(self, arguments: dict[str, Any]) -> ToolResult:
        filename = self._string_arg(
            "create_sample_file", arguments, "filename", required=False
        )
        path, content = self.writer.create_sample_file(filename or None)
        return ToolResult.ok(
            f'Created sample file "{path}"!\n\nContent:\n{content}',
            path=str(path),
            content=content,
        )

    async def _get_allowed_paths(self, arguments: dict[str, Any]) -> ToolResult:
        roots = self.validator.get_allowed_roots()
        listing = "\n".join(f"📁 {root}" for root in roots)
        return ToolResult.ok(
            f"Accessible paths:\n\n{listing}\n\n"
            "Note: only these directories and their subdirectories are accessible.",
            paths=[str(root) for root in roots],
        )

    def get_summary(self) -> dict[str, Any]:
        """Summary of the tools and the policy they enforce."""
        return {
            "tools": self.tool_names,
            **self.validator.policy.summary(),
        }
