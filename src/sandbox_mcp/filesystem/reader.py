"""
Sandboxed file reader.
"""

import logging
import os
from dataclasses import dataclass
from pathlib import Path

from sandbox_mcp.filesystem.validator import PathValidator

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DirectoryEntry:
    """One immediate child of a listed directory."""

    name: str
    is_dir: bool

    @property
    def type(self) -> str:
        return "directory" if self.is_dir else "file"


class SandboxedFileReader:
    """
    Reads files and lists directories inside the sandbox.

    Every call goes through the validator first and then performs I/O on
    the normalized path only. Filesystem errors (missing file, permission,
    not a file) propagate as ``OSError`` subclasses for the caller to
    report.

    Usage:
        validator = PathValidator(SandboxPolicy(allowed_roots=["/srv/sandbox"]))
        reader = SandboxedFileReader(validator)
        path, content = reader.read_file("/srv/sandbox/notes.md")
    """

    def __init__(self, validator: PathValidator):
        """
        Initialize the file reader.

        Args:
            validator: Path validator bound to the server's policy
        """
        self.validator = validator

    def read_file(self, raw_path: str, encoding: str = "utf-8") -> tuple[Path, str]:
        """
        Read a text file after path and extension checks.

        Returns:
            Tuple of (normalized path, file contents)

        Raises:
            PolicyDeniedError: If the policy refuses the path or extension
            InvalidPathError: If the path is malformed
            FileNotFoundError: If the file doesn't exist
            IsADirectoryError: If the path is a directory
            UnicodeDecodeError: If the file isn't valid text
        """
        path = self.validator.check(raw_path, require_extension=True)

        if path.is_dir():
            raise IsADirectoryError(f"Not a file: {path}")

        logger.info(f"Reading file: {path}")
        content = path.read_text(encoding=encoding)
        logger.debug(f"Read {len(content)} characters from {path}")
        return path, content

    def list_directory(self, raw_path: str) -> tuple[Path, list[DirectoryEntry]]:
        """
        List the immediate entries of a directory.

        Entries come back in the order the filesystem yields them. Symlinks
        are reported as files, whatever they point to. No extension check
        is applied to directories.

        Returns:
            Tuple of (normalized path, entries)

        Raises:
            PolicyDeniedError: If the policy refuses the path
            InvalidPathError: If the path is malformed
            FileNotFoundError: If the directory doesn't exist
            NotADirectoryError: If the path is a file
        """
        path = self.validator.check(raw_path, require_extension=False)

        logger.info(f"Listing directory: {path}")
        with os.scandir(path) as it:
            entries = [
                DirectoryEntry(entry.name, entry.is_dir(follow_symlinks=False))
                for entry in it
            ]

        logger.debug(f"Listed {len(entries)} entries in {path}")
        return path, entries
