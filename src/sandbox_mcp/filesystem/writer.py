"""
Sandboxed file writer.
"""

import logging
import platform
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from sandbox_mcp.filesystem.validator import PathValidator

logger = logging.getLogger(__name__)

DEFAULT_SAMPLE_FILENAME = "sample.txt"

SAMPLE_TEMPLATE = """\
# Sample file

Created: {timestamp}

This sample file was created by the sandbox MCP server.

## Purpose
- Model Context Protocol smoke test
- Checking the connection with the desktop client
- Checking file operations
- Path access restricted by the sandbox policy

## System
- Python version: {python_version}
- Platform: {platform}
- Architecture: {arch}

## Security
- Path access restrictions: enabled
- Only the allowed directories are accessible

Happy coding!
"""


def render_sample_content(now: Optional[datetime] = None) -> str:
    """Fill the sample template with a timestamp and host details."""
    now = now or datetime.now()
    return SAMPLE_TEMPLATE.format(
        timestamp=now.strftime("%Y-%m-%d %H:%M:%S"),
        python_version=platform.python_version(),
        platform=sys.platform,
        arch=platform.machine(),
    )


class SandboxedFileWriter:
    """
    Writes files inside the sandbox.

    Paths and extensions are checked before anything is created; parent
    directories are created only after the target itself was accepted.

    Usage:
        writer = SandboxedFileWriter(validator)
        path = writer.write_file("/srv/sandbox/out.txt", "Hello, world!")
    """

    def __init__(self, validator: PathValidator):
        """
        Initialize the file writer.

        Args:
            validator: Path validator bound to the server's policy
        """
        self.validator = validator

    def write_file(
        self,
        raw_path: str,
        content: str,
        encoding: str = "utf-8",
        create_parents: bool = True,
    ) -> Path:
        """
        Write content to a file, replacing any existing content.

        Returns:
            The normalized path that was written

        Raises:
            PolicyDeniedError: If the policy refuses the path or extension
            InvalidPathError: If the path is malformed
            OSError: If the write itself fails
        """
        path = self.validator.check(raw_path, require_extension=True)

        if create_parents and not path.parent.exists():
            path.parent.mkdir(parents=True, exist_ok=True)
            logger.debug(f"Created parent directories for {path}")

        try:
            path.write_text(content, encoding=encoding)
        except OSError as e:
            logger.error(f"Failed to write file {path}: {e}")
            raise

        logger.info(f"Wrote file: {path} ({len(content.encode(encoding))} bytes)")
        return path

    def create_sample_file(
        self, filename: Optional[str] = None
    ) -> tuple[Path, str]:
        """
        Create a sample text file relative to the current working directory.

        Args:
            filename: Target file name (default: ``sample.txt``)

        Returns:
            Tuple of (normalized path, content written)
        """
        content = render_sample_content()
        path = self.write_file(filename or DEFAULT_SAMPLE_FILENAME, content)
        return path, content
