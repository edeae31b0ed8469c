"""
Server configuration.

This module provides configuration management for the sandbox MCP server:
the server identity and the sandbox policy, loadable from YAML/JSON files
or environment variables.
"""

import json
import os
from pathlib import Path
from typing import Any, Optional, Union

import yaml
from pydantic import BaseModel, Field

from sandbox_mcp import __version__
from sandbox_mcp.filesystem.config import SandboxPolicy

TRUE_VALUES = ("1", "true", "yes", "on")


class ServerConfig(BaseModel):
    """
    Complete server configuration.

    Example:
        ```python
        config = ServerConfig(
            policy=SandboxPolicy(
                allowed_roots=["~/sandbox"],
                allowed_extensions=[".txt", ".md"],
            ),
        )

        # Load from file
        config = ServerConfig.from_file("~/.sandbox-mcp/config.yaml")
        ```
    """

    model_config = {"extra": "forbid"}

    name: str = Field(
        default="sandbox-mcp-server",
        description="Server name announced during the handshake",
    )
    version: str = Field(
        default=__version__,
        description="Server version announced during the handshake",
    )
    policy: SandboxPolicy = Field(
        default_factory=SandboxPolicy,
        description="Sandbox policy enforced on every path",
    )

    def __repr__(self) -> str:
        return f"ServerConfig(name={self.name!r}, policy={self.policy!r})"

    def __str__(self) -> str:
        return (
            f"ServerConfig(name={self.name}, "
            f"allowed_roots={len(self.policy.allowed_roots)})"
        )

    @classmethod
    def from_file(cls, path: Union[str, Path]) -> "ServerConfig":
        """
        Load configuration from a YAML or JSON file.

        File format (YAML):
            ```yaml
            name: sandbox-mcp-server
            policy:
              allowed_roots:
                - ~/Documents/00_AI_Area
              blocked_roots:
                - ~/.ssh
              allowed_extensions: [".txt", ".md"]
              resolve_symlinks: true
            ```

        Args:
            path: Path to configuration file

        Returns:
            Loaded ServerConfig instance

        Raises:
            FileNotFoundError: If the config file doesn't exist
        """
        path = Path(path).expanduser().resolve()

        if not path.exists():
            raise FileNotFoundError(f"Configuration file not found: {path}")

        content = path.read_text(encoding="utf-8")

        if path.suffix in (".yaml", ".yml"):
            data = yaml.safe_load(content)
        elif path.suffix == ".json":
            data = json.loads(content)
        else:
            # Try YAML first, then JSON
            try:
                data = yaml.safe_load(content)
            except yaml.YAMLError:
                data = json.loads(content)

        return cls.from_dict(data or {})

    @classmethod
    def from_dict(cls, data: dict) -> "ServerConfig":
        """
        Create configuration from a dictionary.

        Args:
            data: Configuration dictionary

        Returns:
            ServerConfig instance
        """
        return cls(**data)

    @classmethod
    def from_env(cls, prefix: str = "SANDBOX_MCP_") -> "ServerConfig":
        """
        Load configuration from environment variables.

        Environment variables:
            SANDBOX_MCP_SERVER_NAME - Server name
            SANDBOX_MCP_ALLOWED_ROOTS - Allowed directories (os.pathsep separated)
            SANDBOX_MCP_BLOCKED_ROOTS - Blocked directories (os.pathsep separated)
            SANDBOX_MCP_ALLOWED_EXTENSIONS - Extensions (comma separated)
            SANDBOX_MCP_RESOLVE_SYMLINKS - 1/true/yes/on to resolve symlinks

        Unset variables keep their defaults.

        Args:
            prefix: Environment variable prefix

        Returns:
            ServerConfig instance
        """
        policy: dict[str, Any] = {}

        allowed = os.environ.get(f"{prefix}ALLOWED_ROOTS")
        if allowed is not None:
            policy["allowed_roots"] = _split(allowed, os.pathsep)

        blocked = os.environ.get(f"{prefix}BLOCKED_ROOTS")
        if blocked is not None:
            policy["blocked_roots"] = _split(blocked, os.pathsep)

        extensions = os.environ.get(f"{prefix}ALLOWED_EXTENSIONS")
        if extensions is not None:
            policy["allowed_extensions"] = _split(extensions, ",")

        resolve = os.environ.get(f"{prefix}RESOLVE_SYMLINKS")
        if resolve is not None:
            policy["resolve_symlinks"] = resolve.strip().lower() in TRUE_VALUES

        data: dict[str, Any] = {"policy": SandboxPolicy(**policy)}

        name = os.environ.get(f"{prefix}SERVER_NAME")
        if name:
            data["name"] = name

        return cls(**data)

    def with_overrides(
        self,
        allowed_roots: Optional[list[str]] = None,
        blocked_roots: Optional[list[str]] = None,
        allowed_extensions: Optional[list[str]] = None,
        resolve_symlinks: Optional[bool] = None,
    ) -> "ServerConfig":
        """
        Return a copy with parts of the policy replaced.

        ``None`` (or an empty list) keeps the current value. The new policy
        is rebuilt from the roots as originally configured, so a changed
        ``resolve_symlinks`` applies to them too.
        """
        policy = {
            "allowed_roots": list(self.policy.configured_allowed_roots),
            "blocked_roots": list(self.policy.configured_blocked_roots),
            "allowed_extensions": list(self.policy.allowed_extensions),
            "resolve_symlinks": self.policy.resolve_symlinks,
        }
        if allowed_roots:
            policy["allowed_roots"] = list(allowed_roots)
        if blocked_roots:
            policy["blocked_roots"] = list(blocked_roots)
        if allowed_extensions:
            policy["allowed_extensions"] = list(allowed_extensions)
        if resolve_symlinks is not None:
            policy["resolve_symlinks"] = resolve_symlinks

        return ServerConfig(
            name=self.name,
            version=self.version,
            policy=SandboxPolicy(**policy),
        )


def _split(value: str, sep: str) -> list[str]:
    return [item.strip() for item in value.split(sep) if item.strip()]
