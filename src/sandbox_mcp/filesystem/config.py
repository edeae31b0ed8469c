"""
Sandbox policy for filesystem access.
"""

import os
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field, field_validator, model_validator

from sandbox_mcp.filesystem.paths import canonicalize, normalize_extension

DEFAULT_ALLOWED_ROOTS = [
    "~/Documents/00_AI_Area",
]

DEFAULT_BLOCKED_ROOTS = [
    "/etc",
    "/bin",
    "/sbin",
    "/usr/bin",
    "/usr/sbin",
    "/System",
    "/Windows",
    "/Program Files",
    "/Program Files (x86)",
    "~/.ssh",
    "~/.aws",
    "~/.config",
]

DEFAULT_ALLOWED_EXTENSIONS = [
    ".txt", ".md", ".json", ".js", ".ts", ".html", ".css",
    ".py", ".java", ".cpp", ".c", ".h", ".xml", ".yaml", ".yml",
    ".log", ".csv", ".tsv", ".sql", ".sh", ".bat", ".ps1",
]


def _dedupe(items: list[str]) -> list[str]:
    seen: set[str] = set()
    result = []
    for item in items:
        if item not in seen:
            seen.add(item)
            result.append(item)
    return result


class SandboxPolicy(BaseModel):
    """
    Immutable description of what the server may touch.

    Roots are canonicalized once at construction (absolute, no ``.``/``..``
    segments, no trailing separator, and symlink-free when
    ``resolve_symlinks`` is set). The roots as written are kept alongside
    so a policy can be rebuilt with a different symlink setting. The policy
    is never mutated afterwards and is shared read-only by every validation
    call.

    Usage:
        policy = SandboxPolicy(
            allowed_roots=["/srv/sandbox"],
            blocked_roots=["/srv/sandbox/.secret"],
            allowed_extensions=["txt", ".md"],
        )
    """

    model_config = {"frozen": True, "extra": "forbid"}

    allowed_roots: tuple[Path, ...] = Field(
        description="Directories the server may operate in (canonical, ordered)",
    )

    blocked_roots: tuple[Path, ...] = Field(
        description="Directories that are always refused, even inside an allowed root",
    )

    allowed_extensions: frozenset[str] = Field(
        description="Permitted file extensions with a leading dot (empty = no restriction)",
    )

    resolve_symlinks: bool = Field(
        default=True,
        description="Resolve symlinks to their real target before containment checks",
    )

    configured_allowed_roots: tuple[str, ...] = Field(
        default=(),
        exclude=True,
        description="Allowed roots as written in the configuration",
    )

    configured_blocked_roots: tuple[str, ...] = Field(
        default=(),
        exclude=True,
        description="Blocked roots as written in the configuration",
    )

    @model_validator(mode="before")
    @classmethod
    def canonicalize_roots(cls, data: Any) -> Any:
        """Fill in defaults and resolve every root to its canonical form."""
        if not isinstance(data, dict):
            return data

        data = dict(data)
        resolve = data.get("resolve_symlinks", True)
        if not isinstance(resolve, bool):
            # Leave the coercion error to field validation
            return data

        defaults = {
            "allowed_roots": DEFAULT_ALLOWED_ROOTS,
            "blocked_roots": DEFAULT_BLOCKED_ROOTS,
        }
        for key, default in defaults.items():
            raw = data.get(key)
            if raw is None:
                raw = default
            if isinstance(raw, (str, Path)):
                raw = [raw]
            data[f"configured_{key}"] = tuple(os.fspath(p) for p in raw)
            data[key] = tuple(
                Path(p)
                for p in _dedupe(
                    [canonicalize(p, resolve, expand_user=True) for p in raw]
                )
            )

        if data.get("allowed_extensions") is None:
            data["allowed_extensions"] = DEFAULT_ALLOWED_EXTENSIONS
        return data

    @field_validator("allowed_extensions", mode="before")
    @classmethod
    def normalize_extensions(cls, v):
        """Ensure extensions are lowercase and start with a dot."""
        if isinstance(v, str):
            v = [v]
        return frozenset(normalize_extension(ext) for ext in v if ext.strip())

    def summary(self) -> dict[str, Any]:
        """Plain-data view of the policy for display."""
        return {
            "allowed_roots": [str(p) for p in self.allowed_roots],
            "blocked_roots": [str(p) for p in self.blocked_roots],
            "allowed_extensions": sorted(self.allowed_extensions),
            "resolve_symlinks": self.resolve_symlinks,
        }

    def __repr__(self) -> str:
        return (
            f"SandboxPolicy("
            f"allowed_roots={len(self.allowed_roots)}, "
            f"blocked_roots={len(self.blocked_roots)}, "
            f"extensions={len(self.allowed_extensions)}, "
            f"resolve_symlinks={self.resolve_symlinks})"
        )
