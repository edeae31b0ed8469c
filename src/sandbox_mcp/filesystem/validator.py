"""
Path validation against a sandbox policy.

``PathValidator`` is the single gate every path-bearing operation goes
through. It never raises from ``validate_path`` or ``validate_extension``:
outcomes are returned as ``Allowed``, ``Denied`` or ``Invalid`` so callers
can branch on them explicitly. The normalized path carried by ``Allowed``
is the only path subsequent I/O may use; callers must not re-resolve the
raw input themselves.
"""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional, Union

from sandbox_mcp.filesystem.config import SandboxPolicy
from sandbox_mcp.filesystem.exceptions import InvalidPathError, PolicyDeniedError
from sandbox_mcp.filesystem.paths import canonicalize, extension_of, is_within

logger = logging.getLogger(__name__)

FORBIDDEN_DIRECTORY = "path is in a forbidden directory"
OUTSIDE_PERMITTED = "path is outside permitted directories"


@dataclass(frozen=True)
class Allowed:
    """The path may be touched; use ``normalized_path`` for all I/O."""

    normalized_path: Path

    @property
    def is_allowed(self) -> bool:
        return True


@dataclass(frozen=True)
class Denied:
    """The policy refuses the path."""

    reason: str
    attempted_path: str

    @property
    def is_allowed(self) -> bool:
        return False

    def to_error(self) -> PolicyDeniedError:
        return PolicyDeniedError(self.attempted_path, self.reason)


@dataclass(frozen=True)
class Invalid:
    """The input could not be resolved to a path at all."""

    reason: str
    attempted_path: str

    @property
    def is_allowed(self) -> bool:
        return False

    def to_error(self) -> InvalidPathError:
        return InvalidPathError(self.attempted_path, self.reason)


ValidationResult = Union[Allowed, Denied, Invalid]


def _unique(items: list[str]) -> list[str]:
    return list(dict.fromkeys(items))


@dataclass(frozen=True)
class ExtensionCheck:
    """Outcome of an extension check."""

    is_valid: bool
    extension: str
    reason: Optional[str] = None


class PathValidator:
    """
    Decides whether a client-supplied path may be touched.

    Deny-list entries are checked before the allow-list and always win.
    Containment is component aligned, so ``/sandboxed`` is never inside
    ``/sandbox``.

    Usage:
        validator = PathValidator(SandboxPolicy(allowed_roots=["/sandbox"]))
        result = validator.validate_path("/sandbox/notes.txt")
        if isinstance(result, Allowed):
            data = result.normalized_path.read_text()
    """

    def __init__(self, policy: SandboxPolicy):
        """
        Initialize the validator.

        Args:
            policy: Immutable sandbox policy
        """
        self.policy = policy
        self._allowed = [str(p) for p in policy.allowed_roots]
        # Blocked roots are matched both canonical and as written, so
        # neither a symlinked root nor a symlink inside one slips through.
        self._blocked = _unique(
            [str(p) for p in policy.blocked_roots]
            + [
                canonicalize(p, resolve_symlinks=False, expand_user=True)
                for p in policy.configured_blocked_roots
            ]
        )

    def validate_path(self, raw: Any) -> ValidationResult:
        """
        Resolve ``raw`` and decide whether it lies inside the sandbox.

        Args:
            raw: Client-supplied path, absolute or relative to the cwd

        Returns:
            ``Allowed`` with the canonical path, ``Denied`` with the reason
            and offending path, or ``Invalid`` if ``raw`` is not a usable path
        """
        if not isinstance(raw, str):
            return Invalid("path must be a string", repr(raw))
        if not raw.strip():
            return Invalid("path must not be empty", raw)

        try:
            lexical = canonicalize(raw, resolve_symlinks=False)
            candidate = (
                canonicalize(lexical) if self.policy.resolve_symlinks else lexical
            )
        except (ValueError, OSError, RuntimeError) as e:
            logger.warning(f"Cannot resolve path {raw!r}: {e}")
            return Invalid(f"cannot resolve path: {e}", raw)

        # A path spelled through a blocked directory is refused even when a
        # symlink there leads back into an allowed root.
        spellings = _unique([lexical, candidate])
        for blocked in self._blocked:
            if any(is_within(p, blocked) for p in spellings):
                logger.warning(f"Denied {candidate}: inside blocked root {blocked}")
                return Denied(FORBIDDEN_DIRECTORY, blocked)

        if not any(is_within(candidate, allowed) for allowed in self._allowed):
            logger.warning(f"Denied {candidate}: outside allowed roots")
            return Denied(OUTSIDE_PERMITTED, candidate)

        return Allowed(Path(candidate))

    def validate_extension(self, path: Union[str, Path]) -> ExtensionCheck:
        """
        Check the extension of the final path segment.

        A path without an extension is always accepted, as is any
        extension when the policy's allow-list is empty.
        """
        ext = extension_of(path)
        allowed = self.policy.allowed_extensions

        if not ext or not allowed or ext in allowed:
            return ExtensionCheck(is_valid=True, extension=ext)

        reason = (
            f"file extension {ext} is not allowed. "
            f"Allowed extensions: {', '.join(sorted(allowed))}"
        )
        return ExtensionCheck(is_valid=False, extension=ext, reason=reason)

    def get_allowed_roots(self) -> list[Path]:
        """Return a copy of the allowed roots in configured order."""
        return list(self.policy.allowed_roots)

    def check(self, raw: Any, require_extension: bool = True) -> Path:
        """
        Validate a path (and optionally its extension), raising on refusal.

        Returns:
            The normalized path to use for I/O

        Raises:
            InvalidPathError: If ``raw`` cannot be resolved
            PolicyDeniedError: If the path or its extension is refused
        """
        result = self.validate_path(raw)
        if not isinstance(result, Allowed):
            raise result.to_error()

        if require_extension:
            ext_check = self.validate_extension(result.normalized_path)
            if not ext_check.is_valid:
                logger.warning(
                    f"Denied {result.normalized_path}: extension {ext_check.extension}"
                )
                raise PolicyDeniedError(str(result.normalized_path), ext_check.reason)

        return result.normalized_path
