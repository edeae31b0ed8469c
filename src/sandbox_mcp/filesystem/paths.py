"""
Pure path helpers shared by the sandbox policy and the validator.

Nothing here touches the filesystem except ``os.path.realpath`` when
symlink resolution is requested.
"""

import os
from pathlib import Path
from typing import Union

PathLike = Union[str, Path]


def lexical_resolve(raw: PathLike, expand_user: bool = False) -> str:
    """
    Resolve a path against the current working directory without
    consulting the filesystem.

    Makes the path absolute and collapses ``.`` and ``..`` segments. A
    leading ``~`` is an ordinary name unless ``expand_user`` is set.
    Raises ``ValueError`` for NUL bytes or text that cannot be encoded for
    the filesystem.
    """
    text = os.fspath(raw)
    if "\x00" in text:
        raise ValueError("embedded null byte")
    # Lone surrogates and similar garbage fail here rather than later in I/O
    os.fsencode(text)
    if expand_user:
        text = os.path.expanduser(text)
    return os.path.abspath(text)


def canonicalize(
    raw: PathLike, resolve_symlinks: bool = True, expand_user: bool = False
) -> str:
    """
    Return the canonical absolute form of ``raw``.

    With ``resolve_symlinks`` the result is the real path; missing tail
    components are kept as given.
    """
    resolved = lexical_resolve(raw, expand_user)
    if resolve_symlinks:
        resolved = os.path.realpath(resolved)
    return resolved


def _comparable(path: str) -> str:
    return os.path.normcase(path)


def is_within(path: str, root: str) -> bool:
    """
    Component-aligned containment test.

    ``path`` is within ``root`` when it equals it or starts with
    ``root + os.sep``. Both arguments must already be canonical.
    """
    path_cmp = _comparable(path)
    root_cmp = _comparable(root)
    if path_cmp == root_cmp:
        return True
    # The filesystem root ("/" or "C:\\") already ends with a separator
    prefix = root_cmp if root_cmp.endswith(os.sep) else root_cmp + os.sep
    return path_cmp.startswith(prefix)


def extension_of(path: PathLike) -> str:
    """Lowercase extension of the final segment, with its dot, or ``""``."""
    name = os.path.basename(os.fspath(path))
    return os.path.splitext(name)[1].lower()


def normalize_extension(ext: str) -> str:
    """Lowercase an extension and make sure it starts with a dot."""
    ext = ext.strip().lower()
    if ext and not ext.startswith("."):
        ext = f".{ext}"
    return ext
