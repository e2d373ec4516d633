"""Remote path helpers for ftptree.

Remote paths are always POSIX-style, whatever the local platform.
"""

import posixpath
from typing import Optional


def remote_dir_path(path: str) -> str:
    """Return path with exactly one trailing '/' (root stays '/')."""
    return path.rstrip("/") + "/"


def resolve_remote_dir(cwd: str, path: str) -> str:
    """Anchor a possibly relative remote directory at cwd."""
    return remote_dir_path(posixpath.normpath(posixpath.join(cwd, path)))


def entry_path(directory: str, entry: str) -> Optional[str]:
    """
    Turn an NLST entry into a path usable from the listed directory.

    Servers answer NLST with bare names or with paths that already include
    the directory; bare names are joined to directory.

    Returns:
        Entry path, or None for the '.' and '..' pseudo-entries
    """
    name = entry.rstrip("/").rsplit("/", 1)[-1]
    if name in ("", ".", ".."):
        return None
    if "/" in entry.rstrip("/"):
        return entry
    return remote_dir_path(directory) + entry
