"""Shared fixtures for unit tests of the tree algorithms."""

import posixpath
from pathlib import Path

import pytest

from ftptree.ftp.exceptions import (
    FTPMkdirError,
    FTPNoSourceFileError,
    FTPPathError,
    FTPRmdirError,
    FTPUploadError,
)


class InMemoryFTPSession:
    """Dict-backed stand-in for FTPSession's primitive operations."""

    def __init__(self):
        self.is_connected = True
        self.cwd = "/"
        self.dirs = {"/"}
        self.files = {}
        self.undeletable = set()
        self.unlistable = set()
        self.failing_uploads = set()
        self.full_path_listing = False
        self.include_dot_entries = False

    def _abs(self, path: str) -> str:
        return posixpath.normpath(posixpath.join(self.cwd, path))

    def _children(self, path: str):
        return sorted(
            p for p in self.dirs | set(self.files)
            if p != path and posixpath.dirname(p) == path
        )

    def current_directory(self) -> str:
        return self.cwd

    def change_directory(self, path: str) -> bool:
        target = self._abs(path)
        if target in self.dirs:
            self.cwd = target
            return True
        return False

    def make_directory(self, path: str, permissions=None) -> None:
        target = self._abs(path)
        if target in self.dirs or target in self.files:
            raise FTPMkdirError(path)
        if posixpath.dirname(target) not in self.dirs:
            raise FTPMkdirError(path)
        self.dirs.add(target)

    def list_entries(self, path: str = "."):
        target = self._abs(path)
        if target not in self.dirs or target in self.unlistable:
            raise FTPPathError(path, "list")
        children = self._children(target)
        entries = children if self.full_path_listing else [posixpath.basename(c) for c in children]
        if self.include_dot_entries:
            entries = [".", ".."] + entries
        return entries

    def upload_file(self, local_path, remote_path, mode=None, permissions=None, on_progress=None):
        local_path = Path(local_path)
        if not local_path.is_file():
            raise FTPNoSourceFileError(str(local_path))
        target = self._abs(remote_path)
        if target in self.failing_uploads or posixpath.dirname(target) not in self.dirs:
            raise FTPUploadError(local_path.name, remote_path)
        data = local_path.read_bytes()
        self.files[target] = (data, mode)
        return len(data)

    def delete_file(self, path: str) -> bool:
        target = self._abs(path)
        if target in self.files and target not in self.undeletable:
            del self.files[target]
            return True
        return False

    def remove_directory(self, path: str) -> None:
        target = self._abs(path)
        if target == "/" or target not in self.dirs or self._children(target):
            raise FTPRmdirError(path)
        self.dirs.remove(target)


@pytest.fixture
def remote() -> InMemoryFTPSession:
    """Provide an empty in-memory remote filesystem."""
    return InMemoryFTPSession()


@pytest.fixture
def local_tree(tmp_path: Path) -> Path:
    """
    Create the local tree a/ (b.txt, c/ (d.php)) plus hidden entries.

    Returns:
        Path to a/
    """
    root = tmp_path / "a"
    (root / "c").mkdir(parents=True)
    (root / "b.txt").write_text("hello\n")
    (root / "c" / "d.php").write_text("<?php echo 1;\n")
    (root / ".env").write_text("SECRET=1\n")
    (root / ".git").mkdir()
    (root / ".git" / "config").write_text("[core]\n")
    (root / "c" / ".hidden").write_text("x")
    return root
