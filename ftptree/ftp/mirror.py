"""Local-to-remote directory mirroring for ftptree.

Recreates a local directory tree on the FTP server, creating remote
directories as needed and uploading files with an inferred transfer mode.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import FrozenSet, List, Optional, Tuple, Union
import logging
import time

from ftptree.ftp.classifier import PathClassifier
from ftptree.ftp.connection import FTPSession, ProgressCallback
from ftptree.ftp.exceptions import (
    FTPError,
    FTPPathError,
    FTPSourceDirNotFoundError,
)
from ftptree.ftp.modes import resolve_transfer_mode
from ftptree.ftp.paths import resolve_remote_dir
from ftptree.utils.validators import validate_local_directory

logger = logging.getLogger("ftptree.mirror")


def _dir_key(path: Path) -> Tuple[int, int]:
    """Identity of the directory path resolves to."""
    stat = path.stat()
    return stat.st_dev, stat.st_ino


@dataclass
class MirrorResult:
    """Result of mirroring a local tree."""
    local_dir: str
    remote_dir: str
    success: bool = False
    error: Optional[FTPError] = None
    files_uploaded: List[str] = field(default_factory=list)
    directories_created: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)
    bytes_transferred: int = 0
    duration_seconds: float = 0.0

    @property
    def error_message(self) -> Optional[str]:
        """Message of the error that stopped the mirror, if any."""
        return str(self.error) if self.error else None

    def raise_for_error(self) -> None:
        """Re-raise the error that stopped the mirror, if any."""
        if self.error is not None:
            raise self.error


class TreeMirror:
    """
    Mirrors local directory trees onto an FTP session.

    Walks depth-first, pre-order: a remote directory exists before any of
    its children is uploaded. Entries whose name starts with '.' are
    skipped at every depth. The walk stops at the first failure and leaves
    already-uploaded files in place.
    """

    def __init__(self, session: FTPSession, classifier: Optional[PathClassifier] = None):
        """
        Initialize the mirror.

        Args:
            session: FTP session to upload through
            classifier: Directory probe, defaults to one on the same session
        """
        self._session = session
        self._classifier = classifier or PathClassifier(session)

    def mirror(
        self,
        local_dir: Union[str, Path],
        remote_dir: str,
        on_progress: Optional[ProgressCallback] = None
    ) -> MirrorResult:
        """
        Recreate local_dir under remote_dir.

        FTP errors do not escape: the returned result carries the first one.

        Args:
            local_dir: Local source directory
            remote_dir: Remote destination directory (created if missing)
            on_progress: Optional callback for per-file upload progress

        Returns:
            MirrorResult with success/failure status
        """
        start_time = time.time()
        result = MirrorResult(local_dir=str(local_dir), remote_dir=remote_dir)

        try:
            original_cwd = self._session.current_directory()
            remote_root = resolve_remote_dir(original_cwd, remote_dir)

            try:
                self._mirror_dir(Path(local_dir), remote_root, result, on_progress)
            finally:
                if self._session.is_connected:
                    self._session.change_directory(original_cwd)

            result.success = True
            logger.info(
                f"Mirrored {local_dir} -> {remote_root}: "
                f"{len(result.files_uploaded)} files, "
                f"{len(result.directories_created)} new directories"
            )
        except FTPError as e:
            result.error = e
            logger.error(f"Mirror of {local_dir} stopped: {e}")

        result.duration_seconds = time.time() - start_time
        return result

    def _mirror_dir(
        self,
        local_dir: Path,
        remote_dir: str,
        result: MirrorResult,
        on_progress: Optional[ProgressCallback],
        ancestors: FrozenSet[Tuple[int, int]] = frozenset()
    ) -> None:
        """Mirror one directory level, recursing into subdirectories."""
        is_valid, error = validate_local_directory(local_dir)
        if not is_valid:
            raise FTPSourceDirNotFoundError(str(local_dir), reason=error)

        try:
            entries = sorted(local_dir.iterdir(), key=lambda p: p.name)
            ancestors = ancestors | {_dir_key(local_dir)}
        except OSError as e:
            raise FTPSourceDirNotFoundError(str(local_dir), e)

        if not self._classifier.is_directory(remote_dir):
            self._session.make_directory(remote_dir)
            result.directories_created.append(remote_dir)
            if not self._classifier.is_directory(remote_dir):
                raise FTPPathError(remote_dir, "change directory to")

        for entry in entries:
            if entry.name.startswith("."):
                result.skipped.append(str(entry))
                continue

            remote_path = remote_dir + entry.name
            if entry.is_dir():
                # A symlink back to an enclosing directory would recurse forever
                if _dir_key(entry) in ancestors:
                    logger.warning(f"Skipping {entry}: links to an enclosing directory")
                    result.skipped.append(str(entry))
                    continue
                self._mirror_dir(entry, remote_path + "/", result, on_progress, ancestors)
            else:
                mode = resolve_transfer_mode(entry.name)
                result.bytes_transferred += self._session.upload_file(
                    entry, remote_path, mode, on_progress=on_progress
                )
                result.files_uploaded.append(remote_path)


def mirror(
    session: FTPSession,
    local_dir: Union[str, Path],
    remote_dir: str
) -> MirrorResult:
    """Mirror local_dir onto remote_dir over session."""
    return TreeMirror(session).mirror(local_dir, remote_dir)
