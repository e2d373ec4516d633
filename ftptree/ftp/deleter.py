"""Recursive remote directory deletion for ftptree.

FTP gives no file/directory flag in NLST output, so every entry is first
deleted as a file; an entry that refuses DELE is assumed to be a
directory and is emptied recursively before RMD.

Caveat: a file we may not delete is then treated as a directory, and the
RMD that follows fails. The resulting FTPRmdirError cannot tell "stubborn
file" apart from "directory we could not empty".
"""

from dataclasses import dataclass
import logging

from ftptree.ftp.connection import FTPSession
from ftptree.ftp.exceptions import FTPPathError
from ftptree.ftp.paths import entry_path, remote_dir_path

logger = logging.getLogger("ftptree.deleter")


@dataclass
class DeleteResult:
    """Summary of a successful tree deletion."""
    remote_dir: str
    files_deleted: int = 0
    directories_removed: int = 0


class TreeDeleter:
    """Deletes remote directory trees over an FTP session."""

    def __init__(self, session: FTPSession):
        """
        Initialize the deleter.

        Args:
            session: FTP session to delete through
        """
        self._session = session

    def delete_tree(self, remote_dir: str) -> DeleteResult:
        """
        Delete remote_dir and everything below it.

        Stops at the first failure; anything already deleted stays deleted.

        Args:
            remote_dir: Remote directory to remove

        Returns:
            DeleteResult with counts of removed files and directories

        Raises:
            FTPPathError: If remote_dir is empty
            FTPRmdirError: If a directory (or undeletable file) cannot be removed
            FTPNotConnectedError: If not connected
        """
        if not remote_dir or not remote_dir.strip():
            # An empty target would normalise to the server root
            raise FTPPathError(remote_dir, "delete")

        result = DeleteResult(remote_dir=remote_dir_path(remote_dir))
        self._delete_tree(remote_dir, result)
        logger.info(
            f"Deleted {result.remote_dir}: {result.files_deleted} files, "
            f"{result.directories_removed} directories"
        )
        return result

    def _delete_tree(self, remote_dir: str, result: DeleteResult) -> None:
        remote_dir = remote_dir_path(remote_dir)

        try:
            entries = self._session.list_entries(remote_dir)
        except FTPPathError as e:
            # Unlistable: already gone or unreadable. RMD below decides.
            logger.warning(f"Treating {remote_dir} as empty: {e}")
            entries = []

        for entry in entries:
            path = entry_path(remote_dir, entry)
            # Listing a file may echo the file itself back
            if path is None or remote_dir_path(path) == remote_dir:
                continue

            if self._session.delete_file(path):
                result.files_deleted += 1
            else:
                self._delete_tree(path, result)

        self._session.remove_directory(remote_dir)
        result.directories_removed += 1


def delete_tree(session: FTPSession, remote_dir: str) -> DeleteResult:
    """Delete remote_dir and its contents over session."""
    return TreeDeleter(session).delete_tree(remote_dir)
