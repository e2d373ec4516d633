"""Remote directory detection for ftptree.

FTP has no "is directory" command, so a path counts as a directory when
the server lets us change into it. This is a behavioural approximation:
a directory we may not enter and a path we lack permission for are both
reported NOT_NAVIGABLE, indistinguishable from a plain file.
"""

from enum import Enum
import logging

from ftptree.ftp.connection import FTPSession
from ftptree.ftp.exceptions import FTPPathError

logger = logging.getLogger("ftptree.classifier")


class Navigability(Enum):
    """Result of probing a remote path with CWD."""
    NAVIGABLE = "navigable"
    NOT_NAVIGABLE = "not_navigable"


class PathClassifier:
    """Classifies remote paths by attempting to navigate into them."""

    def __init__(self, session: FTPSession):
        """
        Initialize the classifier.

        Args:
            session: FTP session used for probing
        """
        self._session = session

    def classify(self, path: str) -> Navigability:
        """
        Probe a remote path.

        On NAVIGABLE the session's working directory is left at path.
        """
        if self._session.change_directory(path):
            return Navigability.NAVIGABLE
        return Navigability.NOT_NAVIGABLE

    def is_directory(self, path: str) -> bool:
        """True if path behaves as a directory (working directory moves there)."""
        return self.classify(path) is Navigability.NAVIGABLE

    def dir_exists(self, path: str) -> bool:
        """
        True if path behaves as a directory, keeping the working directory.

        Raises:
            FTPPathError: If the previous working directory cannot be restored
        """
        previous = self._session.current_directory()
        if not self.is_directory(path):
            return False

        if not self._session.change_directory(previous):
            raise FTPPathError(previous, "return to")
        logger.debug(f"{path} is navigable")
        return True


def is_directory(session: FTPSession, path: str) -> bool:
    """True if path on session behaves as a directory."""
    return PathClassifier(session).is_directory(path)
