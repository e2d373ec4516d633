"""Transfer mode resolution for ftptree.

Maps a file name's extension to the FTP transfer mode used for it.
The decision is a fixed extension table; file contents are never inspected.
"""

from enum import Enum
from typing import FrozenSet


class TransferMode(Enum):
    """FTP transfer mode."""
    TEXT = "ascii"
    BINARY = "binary"


# Extensions transferred in ASCII mode (matched case-sensitively)
TEXT_EXTENSIONS: FrozenSet[str] = frozenset({
    "txt",
    "text",
    "php",
    "phps",
    "php4",
    "js",
    "css",
    "htm",
    "html",
    "phtml",
    "shtml",
    "log",
    "xml",
})

# Extension assumed for names without a dot
DEFAULT_EXTENSION = "txt"


def get_extension(filename: str) -> str:
    """
    Extract the extension of a file name.

    Args:
        filename: File name (or path) to inspect

    Returns:
        Substring after the last '.', or "txt" if there is no '.'
    """
    if "." not in filename:
        return DEFAULT_EXTENSION
    return filename.rsplit(".", 1)[1]


def resolve_transfer_mode(filename: str) -> TransferMode:
    """
    Resolve the transfer mode for a file name.

    Args:
        filename: File name to resolve

    Returns:
        TransferMode.TEXT for known text extensions, TransferMode.BINARY otherwise
    """
    if get_extension(filename) in TEXT_EXTENSIONS:
        return TransferMode.TEXT
    return TransferMode.BINARY
