"""FTP-specific exceptions for ftptree.

Custom exception hierarchy for FTP operations. Every error records the
operation and path it concerns so failures can be diagnosed from the
message alone.
"""

from typing import Optional, Union


class FTPError(Exception):
    """Base exception for all FTP-related errors."""

    def __init__(self, message: str, original_error: Exception = None):
        super().__init__(message)
        self.message = message
        self.original_error = original_error

    def __str__(self) -> str:
        if self.original_error:
            return f"{self.message}: {self.original_error}"
        return self.message


class FTPConfigError(FTPError):
    """Session configuration is missing or invalid."""

    def __init__(self, message: str, field: Optional[str] = None):
        self.field = field
        super().__init__(message)


class FTPConnectionError(FTPError):
    """Failed to establish FTP connection."""

    def __init__(
        self,
        host: str,
        port: int,
        original_error: Exception = None,
        message: Optional[str] = None
    ):
        self.host = host
        self.port = port
        message = message or f"Failed to connect to {host}:{port}"
        super().__init__(message, original_error)


class FTPTimeoutError(FTPConnectionError):
    """Connecting to the server timed out."""

    def __init__(self, host: str, port: int, timeout: int = 90):
        self.timeout = timeout
        message = f"Connection to {host}:{port} timed out after {timeout} seconds"
        super().__init__(host, port, message=message)


class FTPAuthenticationError(FTPError):
    """FTP authentication (login) failed."""

    def __init__(self, username: str, original_error: Exception = None):
        self.username = username
        shown = username or "anonymous"
        message = f"Authentication failed for user '{shown}'"
        super().__init__(message, original_error)


class FTPNotConnectedError(FTPError):
    """Operation attempted without active FTP connection."""

    def __init__(self, operation: str = "Operation"):
        self.operation = operation
        message = f"{operation} requires an active FTP connection"
        super().__init__(message)


class FTPPathError(FTPError):
    """FTP path operation failed (change directory, list, etc.)."""

    def __init__(self, path: str, operation: str, original_error: Exception = None):
        self.path = path
        self.operation = operation
        message = f"Failed to {operation} path '{path}'"
        super().__init__(message, original_error)


class FTPSourceDirNotFoundError(FTPError):
    """Local source directory for a mirror cannot be opened."""

    def __init__(
        self,
        path: str,
        original_error: Exception = None,
        reason: Optional[str] = None
    ):
        self.path = path
        message = reason or f"Source directory '{path}' cannot be opened"
        super().__init__(message, original_error)


class FTPMkdirError(FTPError):
    """Failed to create a remote directory."""

    def __init__(self, path: str, original_error: Exception = None):
        self.path = path
        message = f"Failed to create directory '{path}'"
        super().__init__(message, original_error)


class FTPUploadError(FTPError):
    """Failed to upload file via FTP."""

    def __init__(
        self,
        file_name: str,
        remote_path: str,
        original_error: Exception = None
    ):
        self.file_name = file_name
        self.remote_path = remote_path
        message = f"Failed to upload '{file_name}' to '{remote_path}'"
        super().__init__(message, original_error)


class FTPNoSourceFileError(FTPError):
    """Local file to upload does not exist."""

    def __init__(self, local_path: str):
        self.local_path = local_path
        message = f"Source file '{local_path}' does not exist"
        super().__init__(message)


class FTPAllocationError(FTPError):
    """Server refused to pre-allocate space for an upload."""

    def __init__(self, remote_path: str, size: int, server_message: str = ""):
        self.remote_path = remote_path
        self.size = size
        self.server_message = server_message
        message = (
            f"Unable to allocate {size} bytes for '{remote_path}'. "
            f"Server said: {server_message}"
        )
        super().__init__(message)


class FTPDownloadError(FTPError):
    """Failed to download file via FTP."""

    def __init__(
        self,
        remote_path: str,
        local_path: str,
        original_error: Exception = None
    ):
        self.remote_path = remote_path
        self.local_path = local_path
        message = f"Failed to download '{remote_path}' to '{local_path}'"
        super().__init__(message, original_error)


class FTPRenameError(FTPError):
    """Failed to rename or move a remote path."""

    def __init__(
        self,
        old_path: str,
        new_path: str,
        original_error: Exception = None,
        move: bool = False
    ):
        self.old_path = old_path
        self.new_path = new_path
        verb = "move" if move else "rename"
        message = f"Failed to {verb} '{old_path}' to '{new_path}'"
        super().__init__(message, original_error)


class FTPDeleteError(FTPError):
    """Failed to delete a remote file."""

    def __init__(self, path: str, original_error: Exception = None):
        self.path = path
        message = f"Failed to delete '{path}'"
        super().__init__(message, original_error)


class FTPRmdirError(FTPError):
    """Failed to remove a remote directory."""

    def __init__(self, path: str, original_error: Exception = None):
        self.path = path
        message = f"Failed to remove directory '{path}'"
        super().__init__(message, original_error)


class FTPChmodError(FTPError):
    """Failed to change permissions of a remote path."""

    def __init__(
        self,
        path: str,
        permissions: Union[int, str],
        original_error: Exception = None
    ):
        self.path = path
        self.permissions = permissions
        mode = f"{permissions:o}" if isinstance(permissions, int) else permissions
        message = f"Failed to chmod '{path}' to {mode}"
        super().__init__(message, original_error)


class FTPUnsupportedOperationError(FTPError):
    """Server does not implement the requested operation."""

    def __init__(self, operation: str, original_error: Exception = None):
        self.operation = operation
        message = f"{operation} is not supported by the server"
        super().__init__(message, original_error)
