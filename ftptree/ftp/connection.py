"""FTP session management for ftptree.

Provides ConnectionState enum, FTPSessionConfig dataclass, and the
FTPSession class that owns one ftplib control connection and exposes the
typed operations used by the mirror and tree-deletion algorithms.
"""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from ftplib import FTP, FTP_TLS, all_errors, error_perm, error_temp
from pathlib import Path, PurePosixPath
from typing import Any, Callable, Dict, List, Optional, Union
import logging
import socket

from ftptree.ftp.exceptions import (
    FTPAllocationError,
    FTPAuthenticationError,
    FTPChmodError,
    FTPConfigError,
    FTPConnectionError,
    FTPDeleteError,
    FTPDownloadError,
    FTPError,
    FTPMkdirError,
    FTPNoSourceFileError,
    FTPNotConnectedError,
    FTPPathError,
    FTPRenameError,
    FTPRmdirError,
    FTPTimeoutError,
    FTPUnsupportedOperationError,
    FTPUploadError,
)
from ftptree.ftp.modes import TransferMode, resolve_transfer_mode
from ftptree.utils.formatting import format_size
from ftptree.utils.validators import (
    validate_file_path,
    validate_host,
    validate_port,
    validate_timeout,
)

logger = logging.getLogger("ftptree.connection")

DEFAULT_PORT = 21
DEFAULT_TIMEOUT = 90

# Replies meaning the server does not implement a command
NOT_IMPLEMENTED_CODES = frozenset({"500", "502", "504"})

# Recognized option keys and the config field each one sets
OPTION_FIELDS: Dict[str, str] = {
    "host": "host",
    "user": "user",
    "password": "password",
    "port": "port",
    "passive": "passive",
    "timeout": "timeout",
    "ssh": "use_tls",
    "tls": "use_tls",
    "use_tls": "use_tls",
    "force_utf8": "force_utf8",
}

_INT_FIELDS = {"port", "timeout"}
_BOOL_FIELDS = {"passive", "use_tls", "force_utf8"}
_TRUE_STRINGS = {"1", "true", "yes", "on"}


class ConnectionState(Enum):
    """FTP session state."""
    NEW = "new"
    CONNECTING = "connecting"
    CONNECTED = "connected"
    CLOSED = "closed"
    ERROR = "error"


def _coerce_option(name: str, value: Any) -> Any:
    """Convert an option value to the type of its config field."""
    if name in _INT_FIELDS:
        try:
            return int(value)
        except (TypeError, ValueError):
            raise FTPConfigError(f"Option '{name}' must be an integer, got {value!r}", name)
    if name in _BOOL_FIELDS:
        if isinstance(value, str):
            return value.strip().lower() in _TRUE_STRINGS
        return bool(value)
    if value is None:
        return ""
    return str(value)


@dataclass
class FTPSessionConfig:
    """FTP session configuration."""
    host: str = ""
    port: int = DEFAULT_PORT
    user: str = ""
    password: str = field(default="", repr=False)
    use_tls: bool = False
    passive: bool = True
    timeout: int = DEFAULT_TIMEOUT
    force_utf8: bool = False

    def validate(self) -> None:
        """
        Check the configuration before connecting.

        Raises:
            FTPConfigError: If host, port or timeout is invalid
        """
        if not self.host:
            raise FTPConfigError("Host is required", "host")

        is_valid, error = validate_host(self.host)
        if not is_valid:
            raise FTPConfigError(error, "host")

        is_valid, error = validate_port(self.port)
        if not is_valid:
            raise FTPConfigError(error, "port")

        is_valid, error = validate_timeout(self.timeout)
        if not is_valid:
            raise FTPConfigError(error, "timeout")

    def with_option(self, key: str, value: Any) -> "FTPSessionConfig":
        """
        Set a single option by its key.

        Unrecognized keys are logged and ignored.

        Args:
            key: Option key (case-insensitive), e.g. "host" or "ssh"
            value: New value

        Returns:
            This config, for chaining
        """
        name = OPTION_FIELDS.get(key.lower())
        if name is None:
            logger.warning(f"Ignoring unrecognized option '{key}'")
            return self
        setattr(self, name, _coerce_option(name, value))
        return self

    def update(self, **options: Any) -> "FTPSessionConfig":
        """Set several options at once. Returns this config."""
        for key, value in options.items():
            self.with_option(key, value)
        return self

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "FTPSessionConfig":
        """Create a config from a mapping, ignoring unknown keys."""
        return cls().update(**data)

    def to_dict(self, include_password: bool = False) -> Dict[str, Any]:
        """Convert config to dictionary."""
        data = asdict(self)
        if not include_password:
            data.pop("password")
        return data


@dataclass
class UploadProgress:
    """Progress information for a single file upload."""
    remote_path: str
    file_name: str
    bytes_sent: int
    bytes_total: int

    @property
    def percent(self) -> float:
        """Upload progress as percentage (0-100)."""
        if self.bytes_total == 0:
            return 0.0
        return (self.bytes_sent / self.bytes_total) * 100.0


# Type alias for progress callback
ProgressCallback = Callable[[UploadProgress], None]

PathLike = Union[str, Path]


def _reply_code(error: Exception) -> str:
    """Return the three-digit reply code carried by an ftplib error."""
    return str(error)[:3]


def _parse_mdtm(response: str) -> int:
    """Parse an MDTM reply ("213 YYYYMMDDHHMMSS[.sss]") into epoch seconds."""
    value = response[4:].strip().split(".")[0]
    try:
        modified = datetime.strptime(value[:14], "%Y%m%d%H%M%S")
    except ValueError:
        return -1
    return int(modified.replace(tzinfo=timezone.utc).timestamp())


class FTPSession:
    """
    Owns one FTP control connection.

    A session moves NEW -> CONNECTED -> CLOSED. Every operation first
    ensures the session is connected; when ``auto_connect`` is set, a NEW
    or failed session makes one implicit connect attempt (logged), while a
    CLOSED session never reconnects implicitly.

    A session is single-threaded-use: the control channel carries one
    command at a time, so it must not be shared across threads while a
    recursive tree operation runs. ``close(force=True)`` is the one call
    allowed from another thread; it aborts the in-flight command.
    """

    # Block size for binary transfers (8KB)
    BLOCK_SIZE = 8192

    def __init__(
        self,
        config: Optional[FTPSessionConfig] = None,
        auto_connect: bool = True
    ):
        """
        Initialize the session.

        Args:
            config: Connection configuration (may be amended until connect)
            auto_connect: Connect implicitly on first operation
        """
        self._config = config if config is not None else FTPSessionConfig()
        self._active_config: Optional[FTPSessionConfig] = None
        self._auto_connect = auto_connect
        self._ftp: Optional[FTP] = None
        self._state = ConnectionState.NEW
        self._connected_at: Optional[datetime] = None
        self._last_activity: Optional[datetime] = None
        self._error_message: Optional[str] = None

    @classmethod
    def from_options(cls, auto_connect: bool = True, **options: Any) -> "FTPSession":
        """Create a session from option keys (host, user, password, port, ...)."""
        return cls(FTPSessionConfig().update(**options), auto_connect=auto_connect)

    @property
    def state(self) -> ConnectionState:
        """Current session state."""
        return self._state

    @property
    def is_connected(self) -> bool:
        """True if currently connected."""
        return self._state == ConnectionState.CONNECTED and self._ftp is not None

    @property
    def config(self) -> FTPSessionConfig:
        """Configuration in use (the connect-time snapshot while connected)."""
        if self.is_connected and self._active_config is not None:
            return self._active_config
        return self._config

    @property
    def connected_at(self) -> Optional[datetime]:
        """Timestamp when connection was established."""
        return self._connected_at

    @property
    def last_activity(self) -> Optional[datetime]:
        """Timestamp of last successful operation."""
        return self._last_activity

    @property
    def error_message(self) -> Optional[str]:
        """Last error message if state is ERROR."""
        return self._error_message

    @property
    def ftp(self) -> FTP:
        """
        Get the underlying FTP object.

        Raises:
            FTPNotConnectedError: If not connected
        """
        if not self.is_connected:
            raise FTPNotConnectedError("FTP access")
        return self._ftp

    def configure(self, **options: Any) -> "FTPSession":
        """
        Amend the configuration before connecting.

        Raises:
            FTPConfigError: If the session is already connected
        """
        if self.is_connected:
            raise FTPConfigError("Configuration cannot change while connected")
        self._config.update(**options)
        return self

    def connect(self) -> None:
        """
        Establish the FTP connection and log in.

        Does nothing if already connected.

        Raises:
            FTPConfigError: If the configuration is invalid
            FTPConnectionError: If the connection or TLS negotiation fails
            FTPTimeoutError: If the connection times out
            FTPAuthenticationError: If login is rejected
        """
        if self.is_connected:
            return

        self._config.validate()
        config = replace(self._config)
        self._active_config = config
        self._state = ConnectionState.CONNECTING
        self._error_message = None

        try:
            self._ftp = FTP_TLS() if config.use_tls else FTP()
            self._ftp.set_debuglevel(0)

            try:
                self._ftp.connect(
                    host=config.host,
                    port=config.port,
                    timeout=config.timeout
                )
                if config.use_tls:
                    self._ftp.auth()
            except socket.timeout:
                raise FTPTimeoutError(config.host, config.port, config.timeout)
            except all_errors as e:
                raise FTPConnectionError(config.host, config.port, e)

            try:
                self._ftp.login(user=config.user, passwd=config.password)
            except error_perm as e:
                raise FTPAuthenticationError(config.user, e)

            if config.use_tls:
                try:
                    self._ftp.prot_p()
                except all_errors as e:
                    raise FTPConnectionError(config.host, config.port, e)

            self._apply_passive(config.passive)

            if config.force_utf8:
                self._force_utf8()

        except FTPError as e:
            self._fail(str(e))
            raise
        except Exception as e:
            self._fail(str(e))
            raise FTPConnectionError(config.host, config.port, e)

        self._state = ConnectionState.CONNECTED
        self._connected_at = datetime.now()
        self._last_activity = self._connected_at
        logger.info(f"Connected to {config.host}:{config.port}")

    def _fail(self, message: str) -> None:
        """Record a failed connect and release the partial transport."""
        self._state = ConnectionState.ERROR
        self._error_message = message
        self._release(send_quit=False)
        logger.error(f"Connection failed: {message}")

    def _apply_passive(self, passive: bool) -> None:
        """Set passive mode; failure is logged and tolerated."""
        try:
            self._ftp.set_pasv(passive)
        except all_errors as e:
            logger.warning(f"Could not set passive mode to {passive}: {e}")

    def _force_utf8(self) -> None:
        """Ask the server for UTF-8 paths; refusals are ignored."""
        try:
            self._ftp.sendcmd("OPTS UTF8 ON")
        except all_errors as e:
            logger.debug(f"OPTS UTF8 ON ignored: {e}")

    def _release(self, send_quit: bool = True) -> None:
        """Release the transport handle exactly once."""
        ftp, self._ftp = self._ftp, None
        if ftp is None:
            return

        if send_quit:
            try:
                ftp.quit()
                return
            except all_errors as e:
                logger.debug(f"QUIT failed, closing socket: {e}")

        try:
            ftp.close()
        except all_errors as e:
            logger.debug(f"Error closing FTP socket: {e}")

    def close(self, force: bool = False) -> None:
        """
        Close the FTP connection.

        Safe to call repeatedly and after a failed connect.

        Args:
            force: Skip QUIT and drop the socket (aborts an in-flight command)
        """
        if self._ftp is None:
            return

        self._release(send_quit=not force)
        self._state = ConnectionState.CLOSED
        self._connected_at = None
        logger.info("Session closed")

    def __enter__(self) -> "FTPSession":
        """Connect on entry."""
        self.connect()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Close on every exit path."""
        self.close()

    def _ensure_connected(self, operation: str) -> FTP:
        """
        Return the live transport, connecting implicitly if allowed.

        Raises:
            FTPNotConnectedError: If no valid transport is available
        """
        if self.is_connected:
            return self._ftp

        if self._state == ConnectionState.CLOSED or not self._auto_connect:
            raise FTPNotConnectedError(operation)

        logger.info(f"{operation}: implicit connect to {self._config.host or '<no host>'}")
        self.connect()

        if self._ftp is None:
            raise FTPNotConnectedError(operation)
        return self._ftp

    def _update_activity(self) -> None:
        """Update last activity timestamp."""
        self._last_activity = datetime.now()

    # Primitive operations used by the tree algorithms

    def change_directory(self, path: str) -> bool:
        """
        Change the working directory.

        Server refusals are swallowed so this can double as an existence
        probe: there is no FTP equivalent of "is directory".

        Args:
            path: Directory path

        Returns:
            True if the working directory changed

        Raises:
            FTPNotConnectedError: If not connected
        """
        if not path:
            return False

        ftp = self._ensure_connected("Change directory")
        try:
            ftp.cwd(path)
        except all_errors as e:
            logger.debug(f"Cannot change directory to {path}: {e}")
            return False

        self._update_activity()
        return True

    def current_directory(self) -> str:
        """
        Get current working directory.

        Raises:
            FTPNotConnectedError: If not connected
            FTPPathError: If the server refuses PWD
        """
        ftp = self._ensure_connected("Print working directory")
        try:
            path = ftp.pwd()
        except all_errors as e:
            raise FTPPathError(".", "resolve working directory of", e)

        self._update_activity()
        return path

    def make_directory(self, path: str, permissions: Optional[int] = None) -> None:
        """
        Create a remote directory.

        Args:
            path: Directory to create
            permissions: Optional mode applied with chmod afterwards

        Raises:
            FTPMkdirError: If the directory cannot be created
        """
        ftp = self._ensure_connected("Make directory")
        try:
            ftp.mkd(path)
        except all_errors as e:
            raise FTPMkdirError(path, e)

        self._update_activity()
        logger.debug(f"Created directory {path}")

        if permissions is not None:
            self.chmod(path, permissions)

    def list_entries(self, path: str = ".") -> List[str]:
        """
        List directory contents (NLST, non-recursive).

        Args:
            path: Directory path to list

        Returns:
            List of entry names as reported by the server

        Raises:
            FTPPathError: If the listing fails
        """
        ftp = self._ensure_connected("List")
        try:
            entries = ftp.nlst(path)
        except all_errors as e:
            raise FTPPathError(path, "list", e)

        self._update_activity()
        return entries

    def upload_file(
        self,
        local_path: PathLike,
        remote_path: str,
        mode: Optional[TransferMode] = None,
        permissions: Optional[int] = None,
        on_progress: Optional[ProgressCallback] = None
    ) -> int:
        """
        Upload a single file.

        Args:
            local_path: Local file path
            remote_path: Remote destination path
            mode: Transfer mode, inferred from the file name when None
            permissions: Optional mode applied with chmod afterwards
            on_progress: Optional callback for progress updates

        Returns:
            Number of bytes transferred

        Raises:
            FTPNoSourceFileError: If the local file does not exist
            FTPAllocationError: If the server refuses space allocation
            FTPUploadError: If the transfer fails
        """
        ftp = self._ensure_connected("Upload")
        local_path = Path(local_path)

        is_valid, error = validate_file_path(local_path)
        if not is_valid:
            logger.debug(error)
            raise FTPNoSourceFileError(str(local_path))

        if mode is None:
            mode = resolve_transfer_mode(local_path.name)

        file_size = local_path.stat().st_size
        file_name = local_path.name
        self._allocate(ftp, file_name, remote_path, file_size)

        bytes_sent = 0

        try:
            with open(local_path, "rb") as f:
                def callback(block: bytes) -> None:
                    nonlocal bytes_sent
                    # Count local bytes read: storlines sends lines with CRLF endings
                    bytes_sent = f.tell()

                    if on_progress:
                        on_progress(UploadProgress(
                            remote_path=remote_path,
                            file_name=file_name,
                            bytes_sent=bytes_sent,
                            bytes_total=file_size
                        ))

                if mode is TransferMode.TEXT:
                    ftp.storlines(f"STOR {remote_path}", f, callback=callback)
                else:
                    ftp.storbinary(
                        f"STOR {remote_path}",
                        f,
                        blocksize=self.BLOCK_SIZE,
                        callback=callback
                    )
        except all_errors as e:
            raise FTPUploadError(file_name, remote_path, e)

        self._update_activity()
        logger.debug(f"Uploaded {local_path} -> {remote_path} ({mode.value}, {bytes_sent} bytes)")

        if permissions is not None:
            self.chmod(remote_path, permissions)

        return bytes_sent

    def _allocate(self, ftp: FTP, file_name: str, remote_path: str, size: int) -> None:
        """
        Send an ALLO hint before storing a file.

        Servers that do not implement ALLO are tolerated.

        Raises:
            FTPAllocationError: If the server refuses the allocation
        """
        try:
            ftp.sendcmd(f"ALLO {size}")
        except (error_perm, error_temp) as e:
            if _reply_code(e) in NOT_IMPLEMENTED_CODES:
                logger.debug(f"Server does not implement ALLO: {e}")
                return
            raise FTPAllocationError(remote_path, size, str(e))
        except all_errors as e:
            raise FTPUploadError(file_name, remote_path, e)

    def delete_file(self, path: str) -> bool:
        """
        Delete a remote file without raising on server refusal.

        A False result is what the tree deleter reads as "probably a
        directory".

        Returns:
            True if the file was deleted

        Raises:
            FTPNotConnectedError: If not connected
        """
        try:
            self.remove_file(path)
        except FTPDeleteError as e:
            logger.debug(str(e))
            return False
        return True

    def remove_directory(self, path: str) -> None:
        """
        Remove an empty remote directory.

        Raises:
            FTPRmdirError: If the directory cannot be removed
        """
        ftp = self._ensure_connected("Remove directory")
        try:
            ftp.rmd(path)
        except all_errors as e:
            raise FTPRmdirError(path, e)

        self._update_activity()
        logger.debug(f"Removed directory {path}")

    # Single-step operations

    def remove_file(self, path: str) -> None:
        """
        Delete a remote file.

        Raises:
            FTPDeleteError: If the file cannot be deleted
        """
        ftp = self._ensure_connected("Delete")
        try:
            ftp.delete(path)
        except all_errors as e:
            raise FTPDeleteError(path, e)

        self._update_activity()
        logger.debug(f"Deleted {path}")

    def download_file(
        self,
        remote_path: str,
        local_path: PathLike,
        mode: Optional[TransferMode] = None
    ) -> None:
        """
        Download a remote file.

        Args:
            remote_path: Remote source path
            local_path: Local destination path
            mode: Transfer mode, inferred from the remote name when None

        Raises:
            FTPDownloadError: If the transfer fails
        """
        ftp = self._ensure_connected("Download")
        local_path = Path(local_path)

        if mode is None:
            mode = resolve_transfer_mode(PurePosixPath(remote_path).name)

        try:
            if mode is TransferMode.TEXT:
                with open(local_path, "w", encoding=ftp.encoding) as f:
                    ftp.retrlines(f"RETR {remote_path}", lambda line: f.write(line + "\n"))
            else:
                with open(local_path, "wb") as f:
                    ftp.retrbinary(f"RETR {remote_path}", f.write, blocksize=self.BLOCK_SIZE)
        except all_errors as e:
            raise FTPDownloadError(remote_path, str(local_path), e)

        self._update_activity()
        logger.debug(f"Downloaded {remote_path} -> {local_path} ({mode.value})")

    def rename(self, old_path: str, new_path: str) -> None:
        """
        Rename a remote file or directory.

        Raises:
            FTPRenameError: If the server refuses the rename
        """
        self._rename(old_path, new_path, move=False)

    def move(self, old_path: str, new_path: str) -> None:
        """
        Move a remote file or directory.

        Raises:
            FTPRenameError: If the server refuses the move
        """
        self._rename(old_path, new_path, move=True)

    def _rename(self, old_path: str, new_path: str, move: bool) -> None:
        ftp = self._ensure_connected("Move" if move else "Rename")
        try:
            ftp.rename(old_path, new_path)
        except all_errors as e:
            raise FTPRenameError(old_path, new_path, e, move=move)

        self._update_activity()

    def chmod(self, path: str, permissions: Union[int, str]) -> None:
        """
        Set permissions of a remote path with SITE CHMOD.

        Args:
            path: Remote path
            permissions: Mode as an int (0o755) or octal string ("755")

        Raises:
            FTPUnsupportedOperationError: If the server has no SITE CHMOD
            FTPChmodError: If the mode is not octal or the server refuses the change
        """
        if isinstance(permissions, str):
            try:
                permissions = int(permissions, 8)
            except ValueError as e:
                raise FTPChmodError(path, permissions, e)

        ftp = self._ensure_connected("Chmod")
        try:
            ftp.sendcmd(f"SITE CHMOD {permissions:o} {path}")
        except error_perm as e:
            if _reply_code(e) in NOT_IMPLEMENTED_CODES:
                raise FTPUnsupportedOperationError("SITE CHMOD", e)
            raise FTPChmodError(path, permissions, e)
        except all_errors as e:
            raise FTPChmodError(path, permissions, e)

        self._update_activity()

    def size(self, path: str) -> int:
        """
        Get the size of a remote file.

        Returns:
            Size in bytes, or -1 if the server cannot report it
        """
        ftp = self._ensure_connected("Size")
        try:
            # Some servers refuse SIZE in ASCII mode
            ftp.voidcmd("TYPE I")
            size = ftp.size(path)
        except all_errors as e:
            logger.debug(f"SIZE {path} failed: {e}")
            return -1

        self._update_activity()
        return size if size is not None else -1

    def formatted_size(self, path: str) -> str:
        """Size of a remote file as a human-readable string."""
        return format_size(self.size(path))

    def file_exists(self, path: str) -> bool:
        """True if the server reports a size for path."""
        return self.size(path) != -1

    def mtime(self, path: str) -> int:
        """
        Get the modification time of a remote file.

        Returns:
            Epoch seconds (UTC), or -1 if the server cannot report it
        """
        ftp = self._ensure_connected("Modification time")
        try:
            response = ftp.sendcmd(f"MDTM {path}")
        except all_errors as e:
            logger.debug(f"MDTM {path} failed: {e}")
            return -1

        self._update_activity()
        return _parse_mdtm(response)

    def systype(self) -> str:
        """
        Get the system type reported by the server (e.g. "UNIX").

        Raises:
            FTPError: If the server refuses SYST
        """
        ftp = self._ensure_connected("System type")
        try:
            response = ftp.sendcmd("SYST")
        except all_errors as e:
            raise FTPError("Failed to query system type", e)

        self._update_activity()
        words = response[4:].split()
        return words[0] if words else ""
