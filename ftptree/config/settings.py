"""Connection profile persistence for ftptree.

Stores named FTPSessionConfig profiles in a JSON file. Passwords are
never written to the file; they live in the system keyring via
CredentialManager.
"""

import json
import logging
from pathlib import Path
from typing import Dict, List, Optional

from ftptree.config.credentials import CredentialManager
from ftptree.config.paths import get_profiles_path
from ftptree.ftp.connection import FTPSessionConfig

logger = logging.getLogger("ftptree.settings")


class ProfileStore:
    """Manages named connection profiles."""

    def __init__(self, config_path: Optional[Path] = None):
        """
        Initialize the profile store.

        Args:
            config_path: Optional custom path, defaults to platform standard
        """
        self._config_path = config_path or get_profiles_path()
        self._profiles: Optional[Dict[str, dict]] = None

    @property
    def config_path(self) -> Path:
        """Path to profiles file."""
        return self._config_path

    def _read(self) -> Dict[str, dict]:
        """Load all profiles from disk (empty if missing or unreadable)."""
        if self._profiles is not None:
            return self._profiles

        self._profiles = {}
        if self._config_path.exists():
            try:
                with open(self._config_path, "r", encoding="utf-8") as f:
                    data = json.load(f)
                if isinstance(data, dict):
                    self._profiles = {
                        name: profile for name, profile in data.items()
                        if isinstance(profile, dict)
                    }
            except (json.JSONDecodeError, IOError) as e:
                logger.warning(f"Ignoring unreadable profiles file {self._config_path}: {e}")

        return self._profiles

    def _write(self) -> None:
        """Persist all profiles to disk."""
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self._config_path, "w", encoding="utf-8") as f:
            json.dump(self._read(), f, indent=2, sort_keys=True)

    def names(self) -> List[str]:
        """Names of all saved profiles."""
        return sorted(self._read())

    def save(
        self,
        name: str,
        config: FTPSessionConfig,
        credentials: Optional[CredentialManager] = None
    ) -> None:
        """
        Save a profile.

        Args:
            name: Profile name
            config: Configuration to save (password excluded)
            credentials: If given, the password is stored in the keyring
        """
        self._read()[name] = config.to_dict(include_password=False)
        self._write()

        if credentials is not None and config.password:
            if not credentials.save_password(config.host, config.user, config.password):
                logger.warning(f"Could not store password for profile '{name}' in keyring")

        logger.info(f"Saved profile '{name}' for {config.host}")

    def load(
        self,
        name: str,
        credentials: Optional[CredentialManager] = None
    ) -> Optional[FTPSessionConfig]:
        """
        Load a profile.

        Args:
            name: Profile name
            credentials: If given, the password is read from the keyring

        Returns:
            FTPSessionConfig, or None if no such profile exists
        """
        data = self._read().get(name)
        if data is None:
            return None

        config = FTPSessionConfig.from_dict(data)
        if credentials is not None:
            password = credentials.get_password(config.host, config.user)
            if password is not None:
                config.password = password
        return config

    def delete(self, name: str, credentials: Optional[CredentialManager] = None) -> bool:
        """
        Remove a profile.

        Returns:
            True if the profile existed
        """
        profiles = self._read()
        data = profiles.pop(name, None)
        if data is None:
            return False

        self._write()
        if credentials is not None:
            credentials.delete_password(data.get("host", ""), data.get("user", ""))
        return True

    def reset(self) -> None:
        """Remove all profiles."""
        self._profiles = {}
        if self._config_path.exists():
            self._config_path.unlink()
