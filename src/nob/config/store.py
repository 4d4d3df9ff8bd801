"""Credential Store - Persists the personal API key record."""

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from nob.config.defaults import DEFAULT_CREDENTIALS_FILE
from nob.telemetry.logger import get_logger

logger = get_logger(__name__)


@dataclass
class Credentials:
    """Personal Workers AI credentials."""

    cloudflare_account_id: Optional[str] = None
    cloudflare_api_token: Optional[str] = None

    @property
    def has_personal_key(self) -> bool:
        return bool(self.cloudflare_account_id and self.cloudflare_api_token)

    def to_dict(self) -> dict:
        """Convert to dictionary for serialization."""
        data = {}
        if self.cloudflare_account_id:
            data["cloudflare_account_id"] = self.cloudflare_account_id
        if self.cloudflare_api_token:
            data["cloudflare_api_token"] = self.cloudflare_api_token
        return data

    @classmethod
    def from_dict(cls, data: dict) -> "Credentials":
        """Create from dictionary."""
        return cls(
            cloudflare_account_id=data.get("cloudflare_account_id") or None,
            cloudflare_api_token=data.get("cloudflare_api_token") or None,
        )


class CredentialStore:
    """Reads and writes the credential record.

    The record lives in a user-only directory (0700) and file (0600).
    A missing or corrupt file reads as an empty record.

    Example:
        store = CredentialStore()
        store.save(Credentials("acct", "token"))
        store.load().has_personal_key  # True
        store.clear_credentials()
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        """Initialize the store.

        Args:
            path: Path to the credential file. Uses ~/.nob/config.json if None.
        """
        self.path = path or DEFAULT_CREDENTIALS_FILE

    def load(self) -> Credentials:
        """Load credentials, returning an empty record on any read failure."""
        if not self.path.exists():
            return Credentials()

        try:
            with open(self.path, encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Failed to read credentials", path=str(self.path), error=str(e))
            return Credentials()

        if not isinstance(data, dict):
            return Credentials()
        return Credentials.from_dict(data)

    def save(self, credentials: Credentials) -> None:
        """Write credentials.

        Raises:
            OSError: If the file cannot be written
        """
        self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)

        temp_path = self.path.with_suffix(".tmp")
        fd = os.open(temp_path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w") as f:
            json.dump(credentials.to_dict(), f, indent=2)
        os.chmod(temp_path, 0o600)
        temp_path.replace(self.path)

        logger.info("Saved credentials", path=str(self.path))

    def clear_credentials(self) -> bool:
        """Remove stored credentials.

        Returns:
            True if there was something to remove
        """
        current = self.load()
        if not current.cloudflare_account_id and not current.cloudflare_api_token:
            return False

        self.save(Credentials())
        logger.info("Cleared credentials")
        return True
