"""Credential store used around authentication."""

import json
import logging
import os
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

CREDENTIALS_FILE = "credentials.json"


class CredentialStore(Protocol):
    """Persists a token between runs. The engine never calls it."""

    def load(self) -> str | None: ...

    def save(self, token: str) -> None: ...

    def clear(self) -> None: ...


def get_config_dir() -> Path:
    """Per-user config directory (`PAGESYNC_CONFIG_DIR` overrides)."""
    override = os.environ.get("PAGESYNC_CONFIG_DIR")
    if override:
        return Path(override)
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "pagesync"
    return Path.home() / ".config" / "pagesync"


class FileCredentialStore:
    """Token kept in a JSON file readable only by the owner."""

    def __init__(self, directory: Path | None = None):
        self.path = (directory or get_config_dir()) / CREDENTIALS_FILE

    def load(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable credential file %s: %s", self.path, e)
            return None
        token = data.get("token") if isinstance(data, dict) else None
        return token or None

    def save(self, token: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(self.path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            json.dump({"token": token}, f)
        logger.info("Saved credential to %s", self.path)

    def clear(self) -> None:
        if self.path.exists():
            self.path.unlink()
            logger.info("Removed credential %s", self.path)
