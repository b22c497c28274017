"""API-key storage with a pluggable persistence backend.

``CredentialStore`` holds a single credential string.  It is loaded once at
start-up, written only on an explicit ``save()``, never expires and is never
checked until the first completion call uses it.
"""

import json
import logging
import os
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)

CREDENTIAL_KEY = "gemini-api-key"
CREDENTIAL_ENV_VAR = "GEMINI_API_KEY"


class CredentialBackend(Protocol):
    """Persistence for the credential.  Read-only backends raise ``PermissionError`` on write."""

    def read(self) -> str | None: ...

    def write(self, value: str) -> None: ...


class JsonFileCredentialBackend:
    """Stores the key under ``CREDENTIAL_KEY`` in a small JSON file.

    Other keys already present in the file are preserved on write.
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def read(self) -> str | None:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except json.JSONDecodeError as e:
            logger.warning("Ignoring unreadable credential file %s: %s", self.path, e)
            return None
        value = data.get(CREDENTIAL_KEY) if isinstance(data, dict) else None
        return value if isinstance(value, str) else None

    def write(self, value: str) -> None:
        data: dict = {}
        if self.path.exists():
            try:
                loaded = json.loads(self.path.read_text(encoding="utf-8"))
            except json.JSONDecodeError:
                loaded = {}
            if isinstance(loaded, dict):
                data = loaded
        data[CREDENTIAL_KEY] = value
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2) + "\n", encoding="utf-8")
        try:
            self.path.chmod(0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.path)


class EnvCredentialBackend:
    """Reads the key from an environment variable.  Read-only."""

    def __init__(self, var: str = CREDENTIAL_ENV_VAR) -> None:
        self.var = var

    def read(self) -> str | None:
        return os.environ.get(self.var) or None

    def write(self, value: str) -> None:
        raise PermissionError(f"Cannot persist a credential to ${self.var}")


class CredentialStore:
    """The single credential used by the session, passed in by reference."""

    def __init__(self, backend: CredentialBackend) -> None:
        self.backend = backend
        self.credential = ""

    def load(self) -> str:
        """Read the persisted value (empty string when nothing is stored)."""
        self.credential = self.backend.read() or ""
        if self.credential:
            logger.debug("Loaded saved API key from %s", type(self.backend).__name__)
        return self.credential

    def set(self, value: str) -> None:
        """Change the in-memory credential without persisting it."""
        self.credential = value

    def save(self) -> None:
        """Persist the current in-memory credential."""
        self.backend.write(self.credential)
        logger.info("API key saved")
