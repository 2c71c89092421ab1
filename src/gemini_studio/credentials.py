"""Local API key cache.

The key is stored in plain text under a single fixed name in a small JSON
file (``~/.gemini_studio.json`` by default). There is no expiry.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path

from gemini_studio.exceptions import MissingCredentialError
from gemini_studio.utils.logging import mask_credential

logger = logging.getLogger(__name__)

CREDENTIAL_KEY = "GEMINI_API_KEY"


class CredentialStore:
    """Load and save the API key in a local JSON file.

    Example:
        ```python
        store = CredentialStore(Path("~/.gemini_studio.json").expanduser())
        if store.load() is None:
            store.save(input("API key: "))
        ```
    """

    def __init__(self, path: Path, key_name: str = CREDENTIAL_KEY) -> None:
        self.path = path
        self.key_name = key_name

    def _read(self) -> dict:
        if not self.path.is_file():
            return {}
        try:
            with self.path.open("r", encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning("Ignoring unreadable credential file %s: %s", self.path, e)
            return {}
        return data if isinstance(data, dict) else {}

    def load(self) -> str | None:
        """Return the cached API key, or None if none is stored."""
        value = self._read().get(self.key_name)
        if isinstance(value, str) and value.strip():
            return value.strip()
        return None

    def require(self) -> str:
        """Return the cached API key.

        Raises:
            MissingCredentialError: If no key is stored.
        """
        credential = self.load()
        if credential is None:
            raise MissingCredentialError
        return credential

    def save(self, credential: str) -> str:
        """Store an API key, replacing any previous one.

        Sets file permissions to 0o600 where supported.

        Args:
            credential: The API key; surrounding whitespace is stripped.

        Returns:
            The stored (stripped) key.

        Raises:
            ValueError: If the key is empty.
        """
        credential = credential.strip()
        if not credential:
            msg = "API key must not be empty"
            raise ValueError(msg)

        data = self._read()
        data[self.key_name] = credential
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        try:
            os.chmod(self.path, 0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.path)

        logger.info("Saved API key %s to %s", mask_credential(credential), self.path)
        return credential

    def clear(self) -> None:
        """Remove the stored API key, keeping any other entries."""
        data = self._read()
        if data.pop(self.key_name, None) is None:
            return
        self.path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        logger.info("Removed API key from %s", self.path)
