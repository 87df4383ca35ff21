"""Encrypted JSON key/value store.

Values are serialized to JSON and encrypted with Fernet under a key derived
from a device fingerprint (user agent, locale and screen size). Anyone who can
reproduce the same environment can rebuild that key, so this only keeps stored
data from casual inspection. It is not a security boundary.
"""

import base64
import hashlib
import json
import locale
import platform
from dataclasses import dataclass
from typing import Any, Optional

from cryptography.fernet import Fernet, InvalidToken

from ..config.logging import get_logger
from ..config.settings import Settings
from ..core.exceptions import StorageError
from .backends import KeyValueBackend

logger = get_logger(__name__)

KEY_SALT = "stockwatch_secure"


@dataclass(frozen=True)
class DeviceFingerprint:
    """Environment attributes the storage key is derived from."""

    user_agent: str
    language: str
    screen_width: int = 0
    screen_height: int = 0

    def as_string(self) -> str:
        return f"{self.user_agent}{self.language}{self.screen_width}{self.screen_height}"

    @classmethod
    def from_environment(cls) -> "DeviceFingerprint":
        """Fingerprint of the running host."""
        user_agent = (
            f"{platform.system()}/{platform.release()} "
            f"({platform.machine()}) Python/{platform.python_version()}"
        )
        language = locale.getlocale()[0] or "C"
        return cls(user_agent=user_agent, language=language)

    @classmethod
    def from_settings(cls, settings: Settings) -> "DeviceFingerprint":
        """Host fingerprint with any overrides configured in settings."""
        host = cls.from_environment()
        return cls(
            user_agent=settings.device_user_agent or host.user_agent,
            language=settings.device_language or host.language,
            screen_width=settings.device_screen_width,
            screen_height=settings.device_screen_height,
        )


def derive_storage_key(fingerprint: DeviceFingerprint) -> bytes:
    """Fernet key for a fingerprint: urlsafe base64 of a salted SHA-256 digest."""
    digest = hashlib.sha256(
        (fingerprint.as_string() + KEY_SALT).encode("utf-8")
    ).digest()
    return base64.urlsafe_b64encode(digest)


class SecureStorage:
    """JSON values encrypted at rest on a key/value backend."""

    def __init__(self, backend: KeyValueBackend, fingerprint: DeviceFingerprint):
        self.backend = backend
        self._fernet = Fernet(derive_storage_key(fingerprint))
        self.logger = logger.bind(component="secure_storage")

    def put(self, key: str, value: Any) -> None:
        """
        Serialize, encrypt and store a value, overwriting any previous one.

        Raises:
            StorageError: If the value cannot be serialized or encrypted
        """
        try:
            payload = json.dumps(value).encode("utf-8")
            token = self._fernet.encrypt(payload).decode("ascii")
        except (TypeError, ValueError) as e:
            self.logger.error("Failed to encrypt data", key=key, error=str(e))
            raise StorageError(f"Data encryption failed for '{key}': {e}") from e

        self.backend.set_item(key, token)
        self.logger.debug("Stored encrypted value", key=key, size=len(token))

    def get(self, key: str) -> Optional[Any]:
        """
        Read and decrypt a value.

        Returns:
            The stored value, or None when the key is absent or its contents
            cannot be decrypted or parsed
        """
        token = self.backend.get_item(key)
        if not token:
            return None

        try:
            decrypted = self._fernet.decrypt(token.encode("ascii"))
            return json.loads(decrypted.decode("utf-8"))
        except (InvalidToken, UnicodeError, ValueError) as e:
            self.logger.warning(
                "Failed to decrypt data",
                key=key,
                error_type=type(e).__name__,
            )
            return None

    def remove(self, key: str) -> None:
        self.backend.remove_item(key)
        self.logger.debug("Removed stored value", key=key)
