"""Encrypted local persistence."""

from pathlib import Path
from typing import Optional

from ..config.settings import Settings, get_settings
from .backends import JsonFileBackend, KeyValueBackend, MemoryBackend
from .secure_store import DeviceFingerprint, SecureStorage, derive_storage_key

# Keys of the persisted local state
POSITIONS_KEY = "stockPositions"
NOTIFICATION_EMAIL_KEY = "notificationEmail"
LAST_TEST_EMAIL_KEY = "lastTestEmail"
WEEKLY_EMAIL_SCHEDULE_KEY = "weeklyEmailSchedule"


def create_storage(settings: Optional[Settings] = None) -> SecureStorage:
    """Build the file-backed encrypted store described by settings."""
    settings = settings or get_settings()
    return SecureStorage(
        JsonFileBackend(Path(settings.storage_path)),
        DeviceFingerprint.from_settings(settings),
    )


__all__ = [
    "DeviceFingerprint",
    "JsonFileBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "SecureStorage",
    "create_storage",
    "derive_storage_key",
    "POSITIONS_KEY",
    "NOTIFICATION_EMAIL_KEY",
    "LAST_TEST_EMAIL_KEY",
    "WEEKLY_EMAIL_SCHEDULE_KEY",
]
