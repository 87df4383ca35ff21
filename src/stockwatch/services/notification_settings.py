"""Persisted notification preferences: e-mail address and weekly schedule."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from ..config.logging import LoggerMixin
from ..core import validators
from ..core.exceptions import InvalidInputError
from ..storage import (
    LAST_TEST_EMAIL_KEY,
    NOTIFICATION_EMAIL_KEY,
    WEEKLY_EMAIL_SCHEDULE_KEY,
    SecureStorage,
)

DAY_NAMES = ("mon", "tue", "wed", "thu", "fri", "sat", "sun")


@dataclass(frozen=True)
class WeeklyEmailSchedule:
    """When the weekly report goes out. day_of_week is 0 = Monday."""

    email: str
    enabled: bool
    day_of_week: int
    hour: int
    last_scheduled: Optional[str] = None

    @property
    def day_name(self) -> str:
        return DAY_NAMES[self.day_of_week]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "email": self.email,
            "enabled": self.enabled,
            "dayOfWeek": self.day_of_week,
            "hour": self.hour,
            "lastScheduled": self.last_scheduled,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "WeeklyEmailSchedule":
        return cls(
            email=str(data["email"]),
            enabled=bool(data["enabled"]),
            day_of_week=int(data["dayOfWeek"]),
            hour=int(data["hour"]),
            last_scheduled=data.get("lastScheduled"),
        )


class NotificationSettingsService(LoggerMixin):
    """Reads and writes notification preferences in the encrypted store."""

    def __init__(self, storage: SecureStorage):
        self.storage = storage

    def _clean_email(self, email: Any) -> str:
        if not validators.validate_email(email):
            raise InvalidInputError(
                "Invalid e-mail address", field_errors={"email": "Invalid e-mail format"}
            )
        return validators.sanitize_string(email)

    def set_notification_email(self, email: str) -> str:
        """
        Store the address weekly reports are sent to.

        Raises:
            InvalidInputError: If the address is malformed
        """
        clean = self._clean_email(email)
        self.storage.put(NOTIFICATION_EMAIL_KEY, clean)
        self.logger.info("Notification e-mail saved", email=clean)
        return clean

    def get_notification_email(self) -> Optional[str]:
        value = self.storage.get(NOTIFICATION_EMAIL_KEY)
        return value if isinstance(value, str) else None

    def clear_notification_email(self) -> None:
        self.storage.remove(NOTIFICATION_EMAIL_KEY)

    def record_test_email(
        self, email: str, success: bool, when: Optional[datetime] = None
    ) -> Dict[str, Any]:
        """Remember the outcome of the latest test message."""
        record = {
            "date": (when or datetime.now(timezone.utc)).isoformat(),
            "email": self._clean_email(email),
            "success": bool(success),
        }
        self.storage.put(LAST_TEST_EMAIL_KEY, record)
        self.log_with_context(success=record["success"]).info("Test e-mail recorded")
        return record

    def get_last_test_email(self) -> Optional[Dict[str, Any]]:
        value = self.storage.get(LAST_TEST_EMAIL_KEY)
        return value if isinstance(value, dict) else None

    def schedule_weekly_email(
        self,
        email: str,
        enabled: bool = True,
        day_of_week: int = 4,
        hour: int = 17,
        when: Optional[datetime] = None,
    ) -> WeeklyEmailSchedule:
        """
        Store the weekly report schedule.

        Raises:
            InvalidInputError: If the address, day or hour is invalid
        """
        field_errors = {}
        if not validators.validate_email(email):
            field_errors["email"] = "Invalid e-mail format"
        if not validators.validate_day_of_week(day_of_week):
            field_errors["dayOfWeek"] = "Day of week must be 0 (Monday) to 6 (Sunday)"
        if not validators.validate_hour(hour):
            field_errors["hour"] = "Hour must be between 0 and 23"
        if field_errors:
            raise InvalidInputError("Invalid weekly schedule", field_errors=field_errors)

        schedule = WeeklyEmailSchedule(
            email=validators.sanitize_string(email),
            enabled=enabled,
            day_of_week=day_of_week,
            hour=hour,
            last_scheduled=(when or datetime.now(timezone.utc)).isoformat(),
        )
        self.storage.put(WEEKLY_EMAIL_SCHEDULE_KEY, schedule.to_dict())
        self.log_with_context(
            enabled=enabled, day=schedule.day_name, hour=hour
        ).info("Weekly e-mail schedule saved")
        return schedule

    def get_weekly_schedule(self) -> Optional[WeeklyEmailSchedule]:
        value = self.storage.get(WEEKLY_EMAIL_SCHEDULE_KEY)
        if not isinstance(value, dict):
            return None
        try:
            return WeeklyEmailSchedule.from_dict(value)
        except (KeyError, TypeError, ValueError) as e:
            self.logger.warning("Stored weekly schedule is malformed", error=str(e))
            return None
