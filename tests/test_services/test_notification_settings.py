"""Tests for notification preferences."""

from datetime import datetime, timezone

import pytest

from stockwatch.core.exceptions import InvalidInputError
from stockwatch.services import NotificationSettingsService, WeeklyEmailSchedule
from stockwatch.storage import (
    LAST_TEST_EMAIL_KEY,
    NOTIFICATION_EMAIL_KEY,
    WEEKLY_EMAIL_SCHEDULE_KEY,
)

WHEN = datetime(2024, 6, 14, 17, 0, tzinfo=timezone.utc)


@pytest.fixture
def notifications(secure_storage):
    return NotificationSettingsService(secure_storage)


class TestNotificationEmail:
    """Test the notification address."""

    def test_set_and_get(self, notifications, secure_storage):
        assert notifications.set_notification_email(" investor@example.com ") == "investor@example.com"

        assert notifications.get_notification_email() == "investor@example.com"
        assert secure_storage.get(NOTIFICATION_EMAIL_KEY) == "investor@example.com"

    def test_invalid_address_is_rejected(self, notifications):
        with pytest.raises(InvalidInputError) as exc_info:
            notifications.set_notification_email("not-an-email")

        assert "email" in exc_info.value.field_errors
        assert notifications.get_notification_email() is None

    def test_clear(self, notifications):
        notifications.set_notification_email("investor@example.com")

        notifications.clear_notification_email()

        assert notifications.get_notification_email() is None


class TestTestEmail:
    """Test recording of test-send attempts."""

    def test_record_test_email(self, notifications, secure_storage):
        record = notifications.record_test_email("investor@example.com", True, when=WHEN)

        assert record == {
            "date": WHEN.isoformat(),
            "email": "investor@example.com",
            "success": True,
        }
        assert secure_storage.get(LAST_TEST_EMAIL_KEY) == record
        assert notifications.get_last_test_email() == record


class TestWeeklySchedule:
    """Test the weekly report schedule."""

    def test_schedule_defaults(self, notifications, secure_storage):
        schedule = notifications.schedule_weekly_email("investor@example.com", when=WHEN)

        assert schedule.day_of_week == 4
        assert schedule.day_name == "fri"
        assert schedule.hour == 17
        assert secure_storage.get(WEEKLY_EMAIL_SCHEDULE_KEY) == {
            "email": "investor@example.com",
            "enabled": True,
            "dayOfWeek": 4,
            "hour": 17,
            "lastScheduled": WHEN.isoformat(),
        }

    def test_schedule_round_trips_through_storage(self, notifications):
        saved = notifications.schedule_weekly_email(
            "investor@example.com", enabled=False, day_of_week=0, hour=8, when=WHEN
        )

        assert notifications.get_weekly_schedule() == saved

    @pytest.mark.parametrize(
        "email,day,hour,field",
        [
            ("bad", 1, 10, "email"),
            ("investor@example.com", 7, 10, "dayOfWeek"),
            ("investor@example.com", 1, 24, "hour"),
        ],
    )
    def test_invalid_schedule(self, notifications, email, day, hour, field):
        with pytest.raises(InvalidInputError) as exc_info:
            notifications.schedule_weekly_email(email, day_of_week=day, hour=hour)

        assert field in exc_info.value.field_errors

    def test_malformed_stored_schedule_reads_as_none(self, notifications, secure_storage):
        secure_storage.put(WEEKLY_EMAIL_SCHEDULE_KEY, {"email": "x@example.com"})

        assert notifications.get_weekly_schedule() is None

    def test_day_names(self):
        schedule = WeeklyEmailSchedule("a@b.co", True, 6, 9)

        assert schedule.day_name == "sun"
