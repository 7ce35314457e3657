"""Tests for date helpers, formatters and the history export."""

from datetime import date, datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from conftest import NOW
from config import database
from modules.notifications.models import Notification, NotificationSettings
from modules.notifications.utils import (
    build_history_frame,
    days_until,
    format_relative_time,
    generate_history_excel,
    parse_date,
    parse_timestamp,
)


@pytest.mark.parametrize("value, expected", [
    ("2026-10-19T12:00:00Z", NOW),
    ("2026-10-19T12:00:00+00:00", NOW),
    ("2026-10-19T20:00:00+08:00", NOW),
    ("2026-10-19T12:00:00", NOW),
    (datetime(2026, 10, 19, 12, 0), NOW),
    (date(2026, 10, 19), datetime(2026, 10, 19, tzinfo=timezone.utc)),
])
def test_parse_timestamp(value, expected):
    assert parse_timestamp(value) == expected


@pytest.mark.parametrize("value", [None, "", "yesterday", 1700000000])
def test_parse_timestamp_rejects_garbage(value):
    assert parse_timestamp(value) is None


def test_parse_date():
    assert parse_date("2027-01-31") == date(2027, 1, 31)
    assert parse_date("2027-01-31T00:00:00") == date(2027, 1, 31)
    assert parse_date(datetime(2027, 1, 31, 8, 30)) == date(2027, 1, 31)
    assert parse_date("2027-02-30") is None


def test_days_until_rounds_up():
    assert days_until(date(2026, 10, 20), NOW) == 1
    assert days_until(date(2026, 11, 18), NOW) == 30
    assert days_until(date(2026, 10, 19), NOW) == 0
    assert days_until(date(2026, 10, 19), datetime(2026, 10, 18, 23, 0, tzinfo=timezone.utc)) == 1


@pytest.mark.parametrize("delta, expected", [
    (timedelta(seconds=0), "just now"),
    (timedelta(seconds=1), "1 second ago"),
    (timedelta(minutes=5), "5 minutes ago"),
    (timedelta(hours=1), "1 hour ago"),
    (timedelta(days=3), "3 days ago"),
])
def test_format_relative_time(delta, expected):
    assert format_relative_time(NOW - delta, now=NOW) == expected


def test_format_relative_time_old_dates_show_short_date():
    label = format_relative_time(NOW - timedelta(days=30), now=NOW)
    assert label.split()[0] in {"Sep", "Oct"}
    assert not label.endswith("ago")


def make_notification(notification_id="expired-1", read=False):
    return Notification(
        id=notification_id,
        category="Expired",
        icon_type="expired",
        icon_bg="bg-red-100",
        title="Expired Medicine",
        description="Amoxicillin has expired.",
        created_at=NOW,
        path="/management?highlight=1",
        read=read,
    )


def test_build_history_frame():
    df = build_history_frame([make_notification(), make_notification("exp-soon-2", read=True)],
                             dismissed_ids=["exp-soon-2"])
    assert list(df.columns) == ['created_at', 'category', 'title', 'description',
                                'read', 'dismissed', 'path']
    assert df['dismissed'].tolist() == [False, True]
    assert df['read'].tolist() == [False, True]


def test_build_history_frame_empty():
    assert build_history_frame([]).empty


def test_generate_history_excel():
    content = generate_history_excel([make_notification()])
    assert content[:2] == b"PK"


def test_notification_matches():
    notification = make_notification()
    assert notification.matches("AMOX")
    assert notification.matches("expired medicine")
    assert notification.matches("   ")
    assert not notification.matches("paracetamol")


def test_settings_from_dict_handles_garbage():
    assert NotificationSettings.from_dict(None) == NotificationSettings()
    assert NotificationSettings.from_dict({'expiring_soon_days': "14"}).expiring_soon_days == 14


# ---------------------------------------------------------------------------
# Configuration
# ---------------------------------------------------------------------------


def test_storage_dir_from_secrets(monkeypatch):
    secrets = {'notifications': {'storage_dir': "/var/lib/pharmacy"}}
    monkeypatch.setattr(database, "st", SimpleNamespace(secrets=secrets))
    assert database.get_notification_storage_dir() == "/var/lib/pharmacy"


def test_storage_dir_from_environment(monkeypatch):
    monkeypatch.setattr(database, "st", SimpleNamespace(secrets={}))
    monkeypatch.setenv(database.STORAGE_DIR_ENV, "/tmp/notif")
    assert database.get_notification_storage_dir() == "/tmp/notif"


def test_storage_dir_default(monkeypatch):
    monkeypatch.setattr(database, "st", SimpleNamespace(secrets={}))
    monkeypatch.delenv(database.STORAGE_DIR_ENV, raising=False)
    assert database.get_notification_storage_dir() == ".notifications"
