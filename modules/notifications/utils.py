"""
Shared Utilities for the Notification Center Module
Date parsing, formatters, and history export
"""

import math
from datetime import date, datetime, time, timedelta, timezone
from io import BytesIO
from typing import Dict, Iterable, List, Optional

import pandas as pd

from .constants import HISTORY_EXPORT_COLS

SECONDS_PER_DAY = 86400

RELATIVE_INTERVALS = [
    ("year", 31536000),
    ("month", 2592000),
    ("day", 86400),
    ("hour", 3600),
    ("minute", 60),
    ("second", 1),
]


# =====================================================
# DATE PARSING
# =====================================================

def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def to_iso(moment: datetime) -> str:
    """Serialize an aware datetime as an ISO-8601 UTC string"""
    return moment.astimezone(timezone.utc).isoformat()


def parse_timestamp(value) -> Optional[datetime]:
    """
    Parse a stored timestamp into an aware UTC datetime

    Accepts datetimes, dates and ISO-8601 strings (including a trailing "Z").
    Naive values are taken as UTC. Returns None for anything unparsable.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        moment = value
    elif isinstance(value, date):
        moment = datetime.combine(value, time.min)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            moment = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


def parse_date(value) -> Optional[date]:
    """Parse an expiry date column value; None when missing or malformed"""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip()[:10])
        except ValueError:
            return None
    return None


def expiry_moment(expiry: date) -> datetime:
    """An expiry date taken as midnight UTC of that day"""
    return datetime.combine(expiry, time.min, tzinfo=timezone.utc)


def days_until(expiry: date, now: datetime) -> int:
    """Calendar-day ceiling of the time left before expiry"""
    remaining = (expiry_moment(expiry) - now).total_seconds()
    return math.ceil(remaining / SECONDS_PER_DAY)


# =====================================================
# FORMATTERS
# =====================================================

def format_relative_time(moment: datetime, now: Optional[datetime] = None) -> str:
    """'3 hours ago' style label; older than a week shows the short date"""
    now = now or utc_now()
    seconds = math.floor((now - moment).total_seconds())

    if seconds > 7 * SECONDS_PER_DAY:
        local = moment.astimezone()
        return f"{local.strftime('%b')} {local.day}"

    for label, size in RELATIVE_INTERVALS:
        if size <= seconds:
            count = seconds // size
            return f"{count} {label}{'s' if count != 1 else ''} ago"
    return "just now"


def format_date_heading(day: date) -> str:
    return f"{day.strftime('%B')} {day.day}, {day.year}"


# =====================================================
# EXCEL GENERATION
# =====================================================

def build_history_frame(notifications: Iterable, dismissed_ids: Iterable[str] = ()) -> pd.DataFrame:
    """Flatten notifications into a DataFrame for display and export"""
    dismissed = set(dismissed_ids)
    rows: List[Dict] = []
    for notification in notifications:
        row = notification.to_dict()
        row['created_at'] = notification.created_at.astimezone().strftime('%Y-%m-%d %H:%M')
        row['dismissed'] = notification.id in dismissed
        rows.append(row)

    if not rows:
        return pd.DataFrame(columns=HISTORY_EXPORT_COLS)
    df = pd.DataFrame(rows)
    return df[HISTORY_EXPORT_COLS].copy()


def generate_history_excel(notifications: Iterable, dismissed_ids: Iterable[str] = ()) -> bytes:
    """Generate an Excel file of the notification history"""
    df_export = build_history_frame(notifications, dismissed_ids)
    df_export.columns = [col.replace('_', ' ').title() for col in df_export.columns]

    output = BytesIO()
    with pd.ExcelWriter(output, engine='xlsxwriter') as writer:
        df_export.to_excel(writer, index=False, sheet_name='Notifications')
    output.seek(0)

    return output.getvalue()
