"""Data models for the notification center."""

from dataclasses import asdict, dataclass, field, replace
from datetime import datetime
from typing import Any, Dict, Optional

from .constants import (
    CATEGORY_SYSTEM,
    DEFAULT_ENABLE_EXPIRING_SOON,
    DEFAULT_EXPIRING_SOON_DAYS,
    DEFAULT_LOW_STOCK_THRESHOLD,
)
from .utils import parse_timestamp


def _as_count(value: Any) -> int:
    """Coerce a user-entered number, falling back to 0 and clamping negatives."""
    try:
        return max(int(value), 0)
    except (TypeError, ValueError):
        return 0


@dataclass(frozen=True)
class NotificationSettings:
    """User-editable thresholds for inventory alerts."""
    low_stock_threshold: int = DEFAULT_LOW_STOCK_THRESHOLD
    expiring_soon_days: int = DEFAULT_EXPIRING_SOON_DAYS
    enable_expiring_soon: bool = DEFAULT_ENABLE_EXPIRING_SOON

    @classmethod
    def from_dict(cls, data: Optional[Dict[str, Any]]) -> "NotificationSettings":
        """Merge a stored record over the defaults; missing keys fall back."""
        defaults = cls()
        data = data if isinstance(data, dict) else {}
        return cls(
            low_stock_threshold=_as_count(
                data.get('low_stock_threshold', defaults.low_stock_threshold)),
            expiring_soon_days=_as_count(
                data.get('expiring_soon_days', defaults.expiring_soon_days)),
            enable_expiring_soon=bool(
                data.get('enable_expiring_soon', defaults.enable_expiring_soon)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True)
class Notification:
    """A derived notification. Recomputed on every pass, never stored."""
    id: str
    category: str
    icon_type: str
    title: str
    description: str
    created_at: datetime
    path: str = ""
    icon_bg: str = ""
    read: bool = False
    product_id: Any = field(default=None, compare=False)

    @property
    def is_system(self) -> bool:
        return self.category == CATEGORY_SYSTEM

    def with_read(self, read: bool = True) -> "Notification":
        return replace(self, read=read)

    def matches(self, text: str) -> bool:
        """Case-insensitive substring match over title and description"""
        needle = (text or "").strip().casefold()
        if not needle:
            return True
        haystack = f"{self.title} {self.description}".casefold()
        return needle in haystack

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        data.pop('product_id')
        return data

    @classmethod
    def from_system_record(cls, record: Dict[str, Any], read: bool) -> Optional["Notification"]:
        """
        Map a stored system notification record to a Notification.

        Returns None for records without an id or a parsable created_at.
        """
        created_at = parse_timestamp(record.get('created_at'))
        if not record.get('id') or created_at is None:
            return None
        return cls(
            id=str(record['id']),
            category=CATEGORY_SYSTEM,
            icon_type=record.get('icon_type', ''),
            icon_bg=record.get('icon_bg', ''),
            title=record.get('title', ''),
            description=record.get('description', ''),
            created_at=created_at,
            path=record.get('path', ''),
            read=read,
        )
