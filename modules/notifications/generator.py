"""
Notification Generator
Derives the notification feed from the product snapshot and bookkeeping

VERSION HISTORY:
2.0.0 - Single generator for header dropdown and history page
      - No Stock notifications are episode-timestamped like Low Stock
      - Expiring Soon keeps its first-seen time instead of "now"
1.0.0 - Initial low stock / expiry alerts

An episode is one continuous span of a condition (low stock, no stock,
expiring soon) for one product. Its first-seen time is kept in the episode
timestamp map under "<prefix>-<product id>" until the condition resolves,
so the notification id and created_at stay put while the episode lasts and
read/dismissed markers keep applying to it. A new episode gets a new id.
Episodes of products that leave the snapshot are forgotten.
"""

import logging
from datetime import datetime
from typing import Dict, Iterable, List, Optional, Tuple

from .constants import (
    BG_ORANGE,
    BG_RED,
    BG_YELLOW,
    CATEGORY_EXPIRED,
    CATEGORY_EXPIRING_SOON,
    CATEGORY_LOW_STOCK,
    CATEGORY_NO_STOCK,
    EXPIRED_PREFIX,
    EXPIRING_SOON_PREFIX,
    ICON_EXPIRED,
    ICON_EXPIRING_SOON,
    ICON_LOW_STOCK,
    ICON_NO_STOCK,
    LOW_STOCK_PREFIX,
    NO_STOCK_PREFIX,
    STATUS_ARCHIVED,
    product_path,
)
from .models import Notification, NotificationSettings
from .utils import days_until, expiry_moment, parse_date, parse_timestamp, to_iso, utc_now

logger = logging.getLogger(__name__)

GenerationResult = Tuple[List[Notification], Dict[str, str]]


def episode_key(prefix: str, product_id) -> str:
    return f"{prefix}-{product_id}"


def _quantity(product: Dict) -> Optional[int]:
    try:
        return max(int(product.get('quantity')), 0)
    except (TypeError, ValueError):
        return None


def _ensure_episode(timestamps: Dict[str, str], key: str, now: datetime) -> Tuple[str, datetime]:
    """Return the episode's stored timestamp, starting the episode if needed"""
    stamp = timestamps.get(key)
    started = parse_timestamp(stamp)
    if started is None:
        stamp = to_iso(now)
        started = parse_timestamp(stamp)
        timestamps[key] = stamp
    return stamp, started


# =====================================================
# STOCK
# =====================================================

def _stock_notifications(product: Dict, settings: NotificationSettings, read_ids: set,
                         timestamps: Dict[str, str], now: datetime) -> List[Notification]:
    quantity = _quantity(product)
    if quantity is None:
        return []

    product_id = product['id']
    name = product.get('name', f"Product {product_id}")
    threshold = settings.low_stock_threshold
    low_key = episode_key(LOW_STOCK_PREFIX, product_id)
    no_stock_key = episode_key(NO_STOCK_PREFIX, product_id)

    # Episode resolution
    if quantity > threshold:
        timestamps.pop(low_key, None)
    if quantity == 0:
        timestamps.pop(low_key, None)
    if quantity > 0:
        timestamps.pop(no_stock_key, None)

    if 0 < quantity <= threshold:
        stamp, started = _ensure_episode(timestamps, low_key, now)
        notification_id = f"{low_key}-{stamp}"
        return [Notification(
            id=notification_id,
            category=CATEGORY_LOW_STOCK,
            icon_type=ICON_LOW_STOCK,
            icon_bg=BG_YELLOW,
            title="Low Stock",
            description=f"{name} has only {quantity} items left.",
            read=notification_id in read_ids,
            path=product_path(product_id),
            created_at=started,
            product_id=product_id,
        )]

    if quantity == 0:
        stamp, started = _ensure_episode(timestamps, no_stock_key, now)
        notification_id = f"{no_stock_key}-{stamp}"
        return [Notification(
            id=notification_id,
            category=CATEGORY_NO_STOCK,
            icon_type=ICON_NO_STOCK,
            icon_bg=BG_RED,
            title="Out of Stock",
            description=f"{name} is out of stock.",
            read=notification_id in read_ids,
            path=product_path(product_id),
            created_at=started,
            product_id=product_id,
        )]

    return []


# =====================================================
# EXPIRY
# =====================================================

def _expiry_notifications(product: Dict, settings: NotificationSettings, read_ids: set,
                          timestamps: Dict[str, str], now: datetime) -> List[Notification]:
    product_id = product['id']
    name = product.get('name', f"Product {product_id}")
    soon_key = episode_key(EXPIRING_SOON_PREFIX, product_id)

    expiry = parse_date(product.get('expireDate'))
    if expiry is None:
        timestamps.pop(soon_key, None)
        return []

    expires_at = expiry_moment(expiry)
    if expires_at < now:
        timestamps.pop(soon_key, None)
        notification_id = episode_key(EXPIRED_PREFIX, product_id)
        return [Notification(
            id=notification_id,
            category=CATEGORY_EXPIRED,
            icon_type=ICON_EXPIRED,
            icon_bg=BG_RED,
            title="Expired Medicine",
            description=f"{name} has expired.",
            read=notification_id in read_ids,
            path=product_path(product_id),
            created_at=expires_at,
            product_id=product_id,
        )]

    days_left = days_until(expiry, now)
    if not (settings.enable_expiring_soon and 0 < days_left <= settings.expiring_soon_days):
        timestamps.pop(soon_key, None)
        return []

    _, first_seen = _ensure_episode(timestamps, soon_key, now)
    return [Notification(
        id=soon_key,
        category=CATEGORY_EXPIRING_SOON,
        icon_type=ICON_EXPIRING_SOON,
        icon_bg=BG_ORANGE,
        title="Expiring Soon",
        description=f"{name} expires in {days_left} day(s).",
        read=soon_key in read_ids,
        path=product_path(product_id),
        created_at=first_seen,
        product_id=product_id,
    )]


# =====================================================
# FEED
# =====================================================

EPISODE_PREFIXES = (NO_STOCK_PREFIX, EXPIRING_SOON_PREFIX, LOW_STOCK_PREFIX)


def _prune_episodes(timestamps: Dict[str, str], live_ids: set):
    """Drop episodes of products no longer in the snapshot (deleted or archived)"""
    for key in list(timestamps):
        for prefix in EPISODE_PREFIXES:
            if key.startswith(f"{prefix}-"):
                if key[len(prefix) + 1:] not in live_ids:
                    del timestamps[key]
                break


def generate(
    products: Iterable[Dict],
    settings: NotificationSettings,
    read_ids: Iterable[str],
    dismissed_ids: Iterable[str],
    episode_timestamps: Dict[str, str],
    system_notifications: Iterable[Dict] = (),
    now: Optional[datetime] = None,
) -> GenerationResult:
    """
    Build the active notification feed

    Args:
        products: product rows ({id, name, quantity, expireDate, status});
            Archived rows are ignored
        settings: thresholds in effect
        read_ids: ids already read
        dismissed_ids: ids filtered out of the result
        episode_timestamps: episode key -> ISO timestamp; not modified. Keys of
            products missing from `products` are left out of the result
        system_notifications: stored system notification records
        now: evaluation time (defaults to the current UTC time)

    Returns:
        (notifications newest first, updated episode timestamp map)
    """
    now = now or utc_now()
    read = set(read_ids)
    dismissed = set(dismissed_ids)
    timestamps = dict(episode_timestamps or {})

    generated: List[Notification] = []
    for record in system_notifications:
        notification = Notification.from_system_record(record, read=record.get('id') in read)
        if notification is None:
            logger.warning("Skipping malformed system notification: %r", record)
            continue
        generated.append(notification)

    live_ids = set()
    for product in products:
        if product.get('id') is None or product.get('status') == STATUS_ARCHIVED:
            continue
        live_ids.add(str(product['id']))
        generated.extend(_stock_notifications(product, settings, read, timestamps, now))
        generated.extend(_expiry_notifications(product, settings, read, timestamps, now))
    _prune_episodes(timestamps, live_ids)

    generated.sort(key=lambda n: n.created_at, reverse=True)

    feed: List[Notification] = []
    seen = set()
    for notification in generated:
        if notification.id in dismissed or notification.id in seen:
            continue
        seen.add(notification.id)
        feed.append(notification)

    return feed, timestamps
