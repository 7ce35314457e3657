"""Shared fixtures for the notification center tests."""

from datetime import datetime, timedelta, timezone

import pytest

from modules.notifications.center import NotificationCenter
from modules.notifications.storage import BookkeepingStore, MemoryBackend

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=timezone.utc)


def product(product_id, quantity=50, expire_date=None, status="Available", name=None):
    return {
        'id': product_id,
        'name': name or f"Medicine {product_id}",
        'quantity': quantity,
        'expireDate': expire_date,
        'status': status,
    }


def system_record(record_id, minutes_ago=60, title="Products Archived"):
    created = NOW - timedelta(minutes=minutes_ago)
    return {
        'id': record_id,
        'icon_type': 'archive',
        'icon_bg': 'bg-purple-100',
        'title': title,
        'category': 'System',
        'description': "2 product(s) were archived.",
        'created_at': created.isoformat(),
        'path': '/archived',
    }


class Clock:
    """Settable clock"""

    def __init__(self, now=NOW):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)
        return self.now


class ProductSource:
    """Product fetcher returning (data, error) like ProductDB.get_products"""

    def __init__(self, products=None):
        self.products = list(products or [])
        self.error = None
        self.calls = 0

    def __call__(self):
        self.calls += 1
        if self.error:
            return None, self.error
        return [dict(p) for p in self.products], None

    def set_quantity(self, product_id, quantity):
        for p in self.products:
            if p['id'] == product_id:
                p['quantity'] = quantity


@pytest.fixture
def store():
    return BookkeepingStore(MemoryBackend())


@pytest.fixture
def clock():
    return Clock()


@pytest.fixture
def source():
    return ProductSource()


@pytest.fixture
def make_center(store, source, clock):
    centers = []

    def _make(change_feed=None):
        center = NotificationCenter(store, source, change_feed=change_feed,
                                    tz=timezone.utc, clock=clock)
        center.refresh()
        centers.append(center)
        return center

    yield _make
    for center in centers:
        center.close()
