"""
Notification Center
Keeps the derived notification feed current and applies user actions

A refresh signal (product data change, bookkeeping broadcast, explicit
refresh) runs one generator pass: fetch products, read bookkeeping,
generate, write back episode timestamps. Passes never overlap. A signal
arriving while a pass or a mutation is in progress is folded into one
follow-up pass. Centers sharing a store (one per browser session) run the
bookkeeping part of their passes inside the store's transaction, so one
session never overwrites episodes another session just started.

Centers subscribe with bound methods, which the store and change feed hold
weakly; a center dropped with its session stops refreshing.

If the product fetch fails the previous feed is kept and `error` is set.
"""

import logging
import threading
from contextlib import contextmanager
from datetime import tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple

from .constants import CATEGORIES, CATEGORY_ALL
from .generator import generate
from .models import Notification
from .storage import BookkeepingStore
from .utils import utc_now

logger = logging.getLogger(__name__)

ProductFetcher = Callable[[], Tuple[Optional[List[Dict]], Optional[str]]]
Listener = Callable[["NotificationCenter"], None]


class NotificationCenter:
    """
    Aggregates generated notifications into the views the UI needs

    Views:
        notifications: active feed (not dismissed, muted categories hidden)
        all_notifications: everything generated, dismissed included
        unread_count, categories, category_counts, grouped_by_date
    """

    def __init__(
        self,
        store: BookkeepingStore,
        fetch_products: ProductFetcher,
        change_feed=None,
        tz: Optional[tzinfo] = None,
        clock: Callable = utc_now,
    ):
        self.store = store
        self._fetch_products = fetch_products
        self._tz = tz
        self._clock = clock

        self._all: List[Notification] = []
        self._dismissed: set = set()
        self._muted: set = set(store.get_muted_categories())
        self.loading = True
        self.error: Optional[str] = None

        self._lock = threading.Lock()
        self._pending = False
        self._listeners: List[Listener] = []

        self._unsubscribers = [store.subscribe(self._on_storage_change)]
        if change_feed is not None:
            self._unsubscribers.append(change_feed.subscribe(self._on_data_change))

    def close(self):
        """Detach from the bookkeeping store and the product change feed"""
        for unsubscribe in self._unsubscribers:
            unsubscribe()
        self._unsubscribers = []

    # =====================================================
    # REFRESH LOOP
    # =====================================================

    def refresh(self):
        """Request a generator pass; coalesces with any pass in progress"""
        self._pending = True
        self._drain()

    def _drain(self):
        while self._pending:
            if not self._lock.acquire(blocking=False):
                # The lock holder picks the pending request up
                return
            try:
                while self._pending:
                    self._pending = False
                    self._run_pass()
            finally:
                self._lock.release()

    def _on_storage_change(self, key: str):
        self.refresh()

    def _on_data_change(self, event_type: str, row: Any = None):
        logger.debug("Product change (%s); refreshing notifications", event_type)
        self.refresh()

    def _run_pass(self):
        try:
            products, error = self._fetch_products()
        except Exception as e:
            logger.exception("Product fetch raised")
            products, error = None, str(e)

        if error:
            logger.warning("Keeping previous notifications, product fetch failed: %s", error)
            self.error = str(error)
            self.loading = False
            return

        with self.store.transaction():
            timestamps = self.store.get_episode_timestamps()
            notifications, updated = generate(
                products or [],
                settings=self.store.get_settings(),
                read_ids=self.store.get_read_ids(),
                dismissed_ids=(),
                episode_timestamps=timestamps,
                system_notifications=self.store.get_system_notifications(),
                now=self._clock(),
            )
            if updated != timestamps:
                self.store.set_episode_timestamps(updated)
            dismissed = set(self.store.get_dismissed_ids())
            muted = set(self.store.get_muted_categories())

        self._all = notifications
        self._dismissed = dismissed
        self._muted = muted
        self.error = None
        self.loading = False
        self._notify_listeners()

    # =====================================================
    # LISTENERS
    # =====================================================

    def add_listener(self, callback: Listener) -> Callable[[], None]:
        """Call `callback(center)` after every successful pass"""
        self._listeners.append(callback)

        def remove():
            if callback in self._listeners:
                self._listeners.remove(callback)

        return remove

    def _notify_listeners(self):
        for callback in list(self._listeners):
            try:
                callback(self)
            except Exception:
                logger.exception("Notification listener failed")

    # =====================================================
    # VIEWS
    # =====================================================

    @property
    def all_notifications(self) -> List[Notification]:
        return list(self._all)

    @property
    def active_notifications(self) -> List[Notification]:
        """Everything not dismissed, muted categories included"""
        return [n for n in self._all if n.id not in self._dismissed]

    @property
    def notifications(self) -> List[Notification]:
        return [n for n in self.active_notifications if n.category not in self._muted]

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self.notifications if not n.read)

    @property
    def categories(self) -> List[str]:
        return list(CATEGORIES)

    @property
    def muted_categories(self) -> List[str]:
        return [c for c in CATEGORIES if c in self._muted]

    @property
    def category_counts(self) -> Dict[str, int]:
        active = self.active_notifications
        counts = {category: 0 for category in CATEGORIES}
        for notification in active:
            counts[notification.category] = counts.get(notification.category, 0) + 1
        counts[CATEGORY_ALL] = len(active)
        return counts

    @property
    def grouped_by_date(self) -> List[Dict[str, Any]]:
        """Full history bucketed by local calendar date, newest first"""
        return self.history_by_date()

    def history_by_date(self, category: str = CATEGORY_ALL) -> List[Dict[str, Any]]:
        """History groups restricted to one category; days left empty are dropped"""
        groups: Dict[Any, List[Notification]] = {}
        for notification in self._all:
            if category != CATEGORY_ALL and notification.category != category:
                continue
            day = notification.created_at.astimezone(self._tz).date()
            groups.setdefault(day, []).append(notification)
        return [{'date': day, 'items': items} for day, items in groups.items()]

    def is_dismissed(self, notification_id: str) -> bool:
        return notification_id in self._dismissed

    def is_muted(self, category: str) -> bool:
        return category in self._muted

    def view(self, category: Optional[str] = None, query: str = "") -> List[Notification]:
        """
        Filter the active feed

        category None is the default view (muted categories hidden); "All"
        shows every active notification, muted ones included; any other
        value selects that category.
        """
        if category is None:
            items = self.notifications
        elif category == CATEGORY_ALL:
            items = self.active_notifications
        else:
            items = [n for n in self.active_notifications if n.category == category]
        return [n for n in items if n.matches(query)]

    def search(self, text: str, category: Optional[str] = None) -> List[Notification]:
        return self.view(category, query=text)

    def _find(self, notification_id: str) -> Optional[Notification]:
        for notification in self._all:
            if notification.id == notification_id:
                return notification
        return None

    # =====================================================
    # MUTATIONS
    # =====================================================

    @contextmanager
    def _mutating(self):
        # Broadcasts fired while the lock is held only mark a pass pending
        with self._lock:
            yield
        self._drain()

    def _mark_read(self, targets: Iterable[Notification]):
        ids = [n.id for n in targets]
        if not ids:
            return
        self.store.add_read_ids(ids)
        marked = set(ids)
        self._all = [n.with_read() if n.id in marked else n for n in self._all]

    def _dismiss(self, targets: Iterable[Notification]):
        targets = list(targets)
        if not targets:
            return
        ids = [n.id for n in targets]
        self.store.add_dismissed_ids(ids)
        self._dismissed.update(ids)

        # A dismissed system notification must not come back on the next pass
        system_ids = {n.id for n in targets if n.is_system}
        if system_ids:
            self.store.remove_system_notifications(system_ids)
            self._all = [n for n in self._all if n.id not in system_ids]

    def mark_as_read(self, notification_id: str):
        """Mark one notification read; reading a System notification clears it"""
        with self._mutating():
            target = self._find(notification_id)
            if target is None:
                return
            self._mark_read([target])
            if target.is_system:
                self._dismiss([target])

    def mark_category_as_read(self, category: Optional[str] = None, query: str = ""):
        """
        Mark read every notification `view(category, query)` shows

        category None is the default view, so muted categories are untouched;
        "All" reaches muted categories too.
        """
        with self._mutating():
            targets = self.view(category, query)
            self._mark_read(targets)
            self._dismiss(n for n in targets if n.is_system)

    def mark_all_as_read(self):
        """Mark the currently visible feed read"""
        self.mark_category_as_read(None)

    def dismiss(self, notification_id: str):
        with self._mutating():
            target = self._find(notification_id)
            if target is None:
                return
            self._dismiss([target])

    def clear_category(self, category: Optional[str] = None, query: str = ""):
        """Dismiss every notification `view(category, query)` shows"""
        with self._mutating():
            self._dismiss(self.view(category, query))

    def mute(self, category: str):
        """Hide a category from the default view; generation is unaffected"""
        if category not in CATEGORIES or category == CATEGORY_ALL:
            logger.warning("Ignoring mute for unknown category %r", category)
            return
        with self._mutating(), self.store.transaction():
            muted = self.store.get_muted_categories()
            if category not in muted:
                self.store.set_muted_categories(muted + [category])
            self._muted.add(category)

    def unmute(self, category: str):
        with self._mutating(), self.store.transaction():
            muted = self.store.get_muted_categories()
            if category in muted:
                self.store.set_muted_categories([c for c in muted if c != category])
            self._muted.discard(category)
