"""
Local Bookkeeping Store
Durable key-value persistence for notification state

Holds read markers, dismissed ids, per-episode timestamps, user settings,
muted categories and the pending system notifications. Every value is a
JSON document under a fixed key; setters overwrite the whole value, callers
read-modify-write.

Views register with subscribe() to hear about changes other views made
(the broadcast signal). Bound-method subscribers are held weakly, so a view
that is no longer referenced stops receiving broadcasts. sync() picks up
writes made by other processes sharing the same storage directory; last
write wins.

transaction() holds the store lock across a read-modify-write so views
sharing one store in a process never interleave their updates.
"""

import inspect
import json
import logging
import os
import tempfile
import threading
import weakref
from contextlib import contextmanager
from typing import Any, Callable, Dict, Iterable, List, Optional, Tuple, Union

from .constants import (
    KEY_DISMISSED_IDS,
    KEY_EPISODE_TIMESTAMPS,
    KEY_MUTED_CATEGORIES,
    KEY_READ_IDS,
    KEY_SETTINGS,
    KEY_SYSTEM_NOTIFICATIONS,
)
from .models import NotificationSettings

logger = logging.getLogger(__name__)

Subscriber = Callable[[str], None]


def callback_ref(callback: Callable) -> Callable[[], Optional[Callable]]:
    """Weak reference for bound methods, a plain strong holder otherwise"""
    if inspect.ismethod(callback):
        return weakref.WeakMethod(callback)
    return lambda: callback


# =====================================================
# BACKENDS
# =====================================================

class MemoryBackend:
    """In-process backend; values are kept as raw JSON text"""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._data: Dict[str, str] = dict(initial or {})
        self._version = 0

    def read(self, key: str) -> Optional[str]:
        return self._data.get(key)

    def write(self, key: str, text: str):
        self._data[key] = text
        self._version += 1

    def version(self) -> int:
        return self._version


class JsonFileBackend:
    """One JSON file per key inside a directory, replaced atomically on write"""

    def __init__(self, directory: str):
        self.directory = directory

    def _path(self, key: str) -> str:
        return os.path.join(self.directory, f"{key}.json")

    def read(self, key: str) -> Optional[str]:
        try:
            with open(self._path(key), encoding="utf-8") as handle:
                return handle.read()
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as e:
            logger.warning("Could not read %s: %s", self._path(key), e)
            return None

    def write(self, key: str, text: str):
        os.makedirs(self.directory, exist_ok=True)
        fd, tmp_path = tempfile.mkstemp(dir=self.directory, prefix=f".{key}.", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(text)
            os.replace(tmp_path, self._path(key))
        except BaseException:
            if os.path.exists(tmp_path):
                os.remove(tmp_path)
            raise

    def version(self) -> Tuple:
        """Modification stamps of every stored key"""
        try:
            names = sorted(n for n in os.listdir(self.directory) if n.endswith(".json"))
        except FileNotFoundError:
            return ()
        stamps = []
        for name in names:
            try:
                stamps.append((name, os.stat(os.path.join(self.directory, name)).st_mtime_ns))
            except FileNotFoundError:
                continue
        return tuple(stamps)


# =====================================================
# STORE
# =====================================================

class BookkeepingStore:
    """
    Typed get/set access to notification bookkeeping

    get_* never raises: a missing, unparsable or mistyped value yields the
    empty default for that concern.
    """

    def __init__(self, backend=None):
        self.backend = backend if backend is not None else MemoryBackend()
        self._subscribers: List[Callable[[], Optional[Subscriber]]] = []
        self._lock = threading.RLock()
        self._seen_version = self.backend.version()

    @contextmanager
    def transaction(self):
        """Hold the store lock; reentrant, broadcasts are not deferred"""
        with self._lock:
            yield self

    # ----- raw access -----

    def _get_json(self, key: str, expected_type: type, default: Any) -> Any:
        raw = self.backend.read(key)
        if raw is None:
            return default
        try:
            value = json.loads(raw)
        except (TypeError, ValueError) as e:
            logger.warning("Discarding unparsable bookkeeping value for %s: %s", key, e)
            return default
        if not isinstance(value, expected_type):
            logger.warning("Discarding bookkeeping value for %s: expected %s, got %s",
                           key, expected_type.__name__, type(value).__name__)
            return default
        return value

    def _set_json(self, key: str, value: Any, broadcast: bool = True):
        with self._lock:
            self.backend.write(key, json.dumps(value))
            self._seen_version = self.backend.version()
        if broadcast:
            self.broadcast(key)

    # ----- read / dismissed ids -----

    def get_read_ids(self) -> List[str]:
        return [str(i) for i in self._get_json(KEY_READ_IDS, list, [])]

    def set_read_ids(self, ids: Iterable[str]):
        self._set_json(KEY_READ_IDS, list(ids))

    def get_dismissed_ids(self) -> List[str]:
        return [str(i) for i in self._get_json(KEY_DISMISSED_IDS, list, [])]

    def set_dismissed_ids(self, ids: Iterable[str]):
        self._set_json(KEY_DISMISSED_IDS, list(ids))

    def _append_ids(self, key: str, ids: Iterable[str]) -> List[str]:
        with self._lock:
            current = [str(i) for i in self._get_json(key, list, [])]
            known = set(current)
            added = []
            for i in ids:
                if i not in known:
                    known.add(i)
                    added.append(i)
            if added:
                self._set_json(key, current + added, broadcast=False)
        if added:
            self.broadcast(key)
        return added

    def add_read_ids(self, ids: Iterable[str]) -> List[str]:
        """Append ids not already marked read; returns the ones added"""
        return self._append_ids(KEY_READ_IDS, ids)

    def add_dismissed_ids(self, ids: Iterable[str]) -> List[str]:
        """Append ids not already dismissed; returns the ones added"""
        return self._append_ids(KEY_DISMISSED_IDS, ids)

    # ----- episode timestamps -----

    def get_episode_timestamps(self) -> Dict[str, str]:
        stored = self._get_json(KEY_EPISODE_TIMESTAMPS, dict, {})
        return {str(k): v for k, v in stored.items() if isinstance(v, str)}

    def set_episode_timestamps(self, timestamps: Dict[str, str]):
        # Generator write-back; other views re-derive the same map themselves
        self._set_json(KEY_EPISODE_TIMESTAMPS, dict(timestamps), broadcast=False)

    # ----- settings -----

    def get_settings(self) -> NotificationSettings:
        return NotificationSettings.from_dict(self._get_json(KEY_SETTINGS, dict, {}))

    def set_settings(self, settings: Union[NotificationSettings, Dict[str, Any]]):
        if not isinstance(settings, NotificationSettings):
            settings = NotificationSettings.from_dict(settings)
        self._set_json(KEY_SETTINGS, settings.to_dict())

    # ----- muted categories -----

    def get_muted_categories(self) -> List[str]:
        return [str(c) for c in self._get_json(KEY_MUTED_CATEGORIES, list, [])]

    def set_muted_categories(self, categories: Iterable[str]):
        self._set_json(KEY_MUTED_CATEGORIES, list(categories))

    # ----- system notifications -----

    def get_system_notifications(self) -> List[Dict[str, Any]]:
        stored = self._get_json(KEY_SYSTEM_NOTIFICATIONS, list, [])
        return [record for record in stored if isinstance(record, dict)]

    def set_system_notifications(self, records: Iterable[Dict[str, Any]]):
        self._set_json(KEY_SYSTEM_NOTIFICATIONS, list(records))

    def add_system_notification(self, record: Dict[str, Any]) -> bool:
        """
        Insert a system notification unless its id is already stored

        Returns True when the record was added (and the change broadcast).
        """
        if not record.get('id'):
            raise ValueError("System notification requires an id")

        with self._lock:
            current = self.get_system_notifications()
            if any(existing.get('id') == record['id'] for existing in current):
                return False
            self._set_json(KEY_SYSTEM_NOTIFICATIONS, [dict(record), *current], broadcast=False)
        self.broadcast(KEY_SYSTEM_NOTIFICATIONS)
        return True

    def remove_system_notifications(self, ids: Iterable[str]) -> int:
        """Delete the given system notification records; returns how many went"""
        targets = set(ids)
        with self._lock:
            current = self.get_system_notifications()
            remaining = [record for record in current if record.get('id') not in targets]
            removed = len(current) - len(remaining)
            if removed:
                self._set_json(KEY_SYSTEM_NOTIFICATIONS, remaining, broadcast=False)
        if removed:
            self.broadcast(KEY_SYSTEM_NOTIFICATIONS)
        return removed

    def remove_system_notification(self, notification_id: str) -> bool:
        return self.remove_system_notifications([notification_id]) > 0

    # ----- broadcast -----

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """Register a change callback; returns a function that unsubscribes it"""
        ref = callback_ref(callback)
        self._subscribers.append(ref)

        def unsubscribe():
            if ref in self._subscribers:
                self._subscribers.remove(ref)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return sum(1 for ref in self._subscribers if ref() is not None)

    def broadcast(self, key: str):
        for ref in list(self._subscribers):
            callback = ref()
            if callback is None:
                # Subscriber was garbage collected
                if ref in self._subscribers:
                    self._subscribers.remove(ref)
                continue
            try:
                callback(key)
            except Exception:
                logger.exception("Bookkeeping subscriber failed for %s", key)

    def sync(self) -> bool:
        """
        Broadcast once if another process changed the backing storage

        Returns True when a change was detected.
        """
        with self._lock:
            current = self.backend.version()
            if current == self._seen_version:
                return False
            self._seen_version = current
        logger.debug("Bookkeeping changed outside this process")
        self.broadcast("*")
        return True
