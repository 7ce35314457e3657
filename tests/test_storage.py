"""Tests for the local bookkeeping store and its backends."""

import gc
import json
import threading
from unittest.mock import Mock

import pytest

from conftest import system_record
from modules.notifications.constants import (
    KEY_DISMISSED_IDS,
    KEY_EPISODE_TIMESTAMPS,
    KEY_READ_IDS,
    KEY_SETTINGS,
    KEY_SYSTEM_NOTIFICATIONS,
)
from modules.notifications.models import NotificationSettings
from modules.notifications.storage import BookkeepingStore, JsonFileBackend, MemoryBackend


def test_empty_store_returns_defaults(store):
    assert store.get_read_ids() == []
    assert store.get_dismissed_ids() == []
    assert store.get_episode_timestamps() == {}
    assert store.get_system_notifications() == []
    assert store.get_muted_categories() == []
    assert store.get_settings() == NotificationSettings(10, 30, True)


@pytest.mark.parametrize("key, getter, default", [
    (KEY_READ_IDS, "get_read_ids", []),
    (KEY_DISMISSED_IDS, "get_dismissed_ids", []),
    (KEY_EPISODE_TIMESTAMPS, "get_episode_timestamps", {}),
    (KEY_SYSTEM_NOTIFICATIONS, "get_system_notifications", []),
])
@pytest.mark.parametrize("raw", ["{not json", '"a string"', "42"])
def test_corrupt_values_read_as_empty(key, getter, default, raw):
    store = BookkeepingStore(MemoryBackend({key: raw}))
    assert getattr(store, getter)() == default


def test_corrupt_settings_fall_back_to_defaults():
    store = BookkeepingStore(MemoryBackend({KEY_SETTINGS: "[1, 2"}))
    assert store.get_settings() == NotificationSettings()


def test_settings_merge_over_defaults():
    store = BookkeepingStore(MemoryBackend({KEY_SETTINGS: json.dumps({'low_stock_threshold': 4})}))
    assert store.get_settings() == NotificationSettings(low_stock_threshold=4)


def test_set_settings_coerces_values(store):
    store.set_settings({'low_stock_threshold': "abc", 'expiring_soon_days': -3,
                        'enable_expiring_soon': False})
    assert store.get_settings() == NotificationSettings(0, 0, False)


def test_set_settings_broadcasts(store):
    listener = Mock()
    store.subscribe(listener)
    store.set_settings(NotificationSettings(low_stock_threshold=5))
    listener.assert_called_once_with(KEY_SETTINGS)


def test_episode_timestamp_write_is_silent(store):
    listener = Mock()
    store.subscribe(listener)
    store.set_episode_timestamps({'low-1': '2026-10-19T12:00:00+00:00'})
    listener.assert_not_called()
    assert store.get_episode_timestamps() == {'low-1': '2026-10-19T12:00:00+00:00'}


def test_add_system_notification_is_idempotent(store):
    listener = Mock()
    store.subscribe(listener)

    assert store.add_system_notification(system_record("csv-1")) is True
    assert store.add_system_notification(system_record("csv-1", title="Retry")) is False
    assert store.add_system_notification(system_record("csv-2")) is True

    records = store.get_system_notifications()
    assert [r['id'] for r in records] == ["csv-2", "csv-1"]
    assert records[1]['title'] == "Products Archived"
    assert listener.call_count == 2


def test_add_system_notification_requires_id(store):
    with pytest.raises(ValueError):
        store.add_system_notification({'title': "No id"})


def test_remove_system_notifications(store):
    for record_id in ("a", "b", "c"):
        store.add_system_notification(system_record(record_id))

    assert store.remove_system_notifications(["a", "c", "missing"]) == 2
    assert [r['id'] for r in store.get_system_notifications()] == ["b"]
    assert store.remove_system_notification("missing") is False


def test_unsubscribe_stops_callbacks(store):
    listener = Mock()
    unsubscribe = store.subscribe(listener)
    unsubscribe()
    store.set_read_ids(["x"])
    listener.assert_not_called()


def test_failing_subscriber_does_not_block_others(store):
    failing = Mock(side_effect=RuntimeError("boom"))
    healthy = Mock()
    store.subscribe(failing)
    store.subscribe(healthy)

    store.set_dismissed_ids(["x"])

    healthy.assert_called_once_with(KEY_DISMISSED_IDS)


def test_sync_detects_outside_writes():
    backend = MemoryBackend()
    store = BookkeepingStore(backend)
    listener = Mock()
    store.subscribe(listener)

    store.set_read_ids(["mine"])
    listener.reset_mock()
    assert store.sync() is False

    backend.write(KEY_READ_IDS, json.dumps(["theirs"]))
    assert store.sync() is True
    assert store.sync() is False
    listener.assert_called_once_with("*")


# ---------------------------------------------------------------------------
# File backend
# ---------------------------------------------------------------------------


def test_file_backend_round_trip(tmp_path):
    store = BookkeepingStore(JsonFileBackend(str(tmp_path / "state")))
    store.set_read_ids(["low-1-x"])
    store.add_system_notification(system_record("csv-1"))

    reopened = BookkeepingStore(JsonFileBackend(str(tmp_path / "state")))
    assert reopened.get_read_ids() == ["low-1-x"]
    assert reopened.get_system_notifications()[0]['id'] == "csv-1"
    assert not list((tmp_path / "state").glob("*.tmp"))


def test_file_backend_missing_directory(tmp_path):
    backend = JsonFileBackend(str(tmp_path / "absent"))
    assert backend.read(KEY_READ_IDS) is None
    assert backend.version() == ()


def test_file_backend_corrupt_file(tmp_path):
    (tmp_path / f"{KEY_READ_IDS}.json").write_text("[oops", encoding="utf-8")
    store = BookkeepingStore(JsonFileBackend(str(tmp_path)))
    assert store.get_read_ids() == []


def test_file_backend_sync_between_stores(tmp_path):
    first = BookkeepingStore(JsonFileBackend(str(tmp_path)))
    second = BookkeepingStore(JsonFileBackend(str(tmp_path)))

    first.set_dismissed_ids(["expired-3"])

    assert second.sync() is True
    assert second.get_dismissed_ids() == ["expired-3"]


def test_add_read_ids_appends_new_ids_once(store):
    listener = Mock()
    store.subscribe(listener)
    store.set_read_ids(["a"])
    listener.reset_mock()

    assert store.add_read_ids(["a", "b", "b", "c"]) == ["b", "c"]
    assert store.get_read_ids() == ["a", "b", "c"]
    listener.assert_called_once_with(KEY_READ_IDS)

    listener.reset_mock()
    assert store.add_read_ids(["c"]) == []
    listener.assert_not_called()


def test_add_dismissed_ids(store):
    store.add_dismissed_ids(["x"])
    store.add_dismissed_ids(["x", "y"])
    assert store.get_dismissed_ids() == ["x", "y"]


def test_transaction_holds_off_other_threads(store):
    with store.transaction():
        worker = threading.Thread(target=store.add_read_ids, args=(["a"],))
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
        assert store.get_read_ids() == []
    worker.join(timeout=2)
    assert store.get_read_ids() == ["a"]


class Listener:
    def __init__(self):
        self.keys = []

    def on_change(self, key):
        self.keys.append(key)


def test_bound_method_subscribers_are_held_weakly(store):
    listener = Listener()
    store.subscribe(listener.on_change)
    store.set_read_ids(["a"])
    assert listener.keys == [KEY_READ_IDS]

    del listener
    gc.collect()

    assert store.subscriber_count == 0
    store.set_read_ids(["b"])
