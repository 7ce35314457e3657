"""Tests for the products table access layer with a mocked Supabase client."""

import gc
from unittest.mock import MagicMock, Mock

import pytest

from config.database import Database
from db.db_products import ChangeFeed, ProductDB


@pytest.fixture
def client():
    client = MagicMock(name="supabase")
    Database.set_client(client)
    yield client
    Database.reset_client()


def test_get_products_excludes_archived(client):
    rows = [{'id': 1, 'name': "Amoxicillin", 'quantity': 4, 'expireDate': None, 'status': "Available"}]
    query = client.table.return_value.select.return_value.neq.return_value
    query.execute.return_value.data = rows

    assert ProductDB.get_products() == (rows, None)
    client.table.assert_called_with('products')
    client.table.return_value.select.assert_called_once_with('id, name, quantity, expireDate, status')
    client.table.return_value.select.return_value.neq.assert_called_once_with('status', 'Archived')


def test_get_products_empty_result(client):
    client.table.return_value.select.return_value.neq.return_value.execute.return_value.data = None
    assert ProductDB.get_products() == ([], None)


def test_get_products_error(client):
    client.table.side_effect = Exception("connection refused")
    assert ProductDB.get_products() == (None, "Error fetching products: connection refused")


def test_get_product_not_found(client):
    client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = []
    product, error = ProductDB.get_product(99)
    assert product is None
    assert error == "Product 99 not found"


def test_update_product_returns_previous_row(client):
    previous = {'id': 7, 'name': "Biogesic", 'price': 5.0}
    client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [previous]

    assert ProductDB.update_product(7, {'price': 6.0}) == (previous, None)
    client.table.return_value.update.assert_called_once_with({'price': 6.0})
    client.table.return_value.update.return_value.eq.assert_called_once_with('id', 7)


def test_update_product_error(client):
    client.table.return_value.select.return_value.eq.return_value.execute.return_value.data = [{'id': 7}]
    client.table.return_value.update.side_effect = Exception("denied")

    previous, error = ProductDB.update_product(7, {'price': 6.0})
    assert previous is None
    assert error == "Error updating product: denied"


def test_archive_and_unarchive_set_status(client):
    assert ProductDB.archive_products([1, 2]) == (2, None)
    client.table.return_value.update.assert_called_with({'status': 'Archived'})
    client.table.return_value.update.return_value.in_.assert_called_with('id', [1, 2])

    assert ProductDB.unarchive_products([1]) == (1, None)
    client.table.return_value.update.assert_called_with({'status': 'Available'})


def test_status_change_with_no_ids_skips_query(client):
    assert ProductDB.archive_products([]) == (0, None)
    client.table.assert_not_called()


def test_delete_products(client):
    assert ProductDB.delete_products([4]) == (1, None)
    client.table.return_value.delete.return_value.in_.assert_called_once_with('id', [4])


def test_delete_products_error(client):
    client.table.return_value.delete.side_effect = Exception("fk violation")
    assert ProductDB.delete_products([4]) == (None, "Error deleting products: fk violation")


def test_change_feed_delivers_and_isolates_failures():
    feed = ChangeFeed()
    failing = Mock(side_effect=RuntimeError("boom"))
    healthy = Mock()
    feed.subscribe(failing)
    unsubscribe = feed.subscribe(healthy)

    feed.emit('UPDATE', {'id': 1})
    healthy.assert_called_once_with('UPDATE', {'id': 1})

    unsubscribe()
    feed.emit('DELETE')
    healthy.assert_called_once()


class Subscriber:
    def __init__(self):
        self.events = []

    def on_change(self, event_type, row=None):
        self.events.append(event_type)


def test_change_feed_drops_collected_subscribers():
    feed = ChangeFeed()
    subscriber = Subscriber()
    feed.subscribe(subscriber.on_change)
    feed.emit('INSERT')
    assert subscriber.events == ['INSERT']

    del subscriber
    gc.collect()
    feed.emit('UPDATE')

    assert feed.subscriber_count == 0
