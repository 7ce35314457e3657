"""
Product Database Operations
Pharmacy products table access for the notification center

VERSION HISTORY:
1.0.0 - Product snapshot and write operations - 19/10/26
      KEY METHODS:
      - get_products() - non-archived snapshot used to derive notifications
      - update_product() - field updates, returns the previous row
      - archive_products() / unarchive_products() - status changes
      - delete_products() - permanent removal of archived products
      CHANGE FEED:
      - product_changes.emit(event_type, row) tells subscribers to re-derive

All methods return tuples instead of raising: (data, None) on success and
(None, error_message) on failure.
"""
import inspect
import logging
import weakref
from typing import Any, Callable, Dict, List, Optional, Tuple

from config.database import Database

logger = logging.getLogger(__name__)

PRODUCTS_TABLE = 'products'
SNAPSHOT_COLUMNS = 'id, name, quantity, expireDate, status'

ChangeCallback = Callable[[str, Any], None]


# =====================================================
# CHANGE FEED
# =====================================================

class ChangeFeed:
    """
    Data-change signal for the products table

    Bound-method subscribers are held weakly: a listener that is garbage
    collected drops out on the next emit.
    """

    def __init__(self):
        self._subscribers: List[Callable[[], Optional[ChangeCallback]]] = []

    def subscribe(self, callback: ChangeCallback) -> Callable[[], None]:
        if inspect.ismethod(callback):
            ref = weakref.WeakMethod(callback)
        else:
            ref = lambda: callback  # noqa: E731
        self._subscribers.append(ref)

        def unsubscribe():
            if ref in self._subscribers:
                self._subscribers.remove(ref)

        return unsubscribe

    @property
    def subscriber_count(self) -> int:
        return sum(1 for ref in self._subscribers if ref() is not None)

    def emit(self, event_type: str, row: Any = None):
        for ref in list(self._subscribers):
            callback = ref()
            if callback is None:
                if ref in self._subscribers:
                    self._subscribers.remove(ref)
                continue
            try:
                callback(event_type, row)
            except Exception:
                logger.exception("Product change subscriber failed for %s", event_type)


product_changes = ChangeFeed()


# =====================================================
# PRODUCTS
# =====================================================

class ProductDB:
    """Products table operations"""

    @staticmethod
    def get_products() -> Tuple[Optional[List[Dict]], Optional[str]]:
        """Get the non-archived product snapshot"""
        try:
            db = Database.get_client()

            response = db.table(PRODUCTS_TABLE) \
                .select(SNAPSHOT_COLUMNS) \
                .neq('status', 'Archived') \
                .execute()

            return (response.data if response.data else []), None

        except Exception as e:
            logger.error("Error fetching products: %s", e)
            return None, f"Error fetching products: {str(e)}"

    @staticmethod
    def get_product(product_id: int) -> Tuple[Optional[Dict], Optional[str]]:
        """Get a single product row"""
        try:
            db = Database.get_client()

            response = db.table(PRODUCTS_TABLE) \
                .select('*') \
                .eq('id', product_id) \
                .execute()

            if not response.data:
                return None, f"Product {product_id} not found"
            return response.data[0], None

        except Exception as e:
            logger.error("Error fetching product %s: %s", product_id, e)
            return None, f"Error fetching product: {str(e)}"

    @staticmethod
    def update_product(product_id: int, updates: Dict) -> Tuple[Optional[Dict], Optional[str]]:
        """
        Update product fields

        Returns:
            (previous row, None) on success, (None, error_message) otherwise
        """
        previous, error = ProductDB.get_product(product_id)
        if error:
            return None, error

        try:
            db = Database.get_client()

            db.table(PRODUCTS_TABLE) \
                .update(updates) \
                .eq('id', product_id) \
                .execute()

            return previous, None

        except Exception as e:
            logger.error("Error updating product %s: %s", product_id, e)
            return None, f"Error updating product: {str(e)}"

    @staticmethod
    def _set_status(product_ids: List[int], status: str) -> Tuple[Optional[int], Optional[str]]:
        if not product_ids:
            return 0, None
        try:
            db = Database.get_client()

            db.table(PRODUCTS_TABLE) \
                .update({'status': status}) \
                .in_('id', product_ids) \
                .execute()

            return len(product_ids), None

        except Exception as e:
            logger.error("Error setting status %s on %s: %s", status, product_ids, e)
            return None, f"Error updating product status: {str(e)}"

    @staticmethod
    def archive_products(product_ids: List[int]) -> Tuple[Optional[int], Optional[str]]:
        """Move products to the archive"""
        return ProductDB._set_status(product_ids, 'Archived')

    @staticmethod
    def unarchive_products(product_ids: List[int]) -> Tuple[Optional[int], Optional[str]]:
        """Restore archived products"""
        return ProductDB._set_status(product_ids, 'Available')

    @staticmethod
    def delete_products(product_ids: List[int]) -> Tuple[Optional[int], Optional[str]]:
        """Permanently delete products"""
        if not product_ids:
            return 0, None
        try:
            db = Database.get_client()

            db.table(PRODUCTS_TABLE) \
                .delete() \
                .in_('id', product_ids) \
                .execute()

            return len(product_ids), None

        except Exception as e:
            logger.error("Error deleting products %s: %s", product_ids, e)
            return None, f"Error deleting products: {str(e)}"
