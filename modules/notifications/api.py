"""
Public API for the Notification Center Module
Functions for cross-module communication (e.g., management → notifications)

VERSION HISTORY:
1.0.0 - Initial version
      - get_notification_center(): session notification center
      - add_system_notification(): record an import/archive/price event
      - archive_products() / unarchive_products() / delete_products() /
        update_product(): product writes that raise system notifications
      - notify_csv_import(): for the CSV importer

IMPORTANT: This is a PYTHON MODULE API, not a web API
- Other Python modules can import and use these functions
- Example usage: from modules.notifications import archive_products
"""

import logging
from datetime import datetime
from typing import Any, Dict, List, Optional

import streamlit as st

from config.database import get_notification_storage_dir
from db.db_products import ProductDB, product_changes

from .center import NotificationCenter
from .constants import (
    BG_BLUE,
    BG_GREEN,
    BG_PURPLE,
    BG_RED,
    CACHE_TTL_PRODUCTS,
    CATEGORY_SYSTEM,
    ICON_ARCHIVE,
    ICON_DELETE,
    ICON_PRICE_CHANGE,
    ICON_UNARCHIVE,
    ICON_UPLOAD,
    PATH_ARCHIVED,
    PATH_MANAGEMENT,
    product_path,
)
from .storage import BookkeepingStore, JsonFileBackend
from .utils import to_iso, utc_now

logger = logging.getLogger(__name__)

SESSION_CENTER_KEY = 'notification_center'


class ProductFetchError(Exception):
    """Product snapshot could not be loaded"""


# =====================================================
# CACHED DATA LOADERS
# =====================================================

@st.cache_data(ttl=CACHE_TTL_PRODUCTS, show_spinner=False)
def get_products_cached() -> List[Dict]:
    """Cached product snapshot; failures raise so they are never cached"""
    products, error = ProductDB.get_products()
    if error:
        raise ProductFetchError(error)
    return products


def fetch_products():
    """Product fetcher for the notification center: (data, error)"""
    try:
        return get_products_cached(), None
    except ProductFetchError as e:
        return None, str(e)


def clear_products_cache():
    get_products_cached.clear()


# =====================================================
# PUBLIC API - NOTIFICATION STATE
# =====================================================

@st.cache_resource(show_spinner=False)
def get_bookkeeping_store() -> BookkeepingStore:
    """Process-wide bookkeeping store backed by the configured directory"""
    directory = get_notification_storage_dir()
    logger.info("Notification bookkeeping stored in %s", directory)
    return BookkeepingStore(JsonFileBackend(directory))


def get_notification_center() -> NotificationCenter:
    """
    PUBLIC API: Notification center for the current session

    Created and refreshed on first use, then kept in st.session_state.
    Every call also picks up bookkeeping written by other sessions.
    """
    center = st.session_state.get(SESSION_CENTER_KEY)
    if center is None:
        center = NotificationCenter(
            store=get_bookkeeping_store(),
            fetch_products=fetch_products,
            change_feed=product_changes,
        )
        st.session_state[SESSION_CENTER_KEY] = center
        center.refresh()
    else:
        center.store.sync()
    return center


# =====================================================
# PUBLIC API - SYSTEM NOTIFICATIONS
# =====================================================

def build_system_notification(
    kind: str,
    title: str,
    description: str,
    path: str,
    icon_bg: str,
    icon_type: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Assemble a system notification record with a "<kind>-<epoch ms>" id"""
    now = now or utc_now()
    return {
        'id': f"{kind}-{int(now.timestamp() * 1000)}",
        'icon_type': icon_type or kind,
        'icon_bg': icon_bg,
        'title': title,
        'category': CATEGORY_SYSTEM,
        'description': description,
        'created_at': to_iso(now),
        'path': path,
    }


def add_system_notification(record: Dict[str, Any], store: Optional[BookkeepingStore] = None) -> bool:
    """
    PUBLIC API: Record a system notification

    Repeated calls with the same id are ignored.

    Returns:
        True if the notification was added
    """
    store = store or get_bookkeeping_store()
    added = store.add_system_notification(record)
    if not added:
        logger.info("System notification %s already recorded", record.get('id'))
    return added


def notify_csv_import(products_count: int, variants_count: int = 0,
                      store: Optional[BookkeepingStore] = None) -> bool:
    """
    PUBLIC API: Announce a finished CSV import

    Example:
        from modules.notifications import notify_csv_import

        notify_csv_import(products_count=120, variants_count=35)
    """
    description = f"{products_count} products were successfully imported"
    if variants_count > 0:
        description += f" with {variants_count} pricing variants"
    return add_system_notification(build_system_notification(
        kind='csv',
        icon_type=ICON_UPLOAD,
        title="CSV Import Successful",
        description=f"{description}.",
        path=PATH_MANAGEMENT,
        icon_bg=BG_GREEN,
    ), store)


def notify_price_change(product_id: int, name: str, old_price: Any, new_price: Any,
                        store: Optional[BookkeepingStore] = None) -> bool:
    return add_system_notification(build_system_notification(
        kind=f"price-{product_id}",
        icon_type=ICON_PRICE_CHANGE,
        title="Price Updated",
        description=f"Price for {name} changed from ₱{old_price} to ₱{new_price}.",
        path=product_path(product_id),
        icon_bg=BG_BLUE,
    ), store)


# =====================================================
# PUBLIC API - PRODUCT WRITES
# =====================================================

def _after_write(event_type: str, row: Any = None):
    clear_products_cache()
    product_changes.emit(event_type, row)


def archive_products(product_ids: List[int], store: Optional[BookkeepingStore] = None) -> Dict:
    """
    PUBLIC API: Archive products and record a system notification

    Returns:
        {'success': bool, 'message': str}
    """
    count, error = ProductDB.archive_products(product_ids)
    if error:
        return {'success': False, 'message': error}

    _after_write('UPDATE', {'ids': list(product_ids), 'status': 'Archived'})
    add_system_notification(build_system_notification(
        kind=ICON_ARCHIVE,
        title="Products Archived",
        description=f"{count} product(s) were archived.",
        path=PATH_ARCHIVED,
        icon_bg=BG_PURPLE,
    ), store)
    return {'success': True, 'message': f"{count} product(s) successfully archived."}


def unarchive_products(product_ids: List[int], store: Optional[BookkeepingStore] = None) -> Dict:
    """PUBLIC API: Restore archived products and record a system notification"""
    count, error = ProductDB.unarchive_products(product_ids)
    if error:
        return {'success': False, 'message': error}

    _after_write('UPDATE', {'ids': list(product_ids), 'status': 'Available'})
    add_system_notification(build_system_notification(
        kind=ICON_UNARCHIVE,
        title="Products Restored",
        description=f"{count} product(s) were restored from the archive.",
        path=PATH_MANAGEMENT,
        icon_bg=BG_GREEN,
    ), store)
    return {'success': True, 'message': f"{count} product(s) successfully unarchived."}


def delete_products(product_ids: List[int], store: Optional[BookkeepingStore] = None) -> Dict:
    """PUBLIC API: Permanently delete products and record a system notification"""
    count, error = ProductDB.delete_products(product_ids)
    if error:
        return {'success': False, 'message': error}

    _after_write('DELETE', {'ids': list(product_ids)})
    add_system_notification(build_system_notification(
        kind=ICON_DELETE,
        title="Products Deleted",
        description=f"{count} product(s) were permanently deleted.",
        path=PATH_ARCHIVED,
        icon_bg=BG_RED,
    ), store)
    return {'success': True, 'message': f"{count} product(s) permanently deleted."}


def update_product(product_id: int, updates: Dict, store: Optional[BookkeepingStore] = None) -> Dict:
    """
    PUBLIC API: Update a product; a changed price raises a system notification

    Example:
        from modules.notifications import update_product

        result = update_product(7, {'price': 12.5, 'quantity': 40})
        if not result['success']:
            st.error(result['message'])
    """
    previous, error = ProductDB.update_product(product_id, updates)
    if error:
        return {'success': False, 'message': error}

    _after_write('UPDATE', {'id': product_id, **updates})

    if 'price' in updates and previous.get('price') != updates['price']:
        notify_price_change(
            product_id,
            updates.get('name', previous.get('name', f"Product {product_id}")),
            previous.get('price'),
            updates['price'],
            store,
        )
    return {'success': True, 'message': "Product updated."}
