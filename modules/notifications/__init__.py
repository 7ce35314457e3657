"""
Notification Center Module
Low stock, out of stock, expiry, and system notifications for the pharmacy

VERSION HISTORY:
1.0.0 - Notification center
      - One generator shared by the header bell and the history page
      - Episode tracking keeps read/dismissed state stable while a
        condition lasts
      - Local bookkeeping with cross-session refresh
      - Mute is display-only

PUBLIC API for cross-module communication:
- get_notification_center(): Session notification center
- add_system_notification(): Record an ad-hoc system event
- notify_csv_import(): Announce a finished CSV import
- archive_products() / unarchive_products() / delete_products(): Product
  status changes that raise system notifications
- update_product(): Product update; a price change raises a notification

Example usage from another module (e.g., management):
    from modules.notifications import archive_products

    result = archive_products([3, 7])
    if result['success']:
        st.success(result['message'])
"""

import streamlit as st

from .api import (
    add_system_notification,
    archive_products,
    delete_products,
    get_notification_center,
    notify_csv_import,
    unarchive_products,
    update_product,
)
from .feed_tab import show_feed_tab
from .history_tab import show_history_tab
from .settings_tab import show_settings_tab

# Version
__version__ = "1.0.0"

# Public API list (for documentation)
__all__ = [
    'show',
    'get_notification_center',
    'add_system_notification',
    'notify_csv_import',
    'archive_products',
    'unarchive_products',
    'delete_products',
    'update_product',
]


def show():
    """Main entry point for the Notification Center module"""

    center = get_notification_center()

    # Module header
    st.title("🔔 Notification Center")
    st.caption(f"{center.unread_count} unread")
    st.markdown("---")

    tabs = st.tabs([
        "🔔 Feed",
        "📜 History",
        "⚙️ Settings",
    ])

    with tabs[0]:
        show_feed_tab(center)
    with tabs[1]:
        show_history_tab(center)
    with tabs[2]:
        show_settings_tab(center)
