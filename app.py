"""
Pharmacy POS - Main Entry Point
Inventory alerts and notification center

VERSION: 2.0.0
DATE: October 19, 2026
CHANGES FROM V1.1.0:
- Notification center replaces the module dashboards
- Logging configured from LOG_LEVEL
"""
import logging
import os
import sys

import streamlit as st

from components.sidebar import get_current_page, show_sidebar, set_current_page
from modules.notifications import get_notification_center, show as show_notifications
from modules.notifications.feed_tab import show_notification_row

# Configure logging
log_level = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=getattr(logging, log_level, logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    handlers=[logging.StreamHandler(sys.stdout)]
)

# Page configuration
st.set_page_config(
    page_title="Pharmacy POS",
    page_icon="💊",
    layout="wide",
    initial_sidebar_state="expanded"
)


def show_dashboard():
    """Alert summary with the most recent unread notifications"""
    center = get_notification_center()

    st.markdown("## 🏠 Dashboard")
    st.markdown("---")

    if center.error:
        st.error(f"⚠️ Could not refresh notifications: {center.error}")

    counts = center.category_counts
    cols = st.columns(len(center.categories) - 1)
    for col, category in zip(cols, center.categories[1:]):
        with col:
            st.metric(category, counts.get(category, 0))

    st.markdown("### 🔔 Latest Unread")
    unread = [n for n in center.notifications if not n.read][:5]
    if not unread:
        st.success("✅ You're all caught up")
    for notification in unread:
        show_notification_row(center, notification)

    if st.button("View all notifications", key="dash_view_all"):
        set_current_page('notifications')
        st.rerun()


def main():
    """Main application logic"""

    # Display sidebar navigation
    show_sidebar()

    # Route to appropriate page
    if get_current_page() == 'notifications':
        show_notifications()
    else:
        show_dashboard()


if __name__ == "__main__":
    main()
