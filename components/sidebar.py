"""
Sidebar Navigation Component
Pharmacy POS

VERSION: 2.0.0
CHANGES FROM V1.0.0:
- Notification bell with unread badge
- Fixed page list (no per-user module permissions)
"""
import streamlit as st

from modules.notifications import get_notification_center

PAGES = [
    ('dashboard', '🏠', 'Dashboard'),
    ('notifications', '🔔', 'Notifications'),
]


def get_current_page() -> str:
    return st.session_state.get('current_page', 'dashboard')


def set_current_page(page_key: str):
    st.session_state.current_page = page_key


def unread_badge(count: int) -> str:
    """Badge text for the bell; capped at 99+"""
    if count <= 0:
        return ""
    return "99+" if count > 99 else str(count)


def show_sidebar():
    """Display sidebar navigation"""

    center = get_notification_center()
    badge = unread_badge(center.unread_count)

    with st.sidebar:
        # App title/logo
        st.markdown("# 💊 Pharmacy POS")
        st.markdown("---")

        current_page = get_current_page()

        for page_key, icon, name in PAGES:
            label = f"{icon} {name}"
            if page_key == 'notifications' and badge:
                label = f"{label} ({badge})"

            if st.button(label, key=f"nav_{page_key}", width='stretch',
                         type="primary" if current_page == page_key else "secondary"):
                set_current_page(page_key)
                st.rerun()

        if center.error:
            st.markdown("---")
            st.warning("Notifications may be out of date.")
