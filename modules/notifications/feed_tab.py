"""
Feed Tab
Active notifications with category tabs, search, and read/dismiss actions
"""

from html import escape

import streamlit as st

from .center import NotificationCenter
from .constants import CATEGORY_ALL, CATEGORY_COLORS, DEFAULT_ICON_EMOJI, ICON_EMOJIS
from .models import Notification
from .utils import format_relative_time


def show_feed_tab(center: NotificationCenter):
    """Show the active notification feed"""

    st.markdown("### 🔔 Notifications")

    if center.error:
        st.error(f"⚠️ Could not refresh notifications: {center.error}")

    counts = center.category_counts
    muted = center.muted_categories

    col1, col2 = st.columns([2, 3])
    with col1:
        category = st.selectbox(
            "Category",
            options=center.categories,
            format_func=lambda c: f"{c} ({counts.get(c, 0)})" + (" 🔕" if c in muted else ""),
            key="notif_category",
        )
    with col2:
        query = st.text_input("Search", placeholder="Search title or description...",
                              key="notif_search")

    # "All" in the selector is the default view; muted categories stay hidden there
    selected = None if category == CATEGORY_ALL else category
    items = center.search(query, category=selected)

    # Bulk actions only touch what the list below shows
    action_cols = st.columns(3)
    with action_cols[0]:
        if st.button("✅ Mark All as Read", width='stretch', key="notif_mark_all"):
            center.mark_category_as_read(selected, query)
            st.rerun()
    with action_cols[1]:
        if st.button("🧹 Clear", width='stretch', key="notif_clear",
                     help="Dismiss every notification listed below"):
            center.clear_category(selected, query)
            st.rerun()
    with action_cols[2]:
        if category != CATEGORY_ALL:
            label = "🔔 Unmute" if center.is_muted(category) else "🔕 Mute"
            if st.button(label, width='stretch', key="notif_mute"):
                if center.is_muted(category):
                    center.unmute(category)
                else:
                    center.mute(category)
                st.rerun()

    st.markdown("---")

    if center.loading:
        st.info("Loading...")
        return

    if not items:
        st.success("✅ No new notifications")
        return

    for notification in items:
        show_notification_row(center, notification)


def notification_markup(notification: Notification, now=None) -> str:
    """HTML body of a feed row; the title links to the notification's page"""
    icon = ICON_EMOJIS.get(notification.icon_type, DEFAULT_ICON_EMOJI)
    color = CATEGORY_COLORS.get(notification.category, "#60A5FA")
    weight = "normal" if notification.read else "bold"

    title = f"{icon} {escape(notification.title)}"
    if notification.path:
        title = f"<a href='{escape(notification.path, quote=True)}' target='_self'>{title}</a>"

    return (
        f"<div style='border-left: 4px solid {color}; padding-left: 8px;'>"
        f"<span style='font-weight: {weight};'>{title}</span><br>"
        f"{escape(notification.description)}<br>"
        f"<small>{format_relative_time(notification.created_at, now=now)}</small></div>"
    )


def show_notification_row(center: NotificationCenter, notification: Notification):
    """Display one notification with its actions"""
    col1, col2, col3 = st.columns([6, 1, 1])
    with col1:
        st.markdown(notification_markup(notification), unsafe_allow_html=True)
    with col2:
        if not notification.read and st.button("👁️", key=f"read_{notification.id}", help="Mark as read"):
            center.mark_as_read(notification.id)
            st.rerun()
    with col3:
        if st.button("✖️", key=f"dismiss_{notification.id}", help="Dismiss"):
            center.dismiss(notification.id)
            st.rerun()
