"""
Settings Tab
Thresholds for inventory alerts and muted categories
"""

import streamlit as st

from .center import NotificationCenter
from .constants import CATEGORIES, CATEGORY_ALL
from .models import NotificationSettings


def show_settings_tab(center: NotificationCenter):
    """Edit notification settings"""

    st.markdown("### ⚙️ Notification Settings")
    st.caption("Configure thresholds for inventory alerts and expiry notifications.")

    current = center.store.get_settings()

    with st.form("notification_settings_form"):
        low_stock_threshold = st.number_input(
            "Low stock threshold",
            min_value=0,
            value=current.low_stock_threshold,
            step=1,
            help="Trigger low stock alerts when quantity is equal to or below this value.",
        )
        enable_expiring_soon = st.checkbox(
            "Enable expiring soon alerts",
            value=current.enable_expiring_soon,
            help="Show notifications for medicines that will expire within the selected window.",
        )
        expiring_soon_days = st.number_input(
            "Expiring soon window (days)",
            min_value=0,
            value=current.expiring_soon_days,
            step=1,
            help="Items expiring within this many days will be flagged.",
        )
        muted = st.multiselect(
            "Muted categories",
            options=[c for c in CATEGORIES if c != CATEGORY_ALL],
            default=center.muted_categories,
            help="Muted categories are hidden from the feed but keep being tracked.",
        )

        submitted = st.form_submit_button("💾 Save settings", type="primary")

    if submitted:
        center.store.set_settings(NotificationSettings.from_dict({
            'low_stock_threshold': low_stock_threshold,
            'expiring_soon_days': expiring_soon_days,
            'enable_expiring_soon': enable_expiring_soon,
        }))
        for category in CATEGORIES:
            if category in muted and not center.is_muted(category):
                center.mute(category)
            elif category not in muted and center.is_muted(category):
                center.unmute(category)
        st.success("✅ Saved")
