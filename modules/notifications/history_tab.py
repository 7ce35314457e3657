"""
History Tab
Complete log of inventory and system notifications, grouped by day
"""

from datetime import datetime

import streamlit as st

from .center import NotificationCenter
from .utils import build_history_frame, format_date_heading, generate_history_excel


def show_history_tab(center: NotificationCenter):
    """Show every generated notification, dismissed ones included"""

    st.markdown("### 📜 Notification History")
    st.caption("A complete log of all system and inventory alerts.")

    category = st.selectbox("Category", options=center.categories, key="notif_history_category")

    groups = center.history_by_date(category)
    if not groups:
        st.info("No notifications yet. When you get notifications, they'll show up here.")
        return

    shown = [n for group in groups for n in group['items']]
    dismissed_ids = [n.id for n in shown if center.is_dismissed(n.id)]

    st.download_button(
        label="📥 Download Excel",
        data=generate_history_excel(shown, dismissed_ids),
        file_name=f"notifications_{datetime.now().strftime('%Y%m%d_%H%M')}.xlsx",
        mime="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
        key="notif_history_export",
    )

    for group in groups:
        st.markdown(f"#### {format_date_heading(group['date'])}")
        df = build_history_frame(group['items'], dismissed_ids)
        df['created_at'] = df['created_at'].str[-5:]
        df.rename(columns={
            'created_at': 'Time',
            'category': 'Category',
            'title': 'Title',
            'description': 'Details',
            'read': 'Read',
            'dismissed': 'Dismissed',
            'path': 'Link',
        }, inplace=True)
        st.dataframe(df, width='stretch', hide_index=True)
