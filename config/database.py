"""
Database configuration and connection utilities for Supabase
Pharmacy POS - Notification Center

VERSION HISTORY:
2.0.0 - Notification center configuration - 19/10/26
      ADDITIONS:
      - get_notification_storage_dir() for local bookkeeping location
      CHANGES:
      - Client reads anon key when no service role key is configured
      - Table access moved to db/db_products.py
1.0.0 - Database singleton pattern
"""
import logging
import os
from typing import Optional

import streamlit as st
from supabase import create_client, Client

logger = logging.getLogger(__name__)

DEFAULT_STORAGE_DIR = ".notifications"
STORAGE_DIR_ENV = "NOTIFICATIONS_STORAGE_DIR"


# ============================================================
# DATABASE CLIENT
# ============================================================

class Database:
    """Handles the shared Supabase client"""

    _instance: Optional[Client] = None

    @classmethod
    def get_client(cls) -> Client:
        """Get or create Supabase client (singleton pattern)"""
        if cls._instance is None:
            try:
                secrets = st.secrets["supabase"]
                key = secrets.get("service_role_key") or secrets["anon_key"]
                cls._instance = create_client(secrets["url"], key)
            except Exception as e:
                logger.exception("Supabase client could not be created")
                st.error(f"Failed to connect to database: {str(e)}")
                st.stop()
        return cls._instance

    @classmethod
    def set_client(cls, client: Optional[Client]):
        """Install a prepared client (used by tests and scripts)"""
        cls._instance = client

    @classmethod
    def reset_client(cls):
        """Reset the client (useful for testing or reconnecting)"""
        cls._instance = None


# ============================================================
# NOTIFICATION STORAGE
# ============================================================

def get_notification_storage_dir() -> str:
    """
    Directory holding the notification bookkeeping files

    Lookup order: st.secrets["notifications"]["storage_dir"],
    the NOTIFICATIONS_STORAGE_DIR environment variable, then ".notifications".
    """
    try:
        configured = st.secrets["notifications"]["storage_dir"]
        if configured:
            return str(configured)
    except Exception:
        # no secrets file, or no [notifications] section
        pass
    return os.getenv(STORAGE_DIR_ENV, DEFAULT_STORAGE_DIR)
