"""
Constants for the Notification Center Module
Centralized configuration and shared constants
"""

# =====================================================
# CACHE TTL (Time To Live) Settings
# =====================================================

CACHE_TTL_PRODUCTS = 30  # 30 seconds for the product snapshot


# =====================================================
# CATEGORIES
# =====================================================

CATEGORY_ALL = "All"
CATEGORY_LOW_STOCK = "Low Stock"
CATEGORY_NO_STOCK = "No Stock"
CATEGORY_EXPIRED = "Expired"
CATEGORY_EXPIRING_SOON = "Expiring Soon"
CATEGORY_SYSTEM = "System"

CATEGORIES = [
    CATEGORY_ALL,
    CATEGORY_LOW_STOCK,
    CATEGORY_NO_STOCK,
    CATEGORY_EXPIRED,
    CATEGORY_EXPIRING_SOON,
    CATEGORY_SYSTEM,
]


# =====================================================
# PRODUCT STATUS VALUES
# =====================================================

STATUS_AVAILABLE = "Available"
STATUS_UNAVAILABLE = "Unavailable"
STATUS_ARCHIVED = "Archived"


# =====================================================
# EPISODE KEY PREFIXES
# =====================================================

LOW_STOCK_PREFIX = "low"
NO_STOCK_PREFIX = "no-stock"
EXPIRED_PREFIX = "expired"
EXPIRING_SOON_PREFIX = "exp-soon"


# =====================================================
# BOOKKEEPING STORAGE KEYS
# =====================================================

KEY_READ_IDS = "read_notification_ids"
KEY_DISMISSED_IDS = "dismissed_notification_ids"
KEY_EPISODE_TIMESTAMPS = "episode_timestamps"
KEY_SETTINGS = "notification_settings"
KEY_SYSTEM_NOTIFICATIONS = "system_notifications"
KEY_MUTED_CATEGORIES = "muted_categories"

STORAGE_KEYS = [
    KEY_READ_IDS,
    KEY_DISMISSED_IDS,
    KEY_EPISODE_TIMESTAMPS,
    KEY_SETTINGS,
    KEY_SYSTEM_NOTIFICATIONS,
    KEY_MUTED_CATEGORIES,
]


# =====================================================
# SETTINGS DEFAULTS
# =====================================================

DEFAULT_LOW_STOCK_THRESHOLD = 10
DEFAULT_EXPIRING_SOON_DAYS = 30
DEFAULT_ENABLE_EXPIRING_SOON = True


# =====================================================
# DEEP LINKS
# =====================================================

PATH_MANAGEMENT = "/management"
PATH_ARCHIVED = "/archived"


def product_path(product_id) -> str:
    """Deep link that highlights a product in the management table"""
    return f"{PATH_MANAGEMENT}?highlight={product_id}"


# =====================================================
# ICONS AND BADGES
# =====================================================

ICON_LOW_STOCK = "lowStock"
ICON_NO_STOCK = "noStock"
ICON_EXPIRED = "expired"
ICON_EXPIRING_SOON = "expiringSoon"
ICON_UPLOAD = "upload"
ICON_ARCHIVE = "archive"
ICON_UNARCHIVE = "unarchive"
ICON_DELETE = "delete"
ICON_PRICE_CHANGE = "price_change"

ICON_EMOJIS = {
    ICON_LOW_STOCK: "⚠️",
    ICON_NO_STOCK: "📭",
    ICON_EXPIRED: "⛔",
    ICON_EXPIRING_SOON: "⏳",
    ICON_UPLOAD: "📤",
    ICON_ARCHIVE: "🗄️",
    ICON_UNARCHIVE: "🗄️",
    ICON_DELETE: "🗑️",
    ICON_PRICE_CHANGE: "🏷️",
}
DEFAULT_ICON_EMOJI = "🔔"

CATEGORY_COLORS = {
    CATEGORY_LOW_STOCK: "#FACC15",       # Yellow
    CATEGORY_NO_STOCK: "#EF4444",        # Red
    CATEGORY_EXPIRED: "#EF4444",         # Red
    CATEGORY_EXPIRING_SOON: "#FB923C",   # Orange
    CATEGORY_SYSTEM: "#D1D5DB",          # Gray
}

BG_YELLOW = "bg-yellow-100"
BG_RED = "bg-red-100"
BG_ORANGE = "bg-orange-100"
BG_GREEN = "bg-green-100"
BG_PURPLE = "bg-purple-100"
BG_BLUE = "bg-blue-100"


# =====================================================
# EXPORT
# =====================================================

HISTORY_EXPORT_COLS = [
    'created_at', 'category', 'title', 'description', 'read', 'dismissed', 'path'
]
