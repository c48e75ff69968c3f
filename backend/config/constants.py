# backend/config/constants.py

# -----------------------------
# SELLER LIFECYCLE
# -----------------------------

# admin-facing status -> stored seller status
ADMIN_STATUS_MAP = {
    "active": "approved",
    "inactive": "inactive",
    "suspended": "suspended",
}

# -----------------------------
# PRODUCTS
# -----------------------------

DEFAULT_PRODUCT_STOCK = 100
MAX_IMAGE_BYTES = 5 * 1024 * 1024     # 5MB

# -----------------------------
# ORDERS
# -----------------------------

ORDER_STATUSES = ("pending", "processing", "shipped", "delivered", "cancelled")

# -----------------------------
# PAGINATION
# -----------------------------

DEFAULT_PAGE_LIMIT = 10
MAX_PAGE_LIMIT = 100

# -----------------------------
# RATE LIMITS
# -----------------------------

OTP_SEND_MAX_REQUESTS = 5
OTP_SEND_WINDOW_SECONDS = 600         # 5 OTPs per 10 minutes
