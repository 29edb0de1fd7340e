"""
utils/constants.py

Purpose: Centralized static values

- Role groups used by route guards
- Collection names
- Default CORS origins and pagination limits
- Reusable user-facing messages

(Prevents hardcoding across the codebase)
"""

# ============================================================
# ROLES
# ============================================================

ROLE_SUPERADMIN = "superadmin"
ROLE_ADMIN = "admin"
ROLE_SALESMAN = "salesman"
ROLE_SHOPKEEPER = "shopkeeper"

ADMIN_ROLES = (ROLE_ADMIN, ROLE_SUPERADMIN)
STAFF_ROLES = (ROLE_SALESMAN, ROLE_ADMIN, ROLE_SUPERADMIN)
ORDER_PLACER_ROLES = (ROLE_SHOPKEEPER, ROLE_SALESMAN, ROLE_ADMIN, ROLE_SUPERADMIN)


# ============================================================
# COLLECTIONS
# ============================================================

USERS = "users"
ADMINS = "admins"
PRODUCTS = "products"
ORDERS = "orders"
SHOPKEEPER_ORDERS = "shopkeeperorders"
RECOVERIES = "recoveries"
RECEIPTS = "receipts"
NOTIFICATIONS = "notifications"
CATEGORIES = "categories"
CITIES = "cities"
ASSIGNMENTS = "shopsalesmanassignments"
DISTRIBUTIONS = "distributions"
SALES_RECORDS = "salesrecords"
COUNTERS = "counters"


# ============================================================
# HTTP
# ============================================================

DEFAULT_CORS_ORIGINS = [
    "http://localhost:5173",
    "http://localhost:3000",
]

DEFAULT_PAGE_SIZE = 10
MAX_PAGE_SIZE = 100

MAX_IMAGE_BYTES = 50 * 1024 * 1024
MAX_IMAGES_PER_UPLOAD = 5
ALLOWED_IMAGE_FORMATS = ("jpg", "jpeg", "png", "webp")


# ============================================================
# MESSAGES
# ============================================================

ACCESS_TOKEN_REQUIRED = "Access token required"
INVALID_TOKEN = "Invalid or expired token"
INVALID_USER = "Invalid or inactive user"
INVALID_CREDENTIALS = "Invalid email or password"
SUPERADMIN_REQUIRED = "Access denied. Super admin required."
ADMIN_REQUIRED = "Access denied. Admin or super admin required."
ACCESS_DENIED = "Access denied"
