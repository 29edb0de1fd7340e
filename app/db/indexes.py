"""
app/db/indexes.py

Purpose: Database index management

- Creates unique and performance indexes
- Ensures fast lookups and data integrity
- TTL index for expiring notifications
"""

from motor.motor_asyncio import AsyncIOMotorDatabase
from pymongo import ASCENDING, DESCENDING

from app.core.logging import get_logger
from utils import constants as c

logger = get_logger(__name__)


async def create_indexes(db: AsyncIOMotorDatabase):
    """
    Creates all necessary database indexes for optimal performance.
    This function is idempotent - safe to run multiple times.
    """
    try:
        logger.info("Creating database indexes...")

        # ==============================================
        # USERS
        # ==============================================
        users = db[c.USERS]
        await users.create_index("email", unique=True, name="email_unique")
        await users.create_index([("role", ASCENDING), ("isActive", ASCENDING)], name="role_active_idx")
        await users.create_index("assignedBy", name="assigned_by_idx")
        await users.create_index("assignedSalesman", name="assigned_salesman_idx")
        await users.create_index("city", name="user_city_idx")

        await db[c.ADMINS].create_index("email", unique=True, name="admin_email_unique")

        # ==============================================
        # CATALOG
        # ==============================================
        products = db[c.PRODUCTS]
        await products.create_index("category", name="product_category_idx")
        await products.create_index([("createdAt", DESCENDING)], name="product_created_idx")

        categories = db[c.CATEGORIES]
        await categories.create_index("isActive", name="category_active_idx")
        await categories.create_index("sortOrder", name="category_sort_idx")
        # Only active categories must have unique names
        await categories.create_index(
            [("name", ASCENDING), ("isActive", ASCENDING)],
            unique=True,
            partialFilterExpression={"isActive": True},
            name="category_active_name_unique"
        )

        await db[c.CITIES].create_index("name", unique=True, name="city_name_unique")

        # ==============================================
        # ORDERS
        # ==============================================
        await db[c.ORDERS].create_index([("orderDate", DESCENDING)], name="order_date_idx")
        await db[c.ORDERS].create_index("status", name="order_status_idx")

        shopkeeper_orders = db[c.SHOPKEEPER_ORDERS]
        await shopkeeper_orders.create_index(
            [("shopkeeper", ASCENDING), ("orderDate", DESCENDING)],
            name="shopkeeper_orders_idx"
        )
        await shopkeeper_orders.create_index(
            [("salesman", ASCENDING), ("orderDate", DESCENDING)],
            name="salesman_orders_idx"
        )
        await shopkeeper_orders.create_index(
            [("status", ASCENDING), ("paymentStatus", ASCENDING)],
            name="order_status_payment_idx"
        )

        # ==============================================
        # RECOVERIES / RECEIPTS
        # ==============================================
        recoveries = db[c.RECOVERIES]
        await recoveries.create_index(
            [("salesman", ASCENDING), ("recoveryDate", DESCENDING)],
            name="recovery_salesman_idx"
        )
        await recoveries.create_index(
            [("shopkeeper", ASCENDING), ("recoveryDate", DESCENDING)],
            name="recovery_shopkeeper_idx"
        )

        receipts = db[c.RECEIPTS]
        await receipts.create_index("receiptNumber", unique=True, name="receipt_number_unique")
        await receipts.create_index(
            [("receiptType", ASCENDING), ("printedAt", DESCENDING)],
            name="receipt_type_idx"
        )
        await receipts.create_index(
            [("shopkeeper", ASCENDING), ("salesman", ASCENDING)],
            name="receipt_parties_idx"
        )

        # ==============================================
        # NOTIFICATIONS
        # ==============================================
        notifications = db[c.NOTIFICATIONS]
        await notifications.create_index(
            [("type", ASCENDING), ("createdAt", DESCENDING)],
            name="notification_type_idx"
        )
        await notifications.create_index(
            [("targetUsers", ASCENDING), ("status", ASCENDING)],
            name="notification_target_users_idx"
        )
        await notifications.create_index(
            [("targetRoles", ASCENDING), ("status", ASCENDING)],
            name="notification_target_roles_idx"
        )
        await notifications.create_index("readBy.user", name="notification_read_by_idx")
        await notifications.create_index(
            "expiresAt",
            expireAfterSeconds=0,  # Delete when expiresAt is reached
            name="notification_expiry_ttl_idx"
        )

        # ==============================================
        # ASSIGNMENTS / DISTRIBUTION / SALES
        # ==============================================
        assignments = db[c.ASSIGNMENTS]
        await assignments.create_index(
            [("salesmanId", ASCENDING), ("shopkeeperId", ASCENDING), ("isActive", ASCENDING)],
            name="assignment_pair_idx"
        )
        await assignments.create_index(
            [("shopkeeperId", ASCENDING), ("isActive", ASCENDING)],
            name="assignment_shopkeeper_idx"
        )

        await db[c.DISTRIBUTIONS].create_index(
            [("salesman", ASCENDING), ("createdAt", DESCENDING)],
            name="distribution_salesman_idx"
        )
        await db[c.SALES_RECORDS].create_index(
            [("salesman", ASCENDING), ("saleDate", DESCENDING)],
            name="sales_salesman_idx"
        )

        logger.info("✅ All database indexes created successfully")

    except Exception as e:
        logger.error(f"Failed to create indexes: {str(e)}", exc_info=True)
        raise
