"""
app/main.py

Purpose: Application entry point

- Initializes FastAPI app
- Loads configuration and logging
- Registers API routes under /api
- No business logic should be written here
- Manages application lifecycle (startup/shutdown)
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import time

from app.core.config import settings, validate_settings
from app.core.errors import add_exception_handlers
from app.core.logging import setup_logging, get_logger
from app.db.mongo import connect_to_mongo, close_mongo_connection, check_database_health
from app.db.indexes import create_indexes
from app.api import (
    admin,
    analytics,
    assignments,
    categories,
    cities,
    distribution,
    notifications,
    orders,
    products,
    receipts,
    recoveries,
    sales,
    shopkeeper_orders,
    shopkeepers,
    users,
)
from utils.time_utils import utc_now

# Initialize logging first
setup_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    logger.info("🚀 Starting OrderDesk API...")

    try:
        logger.info("Validating configuration...")
        validate_settings()
        logger.info("✅ Configuration validated")

        logger.info("Connecting to MongoDB...")
        db = await connect_to_mongo()
        logger.info("✅ MongoDB connected")

        logger.info("Creating database indexes...")
        await create_indexes(db)
        logger.info("✅ Database indexes created")

        is_healthy = await check_database_health()
        if not is_healthy:
            logger.warning("⚠️ Database health check failed during startup")
        else:
            logger.info("✅ Database health check passed")

        logger.info(f"Environment: {settings.ENVIRONMENT}")
        logger.info(f"Allowed origins: {', '.join(settings.cors_origins)}")
        if not settings.cloudinary_configured:
            logger.warning("Cloudinary is not configured; image uploads will fail")

    except Exception as e:
        logger.critical(f"Failed to start application: {str(e)}", exc_info=True)
        raise

    yield  # Application runs here

    # Shutdown
    logger.info("🛑 Shutting down OrderDesk API...")
    try:
        await close_mongo_connection()
        logger.info("✅ MongoDB connection closed")
    except Exception as e:
        logger.error(f"Error during shutdown: {str(e)}", exc_info=True)


app = FastAPI(
    title="OrderDesk API",
    description="Order, recovery and distribution management for a wholesale business",
    version="1.0.0",
    lifespan=lifespan,
    debug=settings.DEBUG,
    docs_url="/docs" if settings.is_development else None,
    redoc_url="/redoc" if settings.is_development else None,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
    allow_headers=["Content-Type", "Authorization"],
)


# Request timing middleware
@app.middleware("http")
async def add_process_time_header(request: Request, call_next):
    """Add processing time header to all responses."""
    start_time = time.time()
    response = await call_next(request)
    process_time = time.time() - start_time
    response.headers["X-Process-Time"] = str(process_time)

    if process_time > 5.0:
        logger.warning(
            f"Slow request detected: {request.method} {request.url.path}",
            extra={"process_time": process_time}
        )

    return response


add_exception_handlers(app)


# Register API routes
ROUTERS = (
    ("/users", users.router, "Users"),
    ("/admin", admin.router, "Legacy Admins"),
    ("/products", products.router, "Products"),
    ("/orders", orders.router, "Website Orders"),
    ("/shopkeeper-orders", shopkeeper_orders.router, "Shopkeeper Orders"),
    ("/assignments", assignments.router, "Assignments"),
    ("/shopkeepers", shopkeepers.router, "Shopkeepers"),
    ("/recoveries", recoveries.router, "Recoveries"),
    ("/receipts", receipts.router, "Receipts"),
    ("/notifications", notifications.router, "Notifications"),
    ("/categories", categories.router, "Categories"),
    ("/cities", cities.router, "Cities"),
    ("/distribution", distribution.router, "Distribution"),
    ("/sales", sales.router, "Sales"),
    ("/analytics", analytics.router, "Analytics"),
)

for path, router, tag in ROUTERS:
    app.include_router(router, prefix=f"{settings.API_PREFIX}{path}", tags=[tag])


@app.get(f"{settings.API_PREFIX}/health", tags=["Health"])
async def health_check():
    """Basic liveness with a timestamp, used by the frontend and load balancers."""
    return {"status": "OK", "timestamp": utc_now().isoformat() + "Z"}


# Readiness probe (for Kubernetes/orchestration)
@app.get("/ready", tags=["Health"])
async def readiness_check():
    """
    Readiness probe - indicates if app is ready to receive traffic.
    """
    if await check_database_health():
        return {"status": "ready"}
    return JSONResponse(
        status_code=503,
        content={"status": "not_ready", "reason": "database_unavailable"}
    )


# Liveness probe (for Kubernetes/orchestration)
@app.get("/live", tags=["Health"])
async def liveness_check():
    return {"status": "alive"}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.is_development,
        log_level=settings.LOG_LEVEL.lower()
    )
