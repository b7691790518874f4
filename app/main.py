"""
Main FastAPI application
"""
import asyncio
import logging

from fastapi import FastAPI, HTTPException, status
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager, suppress
from app.config.database import db_config
from app.config.settings import settings
from app.services.payment_listener import run_payment_listener

from app.routes import payment

logger = logging.getLogger(__name__)


def configure_logging():
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    # Driver heartbeats are noisy below WARNING
    logging.getLogger("pymongo").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan - startup and shutdown events"""
    # Startup
    configure_logging()
    await db_config.connect_db()
    listener_task = None
    if settings.PAYMENT_LISTENER_ENABLED:
        listener_task = asyncio.create_task(
            run_payment_listener(settings.PAYMENT_LISTENER_RETRY_SECONDS)
        )
    logger.info("🚀 %s v%s started", settings.APP_NAME, settings.VERSION)
    yield
    # Shutdown
    if listener_task:
        listener_task.cancel()
        with suppress(asyncio.CancelledError):
            await listener_task
    await db_config.close_db()
    logger.info("👋 Application shutdown")

# Create FastAPI app
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.VERSION,
    lifespan=lifespan
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.ALLOWED_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Include routers
app.include_router(payment.router, prefix="/api")


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "app": settings.APP_NAME,
        "version": settings.VERSION,
        "status": "running"
    }

@app.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "healthy"}

@app.get("/health/db")
async def database_health_check():
    """Datastore reachability"""
    try:
        await db_config.ping()
    except Exception as exc:
        logger.error("❌ MongoDB ping failed: %s", exc)
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Database unavailable",
        )
    return {"status": "healthy", "database": db_config.DATABASE_NAME}
