"""
Attendance & Leave Service - Main Application Entry Point.

This service handles:
- Employee check-in/check-out, one record per employee per day
- Leave requests and admin approval/rejection
- Admin attendance corrections and daily/monthly views
- Per-employee notifications for admin decisions
- Reconciliation of duplicate day records
- Kafka event publishing for audit and downstream consumers
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session

from app.api.dependencies import get_day_normalizer
from app.api.errors import register_exception_handlers
from app.api.routes.admin import router as admin_router
from app.api.routes.employee import router as employee_router
from app.core import database
from app.core.config import settings
from app.core.database import create_db_and_tables
from app.core.handlers import register_employee_handlers
from app.core.kafka import KafkaConsumer, KafkaProducer
from app.core.logging import get_logger, setup_logging
from app.core.topics import KafkaTopics
from app.services.reconciliation import ReconciliationService

logger = get_logger(__name__)


def purge_undated_leave() -> int:
    with Session(database.engine) as session:
        return ReconciliationService(session, get_day_normalizer()).purge_null_leave_days()


@asynccontextmanager
async def lifespan(_: FastAPI):
    """
    Application lifespan manager.
    Handles startup and shutdown events.
    """
    # Startup
    setup_logging()
    logger.info("Starting Attendance & Leave Service...")

    # Fail fast on a bad REFERENCE_TIMEZONE
    days = get_day_normalizer()
    logger.info(f"Reference time zone {settings.REFERENCE_TIMEZONE}, today is {days.today()}")

    logger.info("Creating database and tables...")
    create_db_and_tables()
    logger.info("Database and tables created successfully")

    if settings.RECONCILE_ON_STARTUP:
        purged = purge_undated_leave()
        logger.info(f"Startup reconciliation removed {purged} undated leave requests")

    logger.info("Initializing Kafka producer...")
    await KafkaProducer.start()
    if KafkaProducer._started:
        logger.info(f"Publishing to topics: {', '.join(KafkaTopics.produced_topics())}")

    register_employee_handlers()
    await KafkaConsumer.start()

    logger.info("Attendance & Leave Service startup complete")

    yield

    # Shutdown
    logger.info("Attendance & Leave Service shutting down...")
    await KafkaConsumer.stop()
    await KafkaProducer.stop()
    logger.info("Attendance & Leave Service shutdown complete")


# Initialize FastAPI application
app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    description="Attendance & Leave Service - daily attendance ledger, leave requests and admin corrections",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
)


# Configure CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_credentials=settings.CORS_ALLOW_CREDENTIALS,
    allow_methods=settings.CORS_ALLOW_METHODS,
    allow_headers=settings.CORS_ALLOW_HEADERS,
)

register_exception_handlers(app)

# Include routers
app.include_router(employee_router, prefix="/api")
app.include_router(admin_router, prefix="/api")


# Health check endpoint
@app.get("/health", tags=["health"])
async def health_check():
    """
    Health check endpoint for container orchestration and monitoring.
    """
    return {
        "status": "healthy",
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
    }


@app.get("/ready", tags=["health"])
async def readiness_check():
    """
    Readiness check endpoint for Kubernetes.
    The database must answer; Kafka only counts when it is enabled.
    """
    database_ready = True
    try:
        with Session(database.engine) as session:
            session.connection().execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.warning(f"Database readiness check failed: {e}")
        database_ready = False

    kafka_ready = KafkaProducer._started or not settings.KAFKA_ENABLED

    all_ready = database_ready and kafka_ready

    return {
        "status": "ready" if all_ready else "not_ready",
        "checks": {
            "database": "ok" if database_ready else "error",
            "kafka_producer": "ok" if kafka_ready else "error",
        },
    }


@app.get("/", tags=["root"])
async def root():
    """
    Root endpoint with service information.
    """
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "docs": "/docs",
    }
