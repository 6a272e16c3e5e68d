"""
Order & Delivery Service
Alcohol delivery orders, driver assignment and payments behind one FastAPI app
"""

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from sqlalchemy.orm.exc import StaleDataError
import subprocess
import os

from shared.core import DEFAULT_REQUIRED_ENV, ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from boozebuddies.api.orders import router as orders_router
from boozebuddies.api.deliveries import router as deliveries_router
from boozebuddies.api.payments import router as payments_router
from boozebuddies.application.errors import DomainError
from boozebuddies.core_settings import get_settings
from boozebuddies.infrastructure.db import init_models

settings = get_settings()

SERVICE_NAME = settings.SERVICE_NAME
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_DESCRIPTION = "Order lifecycle, driver assignment and payment service"
PROJECT_ROOT = os.path.join(os.path.dirname(__file__), "..")

setup_logging(
    service_name=SERVICE_NAME,
    level=settings.LOG_LEVEL,
    version=SERVICE_VERSION,
    environment=os.getenv("ENVIRONMENT", "development"),
)

logger = get_logger(__name__)


def run_migrations() -> bool:
    logger.info("Running database migrations")
    result = subprocess.run(
        ["alembic", "upgrade", "head"],
        cwd=PROJECT_ROOT,
        capture_output=True,
        text=True,
        check=False,
    )
    if result.returncode != 0:
        logger.warning(f"Migration output: {result.stderr}")
        return False
    logger.info("Database migrations completed")
    return True


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifecycle management"""
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    if settings.RUN_MIGRATIONS_ON_STARTUP:
        try:
            run_migrations()
        except OSError as e:
            logger.error(f"Migration error: {e}")

    try:
        init_models()
        logger.info("Database models initialized")
    except Exception as e:
        logger.error(f"Failed to initialize database models: {e}")
        raise

    logger.info(f"{SERVICE_NAME} started successfully")

    yield

    logger.info(f"Shutting down {SERVICE_NAME}")


app = FastAPI(
    title=SERVICE_NAME,
    description=SERVICE_DESCRIPTION,
    version=SERVICE_VERSION,
    lifespan=lifespan,
    docs_url="/api/docs",
    redoc_url="/api/redoc",
    openapi_url="/api/openapi.json"
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.add_middleware(RequestLoggingMiddleware)


@app.exception_handler(DomainError)
async def domain_error_handler(request: Request, exc: DomainError):
    if exc.status_code >= 500:
        logger.error(exc.detail, extra={'extra_fields': {'path': request.url.path}})
    else:
        logger.info(
            "Request rejected",
            extra={'extra_fields': {
                'path': request.url.path,
                'error': type(exc).__name__,
                'detail': exc.detail,
            }},
        )
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail, "error": type(exc).__name__},
    )


@app.exception_handler(StaleDataError)
async def stale_data_handler(request: Request, exc: StaleDataError):
    logger.warning("Concurrent modification detected", extra={'extra_fields': {'path': request.url.path}})
    return JSONResponse(
        status_code=409,
        content={"detail": "The resource was modified concurrently, retry the request", "error": "ConcurrentModification"},
    )


# POSTGRES_* are only needed when no full URL is configured
health_service = ServiceHealth(
    SERVICE_NAME,
    SERVICE_VERSION,
    database_url=settings.database_url,
    required_env=() if settings.DATABASE_URL else DEFAULT_REQUIRED_ENV,
)
app.include_router(health_service.create_health_router())

app.include_router(orders_router)
app.include_router(deliveries_router)
app.include_router(payments_router)


@app.get("/")
async def root():
    """Root endpoint"""
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }


@app.get("/info")
async def info():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "description": SERVICE_DESCRIPTION,
        "environment": os.getenv("ENVIRONMENT", "development"),
        "endpoints": {
            "orders": "/orders",
            "deliveries": "/deliveries",
            "payments": "/payments",
            "health": "/health",
            "ready": "/health/ready",
            "live": "/health/live",
            "metrics": "/metrics",
            "docs": "/api/docs"
        }
    }
