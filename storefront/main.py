"""
Storefront service

Order creation, commission quotes, WhatsApp notifications and Stripe payment
links for the Union Digitale marketplace.
"""

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
from pathlib import Path
import os

from alembic import command
from alembic.config import Config

from shared.core import ServiceHealth, setup_logging, RequestLoggingMiddleware, get_logger
from storefront.api import admin, commissions, notifications, orders, payments
from storefront.core_settings import get_settings
from storefront.domain.errors import StorefrontError
from storefront.infrastructure import db

settings = get_settings()

SERVICE_NAME = "storefront-service"
SERVICE_VERSION = settings.SERVICE_VERSION
SERVICE_DESCRIPTION = "Union Digitale orders, commissions, notifications and payment links"
ALEMBIC_INI = Path(__file__).resolve().parent.parent / "alembic.ini"

setup_logging(service_name=SERVICE_NAME, level=settings.LOG_LEVEL)

logger = get_logger(__name__)

def run_migrations() -> None:
    config = Config(str(ALEMBIC_INI))
    config.set_main_option("script_location", str(ALEMBIC_INI.parent / "alembic"))
    command.upgrade(config, "head")

@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info(f"Starting {SERVICE_NAME} version {SERVICE_VERSION}")

    if os.getenv("RUN_MIGRATIONS", "true").lower() == "true":
        try:
            logger.info("Running database migrations")
            run_migrations()
            logger.info("Database migrations completed")
        except Exception as e:
            logger.warning(f"Migration error: {e}")

    try:
        db.init_models()
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
    allow_origins=[settings.APP_URL],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)
app.add_middleware(RequestLoggingMiddleware)

@app.exception_handler(StorefrontError)
async def storefront_error_handler(request: Request, exc: StorefrontError) -> JSONResponse:
    if exc.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {exc.message}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {exc.code}")
    return JSONResponse(status_code=exc.http_status, content={"error": exc.to_dict()})

@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = [
        {"loc": list(error.get("loc", [])), "msg": error.get("msg")}
        for error in exc.errors()
    ]
    return JSONResponse(status_code=400, content={
        "error": {"code": "invalid-argument", "message": "Malformed request", "details": errors}
    })

health_service = ServiceHealth(
    SERVICE_NAME,
    SERVICE_VERSION,
    engine_provider=db.get_engine,
    required_settings={
        "stripe": lambda: settings.STRIPE_SECRET_KEY,
        "twilio": lambda: settings.TWILIO_ACCOUNT_SID and settings.TWILIO_AUTH_TOKEN,
    },
)
app.include_router(health_service.create_health_router())

app.include_router(orders.router)
app.include_router(commissions.router)
app.include_router(notifications.router)
app.include_router(payments.router)
app.include_router(admin.router)

@app.get("/")
async def root():
    return {
        "service": SERVICE_NAME,
        "version": SERVICE_VERSION,
        "status": "running",
        "docs": "/api/docs"
    }
