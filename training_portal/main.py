"""Training Portal API: FastAPI application factory."""


import logging
import sys
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from training_portal.core.config import settings
from training_portal.core.exceptions import register_exception_handlers
from training_portal.db.base import init_models
from training_portal.middleware.audit import AuditMiddleware
from training_portal.schemas.common import HealthResponse
from training_portal.services.sheets import close_sheets_client

# v1 routers
from training_portal.routers.v1.accounts import router as accounts_router
from training_portal.routers.v1.approvals import router as approvals_router
from training_portal.routers.v1.batches import router as batches_router
from training_portal.routers.v1.cohorts import router as cohorts_router
from training_portal.routers.v1.cron import router as cron_router
from training_portal.routers.v1.feedback import router as feedback_router
from training_portal.routers.v1.master_data import router as master_data_router
from training_portal.routers.v1.nominations import router as nominations_router
from training_portal.routers.v1.sessions import router as sessions_router
from training_portal.routers.v1.tni import router as tni_router
from training_portal.routers.v1.trainers import router as trainers_router

logger = logging.getLogger(__name__)

_V1_ROUTERS = (
    master_data_router,
    tni_router,
    nominations_router,
    approvals_router,
    sessions_router,
    batches_router,
    feedback_router,
    trainers_router,
    accounts_router,
    cohorts_router,
    cron_router,
)


def _configure_logging() -> None:
    """Set up structured logging for the application."""
    level = logging.DEBUG if settings.app_env == "development" else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s | %(levelname)-8s | %(name)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
        force=True,
    )
    # Quiet noisy libraries
    logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("httpx").setLevel(logging.WARNING)


@asynccontextmanager
async def lifespan(app: FastAPI):
    if settings.app_env == "development":
        # Local convenience only; other environments run `alembic upgrade head`
        await init_models()
        logger.info("Database tables ensured (development)")
    if not settings.auth_secret:
        logger.warning("AUTH_SECRET is not set; approval and feedback links cannot be issued")
    if not settings.mail_enabled:
        logger.warning("SMTP_HOST is not set; outgoing mail runs in dry-run mode")
    yield
    await close_sheets_client()


def create_app() -> FastAPI:
    _configure_logging()

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url="/docs" if settings.app_env == "development" else None,
        redoc_url="/redoc" if settings.app_env == "development" else None,
        lifespan=lifespan,
    )

    # --- CORS ---
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
        allow_headers=["*"],
    )

    # --- Audit middleware ---
    app.add_middleware(AuditMiddleware)

    # --- Global exception handlers ---
    register_exception_handlers(app)

    # --- v1 API routes (/api/v1/*) ---
    for router in _V1_ROUTERS:
        app.include_router(router, prefix="/api/v1")

    # --- Health check ---
    @app.get("/health", response_model=HealthResponse, tags=["Health"])
    async def health():
        return HealthResponse(app=settings.app_name, env=settings.app_env)

    return app


app = create_app()
