"""
FastAPI application factory.

Uses lifespan context manager (preferred over on_event decorators in FastAPI 0.93+)
to handle startup/shutdown tasks cleanly.
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from app.routers import health, purchases, suppliers, templates
from app.settings import settings

# ── Logging ───────────────────────────────────────────────────────────────────
logging.basicConfig(
    level=getattr(logging, settings.log_level.upper(), logging.INFO),
    format="%(asctime)s %(levelname)s %(name)s — %(message)s",
)
logger = logging.getLogger(__name__)


# ── Lifespan ──────────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup and shutdown logic."""
    logger.info("Starting Purchase Order Extraction API [env=%s]", settings.environment)

    # Verify the template store is reachable (extraction needs it for templates)
    from app.database import check_db_connection

    if not check_db_connection():
        logger.error("Database is not reachable on startup — check DATABASE_URL")
    else:
        logger.info("Database connection verified")

    yield  # ── Application runs here ──

    logger.info("Shutting down Purchase Order Extraction API")


# ── App factory ───────────────────────────────────────────────────────────────
def create_app() -> FastAPI:
    app = FastAPI(
        title="Purchase Order PDF Extraction",
        description=(
            "Reads supplier purchase-order PDFs into structured product lines. "
            "Per-supplier parsing templates (keywords, markers, line regex) are "
            "selected automatically, with a generic fallback parser for unknown "
            "suppliers. Every result is validated before it is trusted."
        ),
        version="1.0.0",
        lifespan=lifespan,
        docs_url="/docs" if not settings.is_production else None,
        redoc_url="/redoc" if not settings.is_production else None,
    )

    # ── CORS ──────────────────────────────────────────────────────────────────
    # Dev: allow all origins. Staging/prod: explicit allowlist from ALLOWED_ORIGINS env var.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"] if settings.is_development else settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # ── Routers ───────────────────────────────────────────────────────────────
    app.include_router(health.router)
    app.include_router(purchases.router)
    app.include_router(templates.router)
    app.include_router(suppliers.router)

    return app


app = create_app()
