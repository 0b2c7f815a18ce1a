"""Tag Registry API — FastAPI application entry point.

Invariants:
    - Routes registered explicitly (no auto-discovery)
    - Global error handlers map TagRegistryError → structured JSON responses
    - CORS configured from settings (not hardcoded)
    - Database initialized on startup via lifespan context manager

Design Decisions:
    - Lifespan over @app.on_event: FastAPI recommended pattern, cleaner cleanup
    - Error handlers live in api/error_handlers.py to keep this module's imports small
"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from tag_registry.api.error_handlers import register_error_handlers
from tag_registry.api.routes import accounts, events, health, tags
from tag_registry.config import get_settings
from tag_registry.infrastructure.database import init_db
from tag_registry.infrastructure.observability import setup_logging

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifecycle."""
    settings = get_settings()
    setup_logging(settings.log_level, settings.log_format)
    manager = init_db(
        settings.database_url,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
    )
    if settings.create_tables_on_startup:
        await manager.create_all()
    logger.info(
        f"Tag Registry API started (deposit={settings.tag_deposit_amount}, "
        f"name_limit={settings.tag_name_limit})",
    )
    yield
    await manager.dispose()
    logger.info("Tag Registry API shutting down")


app = FastAPI(
    title="Tag Registry API", version="1.0.0", lifespan=lifespan,
)

# CORS — configured from settings, not hardcoded
settings = get_settings()
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Routes — explicit registration
app.include_router(health.router)
app.include_router(tags.router)
app.include_router(accounts.router)
app.include_router(events.router)

register_error_handlers(app)
