"""FastAPI application factory"""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI
from prometheus_client import generate_latest, CONTENT_TYPE_LATEST
from starlette.responses import Response

from weekbook.api.errors import register_exception_handlers
from weekbook.api.middleware import RequestIDMiddleware, MetricsMiddleware
from weekbook.api.v1 import auth, books, transactions, users, history
from weekbook.config import settings
from weekbook.infrastructure.database.models import Base
from weekbook.infrastructure.database.session import SessionLocal, engine
from weekbook.infrastructure.observability.logging import setup_logging
from weekbook.services.scheduler import BookScheduler
from weekbook.services.users import ensure_bootstrap_admin, ensure_system_actor

# Setup structured logging
setup_logging(settings.log_level)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Startup/shutdown hooks.

    1. Creates tables and the reserved system actor
    2. Creates the bootstrap admin if configured
    3. Starts the book scheduler when enabled, and stops it on shutdown
    """
    Base.metadata.create_all(bind=engine)
    with SessionLocal() as db:
        ensure_system_actor(db)
        ensure_bootstrap_admin(db)

    scheduler = BookScheduler() if settings.scheduler_enabled else None
    app.state.scheduler = scheduler
    if scheduler is not None:
        await scheduler.start()

    yield

    if scheduler is not None:
        await scheduler.stop()


def create_app() -> FastAPI:
    """Create and configure FastAPI application"""
    app = FastAPI(
        title="Weekbook Portal",
        description="Weekly gain/spend books with audited admin workflows",
        version="0.1.0",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    # Add middleware (order matters: last added = first executed)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    register_exception_handlers(app)

    # Health check endpoint
    @app.get("/health")
    def health_check():
        return {"status": "ok", "service": settings.service_name}

    # Prometheus metrics endpoint
    @app.get("/metrics")
    def metrics():
        return Response(content=generate_latest(), media_type=CONTENT_TYPE_LATEST)

    # Register API routers
    app.include_router(auth.router, prefix="/v1", tags=["auth"])
    app.include_router(books.router, prefix="/v1", tags=["books"])
    app.include_router(transactions.router, prefix="/v1", tags=["transactions"])
    app.include_router(users.router, prefix="/v1", tags=["users"])
    app.include_router(history.router, prefix="/v1", tags=["history"])

    return app


app = create_app()
