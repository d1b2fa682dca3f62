"""
FastAPI application initialization and configuration.
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from core.config import settings
from database.engine import init_db, close_db
from api.routes import health
from api.routes.v1 import applies, reviews, resumes
from workers.dispatch import InlineAnalysisDispatcher, build_dispatcher

# Import middleware components
from core.middleware import (
    ErrorHandlingMiddleware,
    setup_error_handlers,
    StructuredLoggingMiddleware,
    setup_logging,
    IdentityMiddleware,
)

# Setup structured logging (do this first, before anything else)
setup_logging(
    log_level=settings.log_level,
    json_logs=settings.json_logs,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Manage application lifespan events."""
    logger.info(f"Starting {settings.app_name} in {settings.app_env} environment")
    await init_db()

    yield

    logger.info(f"Shutting down {settings.app_name}")
    dispatcher = app.state.analysis_dispatcher
    if isinstance(dispatcher, InlineAnalysisDispatcher):
        await dispatcher.drain()
    await close_db()


def create_app() -> FastAPI:
    app = FastAPI(
        title=settings.app_name,
        description="Team recruitment: applies, selection, AI scoring and peer reviews",
        version="0.1.0",
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        lifespan=lifespan,
    )
    app.state.analysis_dispatcher = build_dispatcher()

    # Setup error handlers (before middleware)
    setup_error_handlers(app, debug=settings.debug)

    # Add middleware (order matters - they execute in reverse order)
    # 1. Identity (innermost - attaches the actor for the routes)
    app.add_middleware(IdentityMiddleware)

    # 2. Structured logging (logs all requests/responses, sees 401s too)
    app.add_middleware(StructuredLoggingMiddleware)

    # 3. Error handling (catches anything the handlers did not)
    app.add_middleware(ErrorHandlingMiddleware, debug=settings.debug)

    # 4. CORS (outermost)
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Health check routes
    app.include_router(health.router, tags=["Health"])

    # API v1 routes
    app.include_router(
        applies.router,
        prefix=f"{settings.api_v1_prefix}/applies",
        tags=["Applies"],
    )
    app.include_router(
        reviews.router,
        prefix=f"{settings.api_v1_prefix}/reviews",
        tags=["Reviews"],
    )
    app.include_router(
        resumes.router,
        prefix=f"{settings.api_v1_prefix}/resumes",
        tags=["Resumes"],
    )

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "api.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
