"""
Application factory for FastAPI.

This module provides a factory function for creating FastAPI application instances.
The factory pattern allows for:
- Easy testing with custom settings
- Multiple app instances with different configurations
- Clear separation of app creation from route definitions

Usage:
    from backend.main import create_app
    from backend.settings import Settings

    # Default app (uses get_settings())
    app = create_app()

    # Test app with custom settings
    test_settings = Settings(environment="test", _env_file=None)
    test_app = create_app(settings=test_settings)
"""

import logging
from typing import Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Create and configure a FastAPI application instance.

    Args:
        settings: Optional Settings instance. If not provided, uses get_settings()
                  which loads from environment variables.

    Returns:
        Configured FastAPI application instance.
    """
    if settings is None:
        settings = get_settings()

    _init_sentry(settings)

    app = FastAPI(
        title="Exercise Identity API",
        description="Resolves free-text workout exercise names to canonical master exercises",
        version="1.0.0",
    )

    _configure_cors(app, settings)

    _include_routers(app)

    _log_feature_flags(settings)

    return app


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if settings.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry_dsn,
            environment=settings.environment,
            traces_sample_rate=0.1,  # 10% of transactions for performance monitoring
            profiles_sample_rate=0.1,
        )
        logger.info("Sentry initialized for exercise-identity-api")


def _configure_cors(app: FastAPI, settings: Settings) -> None:
    """Configure CORS middleware for the application."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _include_routers(app: FastAPI) -> None:
    """Include all API routers in the application."""
    from api.routers import (
        health_router,
        master_exercises_router,
        exercise_links_router,
    )

    # Health router (no prefix - /health at root)
    app.include_router(health_router)

    # Domain routers (prefix /exercises defined in each router)
    app.include_router(master_exercises_router)
    app.include_router(exercise_links_router)


def _log_feature_flags(settings: Settings) -> None:
    """Log configuration that changes behavior at startup."""
    if settings.sentry_dsn:
        logger.info("Sentry error tracking is enabled")
    else:
        logger.info("Sentry error tracking is disabled (no SENTRY_DSN)")

    if not settings.supabase_url or not settings.supabase_key:
        logger.warning("Supabase is not configured; exercise endpoints will return 503")

    logger.info(
        f"Similarity defaults: similar masters >= {settings.similar_master_threshold}, "
        f"bulk link >= {settings.bulk_link_min_similarity}"
    )


# Default app instance for uvicorn
# This allows: uvicorn backend.main:app --reload
app = create_app()
