"""
Health check router.

This router provides health check endpoints for monitoring and load balancers.
"""

import logging

from fastapi import APIRouter, Depends

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)

router = APIRouter(
    tags=["Health"],
)


@router.get("/health")
def health(settings: Settings = Depends(get_settings)):
    """
    Simple liveness endpoint.

    Returns:
        dict: Status indicator and whether a database is configured
    """
    return {
        "status": "ok",
        "environment": settings.environment,
        "database_configured": bool(settings.supabase_url and settings.supabase_key),
    }
