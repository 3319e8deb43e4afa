"""
Router package for the Exercise Identity API.

This package contains all API routers organized by domain:
- health: Health check endpoint
- master_exercises: Master exercise lookup, search, management and bulk linking
- exercise_links: Per-entry linking, rejection, template link state and migration
"""

from api.routers.health import router as health_router
from api.routers.master_exercises import router as master_exercises_router
from api.routers.exercise_links import router as exercise_links_router

__all__ = [
    "health_router",
    "master_exercises_router",
    "exercise_links_router",
]
