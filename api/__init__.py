"""
API package for the Exercise Identity service.

This package contains:
- deps.py: FastAPI dependency providers for DI
- errors.py: application exception to HTTP status translation
- routers/: API route handlers
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_settings,
    get_supabase_client,
    get_supabase_client_required,
    get_master_exercise_repo,
    get_template_exercise_repo,
    get_exercise_link_repo,
    get_master_registry,
    get_link_service,
    get_suggestion_service,
    get_bulk_link_service,
    get_migrate_exercises_use_case,
    get_current_user,
)

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    "get_supabase_client_required",
    # Repositories
    "get_master_exercise_repo",
    "get_template_exercise_repo",
    "get_exercise_link_repo",
    # Use cases
    "get_master_registry",
    "get_link_service",
    "get_suggestion_service",
    "get_bulk_link_service",
    "get_migrate_exercises_use_case",
    # Authentication
    "get_current_user",
]
