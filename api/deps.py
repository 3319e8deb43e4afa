"""
FastAPI Dependency Providers for the Exercise Identity API.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations. This
enables clean separation of concerns and easy testing with fake implementations.

Architecture:
- Settings and Supabase client are cached per-process (lru_cache)
- Repository providers create new instances per-request
- Service providers compose repositories into use cases
- Auth provider wraps backend.auth

Usage in routers:
    from api.deps import get_master_registry, get_current_user

    @router.get("/exercises/masters")
    def list_masters(
        user_id: str = Depends(get_current_user),
        registry: MasterExerciseRegistry = Depends(get_master_registry),
    ):
        return registry.list_with_link_counts(user_id)

Testing:
    # Override the repository providers; services pick up the fakes
    app.dependency_overrides[get_master_exercise_repo] = lambda: fake_masters
"""

from functools import lru_cache
from typing import Optional

from fastapi import Depends, Header, HTTPException
from supabase import Client, create_client

# Protocol types (interfaces)
from application.ports import (
    ExerciseLinkRepository,
    MasterExerciseRepository,
    TemplateExerciseRepository,
)

# Use cases
from application.use_cases import (
    BulkLinkService,
    ExerciseLinkService,
    LinkSuggestionService,
    MasterExerciseRegistry,
    MigrateExercisesUseCase,
)

# Concrete implementations
from infrastructure import (
    SupabaseExerciseLinkRepository,
    SupabaseMasterExerciseRepository,
    SupabaseTemplateExerciseRepository,
)

from backend.settings import Settings, get_settings as _get_settings
from backend.auth import get_current_user as _get_current_user


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from backend.settings.
    Use this as a FastAPI dependency for settings access.
    """
    return _get_settings()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached for the lifetime of the process).

    Returns:
        Client: Supabase client instance, or None if not configured
    """
    settings = _get_settings()

    if not settings.supabase_url or not settings.supabase_key:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


def get_supabase_client_required() -> Client:
    """
    Get Supabase client instance, raising if not configured.

    Raises:
        HTTPException: 503 if Supabase is not configured
    """
    client = get_supabase_client()
    if client is None:
        raise HTTPException(
            status_code=503,
            detail="Database not available. Supabase credentials not configured.",
        )
    return client


# =============================================================================
# Repository Providers
# =============================================================================


def get_master_exercise_repo(
    client: Client = Depends(get_supabase_client_required),
) -> MasterExerciseRepository:
    """
    Get MasterExerciseRepository implementation.

    The return type is the Protocol to enable easy faking.
    """
    return SupabaseMasterExerciseRepository(client)


def get_template_exercise_repo(
    client: Client = Depends(get_supabase_client_required),
) -> TemplateExerciseRepository:
    """Get TemplateExerciseRepository implementation."""
    return SupabaseTemplateExerciseRepository(client)


def get_exercise_link_repo(
    client: Client = Depends(get_supabase_client_required),
) -> ExerciseLinkRepository:
    """Get ExerciseLinkRepository implementation."""
    return SupabaseExerciseLinkRepository(client)


# =============================================================================
# Use Case Providers
# =============================================================================


def get_master_registry(
    master_repo: MasterExerciseRepository = Depends(get_master_exercise_repo),
    link_repo: ExerciseLinkRepository = Depends(get_exercise_link_repo),
) -> MasterExerciseRegistry:
    """Get MasterExerciseRegistry with injected repositories."""
    return MasterExerciseRegistry(master_repo=master_repo, link_repo=link_repo)


def get_link_service(
    master_repo: MasterExerciseRepository = Depends(get_master_exercise_repo),
    template_repo: TemplateExerciseRepository = Depends(get_template_exercise_repo),
    link_repo: ExerciseLinkRepository = Depends(get_exercise_link_repo),
) -> ExerciseLinkService:
    """Get ExerciseLinkService with injected repositories."""
    return ExerciseLinkService(master_repo, template_repo, link_repo)


def get_suggestion_service(
    master_repo: MasterExerciseRepository = Depends(get_master_exercise_repo),
    template_repo: TemplateExerciseRepository = Depends(get_template_exercise_repo),
    link_repo: ExerciseLinkRepository = Depends(get_exercise_link_repo),
    link_service: ExerciseLinkService = Depends(get_link_service),
) -> LinkSuggestionService:
    """Get LinkSuggestionService with injected repositories."""
    return LinkSuggestionService(master_repo, template_repo, link_repo, link_service)


def get_bulk_link_service(
    master_repo: MasterExerciseRepository = Depends(get_master_exercise_repo),
    link_repo: ExerciseLinkRepository = Depends(get_exercise_link_repo),
    link_service: ExerciseLinkService = Depends(get_link_service),
) -> BulkLinkService:
    """Get BulkLinkService with injected repositories."""
    return BulkLinkService(master_repo, link_repo, link_service)


def get_migrate_exercises_use_case(
    master_repo: MasterExerciseRepository = Depends(get_master_exercise_repo),
    link_repo: ExerciseLinkRepository = Depends(get_exercise_link_repo),
    link_service: ExerciseLinkService = Depends(get_link_service),
) -> MigrateExercisesUseCase:
    """Get MigrateExercisesUseCase with injected repositories."""
    return MigrateExercisesUseCase(master_repo, link_repo, link_service)


# =============================================================================
# Authentication Providers
# =============================================================================


async def get_current_user(
    authorization: Optional[str] = Header(None),
    x_api_key: Optional[str] = Header(None, alias="X-API-Key"),
) -> str:
    """
    Get the current authenticated user ID.

    Wraps backend.auth.get_current_user for dependency injection.

    Raises:
        HTTPException: 401 if authentication fails
    """
    return await _get_current_user(authorization=authorization, x_api_key=x_api_key)


# =============================================================================
# Exports
# =============================================================================

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
