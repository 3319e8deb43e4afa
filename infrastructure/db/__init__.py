"""
Infrastructure Database Layer.

This package provides Supabase-backed implementations of the repository
interfaces defined in application.ports.

Usage:
    from supabase import create_client
    from infrastructure.db import SupabaseMasterExerciseRepository

    # Create Supabase client
    client = create_client(SUPABASE_URL, SUPABASE_KEY)

    # Instantiate repositories with injected client
    master_repo = SupabaseMasterExerciseRepository(client)
"""

from infrastructure.db.exercise_identity_repository import (
    SupabaseExerciseLinkRepository,
    SupabaseMasterExerciseRepository,
    SupabaseTemplateExerciseRepository,
)

__all__ = [
    "SupabaseMasterExerciseRepository",
    "SupabaseTemplateExerciseRepository",
    "SupabaseExerciseLinkRepository",
]
