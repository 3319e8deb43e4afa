"""
Infrastructure Layer for the Exercise Identity service.

This package contains concrete implementations of repository interfaces:
- db/: Supabase database implementations
"""

# Re-export database repositories for convenient access
from infrastructure.db import (
    SupabaseExerciseLinkRepository,
    SupabaseMasterExerciseRepository,
    SupabaseTemplateExerciseRepository,
)

__all__ = [
    "SupabaseMasterExerciseRepository",
    "SupabaseTemplateExerciseRepository",
    "SupabaseExerciseLinkRepository",
]
