"""
Domain models for the Exercise Identity service.

These models represent the core business concepts:
- MasterExercise: canonical exercise identity, one per normalized name per user
- TemplateExercise: a free-text exercise line of a workout template
- ExerciseLink: which master a template exercise resolves to
- LinkResolution: Linked | Unlinked

Usage:
    >>> from domain.models import MasterExercise
    >>> MasterExercise(user_id="u1", name="Bench Press", normalized_name="bench press").is_persisted
    False
"""

from domain.models.exercise_identity import (
    ExerciseLink,
    Linked,
    LinkResolution,
    MasterExercise,
    TemplateExercise,
    Unlinked,
)

__all__ = [
    "ExerciseLink",
    "Linked",
    "LinkResolution",
    "MasterExercise",
    "TemplateExercise",
    "Unlinked",
]
