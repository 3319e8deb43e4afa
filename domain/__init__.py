"""
Domain layer for the Exercise Identity service.

This package contains pure domain models that are independent of
infrastructure concerns (database, API).
"""

from domain.models import (
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
