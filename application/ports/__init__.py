"""
Repository Interfaces (Ports) for the Exercise Identity service.

This package defines abstract interfaces that decouple domain logic from
infrastructure (database). Implementations are provided in the
infrastructure layer.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the use cases need)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import MasterExerciseRepository

    class MasterExerciseRegistry:
        def __init__(self, master_repo: MasterExerciseRepository, ...):
            self._masters = master_repo
"""

from application.ports.exercise_identity_repository import (
    ExerciseLinkRepository,
    MasterExerciseRepository,
    NameCursor,
    TemplateExerciseRepository,
)

__all__ = [
    "MasterExerciseRepository",
    "TemplateExerciseRepository",
    "ExerciseLinkRepository",
    "NameCursor",
]
