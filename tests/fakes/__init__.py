"""
Fake Repository Implementations for Testing.

This package provides in-memory fake implementations of the exercise identity
repository interfaces for fast, isolated testing. No database required.

Features:
- All fakes implement the same Protocol interfaces as the Supabase adapters
- Supports seeding with test data
- Supports reset() for test isolation
- Failure injection (fail_on / heal) and per-method call counts
- Factory functions for common test scenarios

Usage:
    from tests.fakes import create_exercise_identity_fakes

    fakes = create_exercise_identity_fakes(
        user_id="user1",
        masters=["Bench Press"],
        entries=[(10, "bench press"), (10, "Row")],
    )
    fakes.masters.fail_on("find_by_normalized_name")
"""
from dataclasses import dataclass
from typing import List, Optional, Sequence, Tuple

from tests.fakes.exercise_identity_repository import (
    FakeExerciseLinkRepository,
    FakeMasterExerciseRepository,
    FakeTemplateExerciseRepository,
)


@dataclass
class ExerciseIdentityFakes:
    """The three fakes wired to the same test user."""

    masters: FakeMasterExerciseRepository
    entries: FakeTemplateExerciseRepository
    links: FakeExerciseLinkRepository

    def reset(self) -> None:
        self.masters.reset()
        self.entries.reset()
        self.links.reset()


# =============================================================================
# Factory Functions
# =============================================================================


def create_exercise_identity_fakes(
    *,
    user_id: str = "test_user",
    masters: Optional[Sequence[str]] = None,
    entries: Optional[Sequence[Tuple[int, str]]] = None,
) -> ExerciseIdentityFakes:
    """
    Create the three fakes with optional pre-populated data.

    Args:
        user_id: Owner of every seeded row
        masters: Master display names, given ids 1, 2, ... in order
        entries: (template_id, exercise_name) pairs, given ids 1, 2, ... in
            order and order_index by position within their template

    Returns:
        ExerciseIdentityFakes
    """
    fakes = ExerciseIdentityFakes(
        masters=FakeMasterExerciseRepository(),
        entries=FakeTemplateExerciseRepository(),
        links=FakeExerciseLinkRepository(),
    )

    if masters:
        fakes.masters.seed([{"user_id": user_id, "name": name} for name in masters])

    if entries:
        positions: dict = {}
        rows: List[dict] = []
        for entry_id, (template_id, exercise_name) in enumerate(entries, start=1):
            order_index = positions.get(template_id, 0)
            positions[template_id] = order_index + 1
            rows.append({
                "id": entry_id,
                "user_id": user_id,
                "template_id": template_id,
                "exercise_name": exercise_name,
                "order_index": order_index,
            })
        fakes.entries.seed(rows)

    return fakes


__all__ = [
    # Fake implementations
    "FakeMasterExerciseRepository",
    "FakeTemplateExerciseRepository",
    "FakeExerciseLinkRepository",
    "ExerciseIdentityFakes",
    # Factory functions
    "create_exercise_identity_fakes",
]
