"""
Exercise identity entities.

A user types exercise names freely into every workout template ("Bench Press",
"bench  press", "DB Bench Press"). These models describe how those free-text
lines resolve to one canonical exercise per user:

- MasterExercise: the canonical identity, unique per (user_id, normalized_name)
- TemplateExercise: one exercise line of a workout template
- ExerciseLink: the association between a TemplateExercise and a MasterExercise
- LinkResolution: the link state of a TemplateExercise (Linked | Unlinked)

Usage:
    >>> master = MasterExercise(user_id="u1", name="Bench Press", normalized_name="bench press")
    >>> master.is_persisted
    False

    >>> resolution = Linked(master_exercise_id=42)
    >>> resolution.is_linked
    True
"""

from datetime import datetime
from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field


class MasterExercise(BaseModel):
    """
    Canonical exercise identity owned by a single user.

    The display name keeps the casing of whoever created the master first;
    later lookups by an equivalent name never rename it.
    """

    id: Optional[int] = Field(
        default=None,
        description="Database id. None for a synthetic, unsaved record",
    )
    user_id: str = Field(..., min_length=1)
    name: str = Field(..., description="Display name as first entered")
    normalized_name: str = Field(..., description="Comparison key, unique per user")
    tags: Optional[str] = Field(default=None, description="Comma-separated tags")
    muscle_group: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_persisted(self) -> bool:
        """True when the record came back from storage with an id."""
        return self.id is not None


class TemplateExercise(BaseModel):
    """An exercise line inside a workout template."""

    id: int
    user_id: str = Field(..., min_length=1)
    template_id: int
    exercise_name: str
    order_index: int = 0
    linking_rejected: bool = Field(
        default=False,
        description="User declined linking; hidden from suggestions until a link is accepted",
    )
    created_at: Optional[datetime] = None


class ExerciseLink(BaseModel):
    """Associates one TemplateExercise with one MasterExercise."""

    id: Optional[int] = None
    template_exercise_id: int
    master_exercise_id: int
    user_id: str = Field(..., min_length=1)
    created_at: Optional[datetime] = None


class Linked(BaseModel):
    """The entry is linked to a master exercise."""

    kind: Literal["linked"] = "linked"
    master_exercise_id: int

    @property
    def is_linked(self) -> bool:
        return True


class Unlinked(BaseModel):
    """The entry has no active link."""

    kind: Literal["unlinked"] = "unlinked"

    @property
    def is_linked(self) -> bool:
        return False


LinkResolution = Annotated[Union[Linked, Unlinked], Field(discriminator="kind")]
