"""
Exercise Identity Repository Interfaces (Ports).

This module defines the abstract interfaces for persisting master exercises,
template exercise entries and the links between them. Implementations may
use Supabase or other backends.

Contract shared by every method: a backend failure is raised as
StorageUnavailableError. Whether that failure is fatal is decided by the
calling use case, never by the repository.

Every query is scoped by user_id; rows owned by another user are invisible.
"""
from datetime import datetime
from typing import Protocol, Optional, List, Tuple

from domain.models.exercise_identity import (
    ExerciseLink,
    MasterExercise,
    TemplateExercise,
)

# Keyset position for paginated name scans: (normalized_name, id)
NameCursor = Tuple[str, int]


class MasterExerciseRepository(Protocol):
    """
    Abstract interface for master exercise persistence.

    The store enforces uniqueness of (user_id, normalized_name).
    """

    def get(self, user_id: str, master_id: int) -> Optional[MasterExercise]:
        """
        Get a master exercise by id.

        Args:
            user_id: Owner of the master exercise
            master_id: Master exercise id

        Returns:
            MasterExercise or None if absent or owned by another user
        """
        ...

    def get_many(self, user_id: str, master_ids: List[int]) -> List[MasterExercise]:
        """Get every master exercise of the user whose id is in master_ids."""
        ...

    def find_by_normalized_name(
        self,
        user_id: str,
        normalized_name: str,
    ) -> Optional[MasterExercise]:
        """
        Point lookup by the (user_id, normalized_name) unique key.

        Args:
            user_id: Owner of the master exercise
            normalized_name: Output of normalize_exercise_name

        Returns:
            MasterExercise or None if not found
        """
        ...

    def list_for_user(self, user_id: str) -> List[MasterExercise]:
        """List all master exercises of the user ordered by name."""
        ...

    def insert_or_get(
        self,
        user_id: str,
        name: str,
        normalized_name: str,
    ) -> Tuple[Optional[MasterExercise], bool]:
        """
        Insert a master exercise; on a unique-key conflict return the existing row.

        Concurrent callers racing on the same (user_id, normalized_name) all
        observe the single surviving row.

        Returns:
            (row, created): the inserted or existing row (None if the store
            returned nothing), and whether this call inserted it
        """
        ...

    def insert(
        self,
        user_id: str,
        name: str,
        normalized_name: str,
        *,
        tags: Optional[str] = None,
        muscle_group: Optional[str] = None,
    ) -> Optional[MasterExercise]:
        """
        Strict insert.

        Raises:
            MasterExerciseConflictError: (user_id, normalized_name) already exists
        """
        ...

    def update(
        self,
        user_id: str,
        master_id: int,
        *,
        name: str,
        normalized_name: str,
        tags: Optional[str] = None,
        muscle_group: Optional[str] = None,
    ) -> Optional[MasterExercise]:
        """
        Rename/retag a master exercise.

        Returns:
            Updated row, or None if absent or owned by another user

        Raises:
            MasterExerciseConflictError: the new normalized name is taken
        """
        ...

    def delete(self, user_id: str, master_id: int) -> bool:
        """Delete a master exercise. Returns True if a row was removed."""
        ...

    def search_by_prefix(
        self,
        user_id: str,
        prefix: str,
        *,
        limit: int,
        after: Optional[NameCursor] = None,
    ) -> List[MasterExercise]:
        """
        Masters whose normalized name starts with prefix.

        Ordered by (normalized_name, id); only rows strictly after the
        cursor position are returned.
        """
        ...

    def search_by_substring(
        self,
        user_id: str,
        fragment: str,
        *,
        limit: int,
        after: Optional[NameCursor] = None,
    ) -> List[MasterExercise]:
        """
        Masters whose normalized name contains fragment but does not start with it.

        Ordered by (normalized_name, id); only rows strictly after the
        cursor position are returned.
        """
        ...

    def latest_created_at(self, user_id: str) -> Optional[datetime]:
        """Creation time of the user's most recent master exercise."""
        ...


class TemplateExerciseRepository(Protocol):
    """
    Abstract interface for template exercise entries.

    Entries are created and deleted by template saves (outside this
    subsystem); only the linking_rejected flag is written here.
    """

    def get(self, user_id: str, entry_id: int) -> Optional[TemplateExercise]:
        """
        Get a template exercise entry by id.

        Returns:
            TemplateExercise or None if absent or owned by another user
        """
        ...

    def get_many(self, user_id: str, entry_ids: List[int]) -> List[TemplateExercise]:
        """Get every entry of the user whose id is in entry_ids."""
        ...

    def list_for_template(self, user_id: str, template_id: int) -> List[TemplateExercise]:
        """List the entries of one template ordered by order_index."""
        ...

    def list_for_user(self, user_id: str) -> List[TemplateExercise]:
        """List all entries of the user ordered by id."""
        ...

    def set_linking_rejected(self, user_id: str, entry_id: int, rejected: bool) -> bool:
        """
        Set the sticky linking_rejected flag.

        Returns:
            True if a row was updated
        """
        ...


class ExerciseLinkRepository(Protocol):
    """
    Abstract interface for exercise link persistence.

    template_exercise_id is unique: an entry has at most one link.
    """

    def get_for_entry(self, user_id: str, entry_id: int) -> Optional[ExerciseLink]:
        """Get the link of a template exercise entry, if any."""
        ...

    def list_for_entries(self, user_id: str, entry_ids: List[int]) -> List[ExerciseLink]:
        """Get the links of the given entries."""
        ...

    def list_for_master(self, user_id: str, master_id: int) -> List[ExerciseLink]:
        """Get every link pointing at a master exercise."""
        ...

    def list_for_user(self, user_id: str) -> List[ExerciseLink]:
        """Get every link of the user."""
        ...

    def upsert(
        self,
        user_id: str,
        template_exercise_id: int,
        master_exercise_id: int,
    ) -> Optional[ExerciseLink]:
        """
        Create the link for an entry, replacing any existing link of that entry.

        Returns:
            The stored link, or None if the store returned nothing
        """
        ...

    def delete_for_entry(self, user_id: str, entry_id: int) -> int:
        """Delete the link of an entry. Returns the number of rows removed."""
        ...

    def delete_for_master(self, user_id: str, master_id: int) -> int:
        """Delete every link pointing at a master. Returns the number of rows removed."""
        ...

    def reassign_master(self, user_id: str, source_master_id: int, target_master_id: int) -> int:
        """Re-point every link of source to target. Returns the number of rows moved."""
        ...
