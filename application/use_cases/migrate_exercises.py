"""
MigrateExercises Use Case.

One-shot sweep that gives every unlinked template exercise of a user a master
exercise: reuse the master with the same normalized name, or create one, then
link. Unlike MasterExerciseRegistry.create_or_get, a master insert that yields
no row aborts the sweep instead of continuing with a synthetic record.
"""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from application.exceptions import MasterExerciseCreationError, StorageUnavailableError
from application.ports.exercise_identity_repository import (
    ExerciseLinkRepository,
    MasterExerciseRepository,
)
from application.use_cases.link_manager import ExerciseLinkService
from backend.core.normalize import normalize_exercise_name

logger = logging.getLogger(__name__)


@dataclass
class MigrationResult:
    """Counts reported by a migration sweep."""

    migrated_exercises: int = 0
    created_master_exercises: int = 0
    created_links: int = 0


@dataclass
class MigrationStatus:
    """Whether a user still has entries without a master exercise."""

    unlinked_count: int = 0
    last_migration_at: Optional[datetime] = None
    needs_migration: bool = False


class MigrateExercisesUseCase:
    """
    Use case for linking all existing template exercises to master exercises.

    Usage:
        >>> use_case = MigrateExercisesUseCase(master_repo, link_repo, link_service)
        >>> result = use_case.execute("user-123")
        >>> result.created_links
        2
    """

    def __init__(
        self,
        master_repo: MasterExerciseRepository,
        link_repo: ExerciseLinkRepository,
        link_service: ExerciseLinkService,
    ):
        self._masters = master_repo
        self._links = link_repo
        self._link_service = link_service

    def execute(self, user_id: str) -> MigrationResult:
        """
        Run the sweep.

        Every unlinked entry is included, rejected or not. Entries whose
        name is blank once normalized are skipped and not counted.

        Raises:
            MasterExerciseCreationError: a master insert returned no row
            StorageUnavailableError: the store failed mid-sweep
        """
        unlinked = self._link_service.list_unlinked_entries(user_id, include_rejected=True)
        result = MigrationResult()

        for entry in unlinked:
            normalized_name = normalize_exercise_name(entry.exercise_name)
            if not normalized_name:
                logger.warning(f"Skipping template exercise {entry.id} with a blank name")
                continue
            result.migrated_exercises += 1

            master = self._masters.find_by_normalized_name(user_id, normalized_name)
            if master is None:
                master, created = self._masters.insert_or_get(user_id, entry.exercise_name, normalized_name)
                if master is None or master.id is None:
                    raise MasterExerciseCreationError(
                        f"Failed to create master exercise for '{entry.exercise_name}'"
                    )
                if created:
                    result.created_master_exercises += 1

            self._links.upsert(user_id, entry.id, master.id)
            result.created_links += 1

        logger.info(
            f"Migrated {result.migrated_exercises} template exercises for user {user_id}: "
            f"{result.created_master_exercises} masters created, {result.created_links} links created"
        )
        return result

    def status(self, user_id: str) -> MigrationStatus:
        """
        Migration status; degrades to "nothing to migrate" when storage fails.

        Blank-named entries are left out, as the sweep skips them.
        """
        try:
            unlinked = [
                entry
                for entry in self._link_service.list_unlinked_entries(user_id, include_rejected=True)
                if normalize_exercise_name(entry.exercise_name)
            ]
            last_migration_at = self._masters.latest_created_at(user_id)
        except StorageUnavailableError as e:
            logger.warning(f"Migration status degraded for user {user_id}: {e}")
            return MigrationStatus()

        return MigrationStatus(
            unlinked_count=len(unlinked),
            last_migration_at=last_migration_at,
            needs_migration=len(unlinked) > 0,
        )
