"""
Bulk link operations.

Links every sufficiently similar unlinked entry to a master in one call, or
removes every link of a master. Entries below the threshold are left alone,
and rejected entries are never linked.
"""

import logging
from dataclasses import dataclass

from application.exceptions import ExerciseNotFoundError, StorageUnavailableError
from application.ports.exercise_identity_repository import (
    ExerciseLinkRepository,
    MasterExerciseRepository,
)
from application.use_cases.link_manager import ExerciseLinkService
from backend.core.normalize import normalize_exercise_name
from backend.core.similarity import exercise_similarity

logger = logging.getLogger(__name__)


@dataclass
class BulkLinkResult:
    """Number of entries linked by bulk_link_similar."""

    linked_count: int


@dataclass
class BulkUnlinkResult:
    """Number of links removed by bulk_unlink_all."""

    unlinked_count: int


class BulkLinkService:
    """Batch link/unlink built on the link service's unlinked-entry scan."""

    def __init__(
        self,
        master_repo: MasterExerciseRepository,
        link_repo: ExerciseLinkRepository,
        link_service: ExerciseLinkService,
    ):
        self._masters = master_repo
        self._links = link_repo
        self._link_service = link_service

    def bulk_link_similar(
        self,
        user_id: str,
        master_id: int,
        minimum_similarity: float,
    ) -> BulkLinkResult:
        """
        Link every unlinked, non-rejected entry scoring at least minimum_similarity.

        Returns the number of links actually written; an entry whose write
        fails is logged and not counted.

        Raises:
            ExerciseNotFoundError: master absent or owned by another user
        """
        try:
            master = self._masters.get(user_id, master_id)
        except StorageUnavailableError as e:
            logger.warning(f"Could not read master exercise {master_id}: {e}")
            master = None
        if master is None:
            raise ExerciseNotFoundError("Master exercise not found")

        linked_count = 0
        for entry in self._link_service.list_unlinked_entries(user_id):
            score = exercise_similarity(master.normalized_name, normalize_exercise_name(entry.exercise_name))
            if score < minimum_similarity:
                continue
            try:
                self._links.upsert(user_id, entry.id, master_id)
            except StorageUnavailableError as e:
                logger.warning(f"Bulk link of template exercise {entry.id} failed: {e}")
                continue
            linked_count += 1

        logger.info(
            f"Bulk linked {linked_count} template exercises to master {master_id} "
            f"(minimum similarity {minimum_similarity})"
        )
        return BulkLinkResult(linked_count=linked_count)

    def bulk_unlink_all(self, user_id: str, master_id: int) -> BulkUnlinkResult:
        """Remove every link pointing at a master. Zero is a valid result."""
        removed = self._links.delete_for_master(user_id, master_id)
        logger.info(f"Bulk unlinked {removed} template exercises from master {master_id}")
        return BulkUnlinkResult(unlinked_count=removed)
