"""
Link Suggestion Service.

Read-only planning view for one master exercise: which entries are linked to
it, and which unlinked entries look like it. Never writes.
"""

import logging
from dataclasses import dataclass, field
from typing import List

from application.exceptions import ExerciseNotFoundError, StorageUnavailableError
from application.ports.exercise_identity_repository import (
    ExerciseLinkRepository,
    MasterExerciseRepository,
    TemplateExerciseRepository,
)
from application.use_cases.link_manager import ExerciseLinkService
from backend.core.normalize import normalize_exercise_name
from backend.core.similarity import exercise_similarity
from domain.models.exercise_identity import MasterExercise

logger = logging.getLogger(__name__)


@dataclass
class LinkedEntry:
    """A template exercise entry currently linked to the master."""

    template_exercise_id: int
    exercise_name: str
    template_id: int


@dataclass
class PotentialLink:
    """An unlinked entry scored against the master's normalized name."""

    template_exercise_id: int
    exercise_name: str
    template_id: int
    similarity: float


@dataclass
class LinkingDetails:
    """Planning view for linking entries to one master exercise."""

    master_exercise_name: str
    linked_entries: List[LinkedEntry] = field(default_factory=list)
    potential_links: List[PotentialLink] = field(default_factory=list)


class LinkSuggestionService:
    """
    Ranks a user's unlinked entries against a master exercise.

    Rejected entries are never offered.
    """

    def __init__(
        self,
        master_repo: MasterExerciseRepository,
        template_repo: TemplateExerciseRepository,
        link_repo: ExerciseLinkRepository,
        link_service: ExerciseLinkService,
    ):
        self._masters = master_repo
        self._entries = template_repo
        self._links = link_repo
        self._link_service = link_service

    def _get_master(self, user_id: str, master_id: int) -> MasterExercise:
        try:
            master = self._masters.get(user_id, master_id)
        except StorageUnavailableError as e:
            logger.warning(f"Could not read master exercise {master_id}: {e}")
            master = None
        if master is None:
            raise ExerciseNotFoundError("Master exercise not found")
        return master

    def get_linking_details(self, user_id: str, master_id: int) -> LinkingDetails:
        """
        Linked entries and ranked link candidates for a master.

        potential_links are sorted by descending similarity, ties by entry id.
        A storage failure while scanning degrades to empty lists.

        Raises:
            ExerciseNotFoundError: master absent or owned by another user
        """
        master = self._get_master(user_id, master_id)
        details = LinkingDetails(master_exercise_name=master.name)

        try:
            links = self._links.list_for_master(user_id, master_id)
            linked = self._entries.get_many(user_id, [link.template_exercise_id for link in links]) if links else []
        except StorageUnavailableError as e:
            logger.warning(f"Linked entry scan degraded to empty for master {master_id}: {e}")
            linked = []

        details.linked_entries = [
            LinkedEntry(
                template_exercise_id=entry.id,
                exercise_name=entry.exercise_name,
                template_id=entry.template_id,
            )
            for entry in sorted(linked, key=lambda e: e.id)
        ]

        try:
            candidates = self._link_service.list_unlinked_entries(user_id)
        except StorageUnavailableError as e:
            logger.warning(f"Candidate scan degraded to empty for master {master_id}: {e}")
            candidates = []

        potential = [
            PotentialLink(
                template_exercise_id=entry.id,
                exercise_name=entry.exercise_name,
                template_id=entry.template_id,
                similarity=exercise_similarity(
                    master.normalized_name,
                    normalize_exercise_name(entry.exercise_name),
                ),
            )
            for entry in candidates
        ]
        potential.sort(key=lambda p: (-p.similarity, p.template_exercise_id))
        details.potential_links = potential
        return details
