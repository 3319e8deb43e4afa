"""
Exercise Link Service.

Owns the association between template exercise entries and master exercises,
and the sticky "linking rejected" flag that hides an entry from suggestions.

Ownership checks fail closed: if an entry or master cannot be read, it is
treated as not found and nothing is written. The final link write is
best-effort and returns the requested link even when the store fails; the
rejection flag write is not, because it gates future suggestions.
"""

import logging
from dataclasses import dataclass
from typing import Dict, List, Optional

from application.exceptions import ExerciseNotFoundError, StorageUnavailableError
from application.ports.exercise_identity_repository import (
    ExerciseLinkRepository,
    MasterExerciseRepository,
    TemplateExerciseRepository,
)
from domain.models.exercise_identity import (
    ExerciseLink,
    Linked,
    LinkResolution,
    MasterExercise,
    TemplateExercise,
    Unlinked,
)

logger = logging.getLogger(__name__)


@dataclass
class TemplateLinkRow:
    """Link state of one entry of a template, for review screens."""

    template_exercise_id: int
    exercise_name: str
    master_exercise_id: Optional[int]
    master_exercise_name: Optional[str]
    is_linked: bool


class ExerciseLinkService:
    """
    Link/unlink template exercise entries to master exercises.

    Usage:
        >>> service = ExerciseLinkService(master_repo, template_repo, link_repo)
        >>> link = service.link_to_master("user-123", entry_id=7, master_id=3)
        >>> link.master_exercise_id
        3
    """

    def __init__(
        self,
        master_repo: MasterExerciseRepository,
        template_repo: TemplateExerciseRepository,
        link_repo: ExerciseLinkRepository,
    ):
        self._masters = master_repo
        self._entries = template_repo
        self._links = link_repo

    def _verified_entry(self, user_id: str, entry_id: int) -> TemplateExercise:
        try:
            entry = self._entries.get(user_id, entry_id)
        except StorageUnavailableError as e:
            logger.warning(f"Could not verify template exercise {entry_id}: {e}")
            entry = None
        if entry is None:
            raise ExerciseNotFoundError("Template exercise not found")
        return entry

    def _verified_master(self, user_id: str, master_id: int) -> MasterExercise:
        try:
            master = self._masters.get(user_id, master_id)
        except StorageUnavailableError as e:
            logger.warning(f"Could not verify master exercise {master_id}: {e}")
            master = None
        if master is None:
            raise ExerciseNotFoundError("Master exercise not found")
        return master

    def link_to_master(self, user_id: str, entry_id: int, master_id: int) -> ExerciseLink:
        """
        Link an entry to a master, replacing any previous link of the entry.

        Accepting a link clears the entry's linking_rejected flag.

        Raises:
            ExerciseNotFoundError: entry or master absent, foreign, or unreadable
        """
        entry = self._verified_entry(user_id, entry_id)
        self._verified_master(user_id, master_id)

        requested = ExerciseLink(
            template_exercise_id=entry_id,
            master_exercise_id=master_id,
            user_id=user_id,
        )
        try:
            link = self._links.upsert(user_id, entry_id, master_id)
        except StorageUnavailableError as e:
            logger.warning(f"Link upsert failed for template exercise {entry_id}, returning requested link: {e}")
            return requested

        if entry.linking_rejected:
            try:
                self._entries.set_linking_rejected(user_id, entry_id, False)
            except StorageUnavailableError as e:
                logger.warning(f"Could not clear linking_rejected on template exercise {entry_id}: {e}")

        return link or requested

    def unlink(self, user_id: str, entry_id: int) -> bool:
        """Remove the link of an entry. Idempotent; always reports success."""
        try:
            removed = self._links.delete_for_entry(user_id, entry_id)
        except StorageUnavailableError as e:
            logger.warning(f"Unlink of template exercise {entry_id} failed: {e}")
            return True
        if removed:
            logger.debug(f"Unlinked template exercise {entry_id} for user {user_id}")
        return True

    def is_rejected(self, user_id: str, entry_id: int) -> bool:
        """Sticky rejection flag of an entry; False when the entry cannot be read."""
        try:
            entry = self._entries.get(user_id, entry_id)
        except StorageUnavailableError as e:
            logger.warning(f"Could not read template exercise {entry_id}: {e}")
            return False
        return entry.linking_rejected if entry is not None else False

    def reject_linking(self, user_id: str, entry_id: int) -> bool:
        """
        Mark an entry as "do not suggest links".

        Raises:
            ExerciseNotFoundError: entry absent, foreign, or unreadable
            StorageUnavailableError: the flag could not be written
        """
        self._verified_entry(user_id, entry_id)
        if not self._entries.set_linking_rejected(user_id, entry_id, True):
            # Removed between the ownership check and the write
            raise ExerciseNotFoundError("Template exercise not found")
        return True

    def resolve_link(self, user_id: str, entry_id: int) -> LinkResolution:
        """Resolve the link state of one entry."""
        link = self._links.get_for_entry(user_id, entry_id)
        if link is None:
            return Unlinked()
        return Linked(master_exercise_id=link.master_exercise_id)

    def get_links_for_template(self, user_id: str, template_id: int) -> List[TemplateLinkRow]:
        """One row per entry of the template, in template order, with its link state."""
        entries = self._entries.list_for_template(user_id, template_id)
        if not entries:
            return []

        links = self._links.list_for_entries(user_id, [e.id for e in entries])
        resolutions: Dict[int, LinkResolution] = {
            link.template_exercise_id: Linked(master_exercise_id=link.master_exercise_id)
            for link in links
        }

        master_ids = sorted({r.master_exercise_id for r in resolutions.values()})
        masters = {m.id: m for m in self._masters.get_many(user_id, master_ids)} if master_ids else {}

        rows = []
        for entry in entries:
            resolution = resolutions.get(entry.id, Unlinked())
            if isinstance(resolution, Linked):
                master = masters.get(resolution.master_exercise_id)
                rows.append(TemplateLinkRow(
                    template_exercise_id=entry.id,
                    exercise_name=entry.exercise_name,
                    master_exercise_id=resolution.master_exercise_id,
                    master_exercise_name=master.name if master else None,
                    is_linked=True,
                ))
            else:
                rows.append(TemplateLinkRow(
                    template_exercise_id=entry.id,
                    exercise_name=entry.exercise_name,
                    master_exercise_id=None,
                    master_exercise_name=None,
                    is_linked=False,
                ))
        return rows

    def list_unlinked_entries(self, user_id: str, *, include_rejected: bool = False) -> List[TemplateExercise]:
        """
        Entries of the user with no link, ordered by id.

        Rejected entries are skipped unless include_rejected is set.
        """
        entries = self._entries.list_for_user(user_id)
        linked_ids = {link.template_exercise_id for link in self._links.list_for_user(user_id)}
        return [
            entry
            for entry in entries
            if entry.id not in linked_ids and (include_rejected or not entry.linking_rejected)
        ]
