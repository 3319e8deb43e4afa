"""
Master Exercise Registry.

Owns the canonical master exercises of each user: get-or-create by normalized
name, similarity lookup, paginated search, and the explicit create / rename /
merge management operations.

Failure policy:
- create_or_get never raises on storage failures; it hands back a synthetic,
  unsaved record so callers (template creation) always get a usable shape
- reads used for planning and search degrade to empty results
- explicit management operations (create, update, merge) propagate errors
"""

import base64
import binascii
import json
import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple

from application.exceptions import (
    ExerciseNotFoundError,
    InvalidExerciseNameError,
    InvalidMergeError,
    MasterExerciseConflictError,
    StorageUnavailableError,
)
from application.ports.exercise_identity_repository import (
    ExerciseLinkRepository,
    MasterExerciseRepository,
    NameCursor,
)
from backend.core.normalize import normalize_exercise_name
from backend.core.similarity import rank_by_similarity
from domain.models.exercise_identity import MasterExercise

logger = logging.getLogger(__name__)

PREFIX_PASS = 0
CONTAINS_PASS = 1


@dataclass
class SimilarMaster:
    """A master exercise scored against a query name."""

    master: MasterExercise
    similarity: float


@dataclass
class MasterSearchPage:
    """One page of master exercise search results."""

    items: List[MasterExercise] = field(default_factory=list)
    next_cursor: Optional[str] = None


@dataclass
class MasterWithLinkCount:
    """A master exercise with the number of entries linked to it."""

    master: MasterExercise
    linked_count: int


@dataclass
class MergeResult:
    """Result of merging one master exercise into another."""

    moved_links: int
    source_name: str
    target_name: str


def encode_search_cursor(search_pass: int, position: Optional[NameCursor]) -> str:
    """
    Encode a search position as an opaque, URL-safe token.

    A position of None means "start of this pass".
    """
    payload: Dict[str, object] = {"p": search_pass}
    if position is not None:
        payload["n"], payload["i"] = position
    return base64.urlsafe_b64encode(json.dumps(payload).encode("utf-8")).decode("ascii")


def _required_normalized_name(name: str) -> str:
    normalized_name = normalize_exercise_name(name)
    if not normalized_name:
        raise InvalidExerciseNameError()
    return normalized_name


def decode_search_cursor(cursor: str) -> Optional[Tuple[int, Optional[NameCursor]]]:
    """Decode a search cursor. Returns None for anything malformed."""
    try:
        payload = json.loads(base64.urlsafe_b64decode(cursor.encode("ascii")))
    except (binascii.Error, ValueError, UnicodeError):
        return None

    if not isinstance(payload, dict):
        return None
    search_pass = payload.get("p")
    if search_pass not in (PREFIX_PASS, CONTAINS_PASS):
        return None

    normalized_name = payload.get("n")
    master_id = payload.get("i")
    if normalized_name is None and master_id is None:
        return search_pass, None
    if not isinstance(normalized_name, str) or not isinstance(master_id, int):
        return None
    return search_pass, (normalized_name, master_id)


class MasterExerciseRegistry:
    """
    Registry of canonical master exercises, scoped per user.

    Usage:
        >>> registry = MasterExerciseRegistry(master_repo=master_repo, link_repo=link_repo)
        >>> master = registry.create_or_get("user-123", "Bench   Press")
        >>> master.normalized_name
        'bench press'
    """

    def __init__(
        self,
        master_repo: MasterExerciseRepository,
        link_repo: ExerciseLinkRepository,
    ):
        self._masters = master_repo
        self._links = link_repo

    # =========================================================================
    # Resolution
    # =========================================================================

    def create_or_get(self, user_id: str, name: str) -> MasterExercise:
        """
        Return the user's master exercise for name, creating it if needed.

        An existing master is returned unchanged (first creator's display
        name wins). A failed read is treated as "not found" and creation is
        attempted anyway; the conflict-safe insert still returns the existing
        row if there was one. If the insert fails too, a synthetic record
        with id=None is returned.

        Raises:
            InvalidExerciseNameError: name is blank once normalized
        """
        normalized_name = _required_normalized_name(name)

        try:
            existing = self._masters.find_by_normalized_name(user_id, normalized_name)
        except StorageUnavailableError as e:
            logger.warning(f"Master lookup failed for '{normalized_name}', attempting insert: {e}")
            existing = None
        if existing is not None:
            return existing

        try:
            created, _ = self._masters.insert_or_get(user_id, name, normalized_name)
        except StorageUnavailableError as e:
            logger.warning(f"Master insert failed for '{normalized_name}': {e}")
            created = None

        if created is None:
            return MasterExercise(
                id=None,
                user_id=user_id,
                name=name,
                normalized_name=normalized_name,
            )
        return created

    def find_similar(
        self,
        user_id: str,
        name: str,
        threshold: float,
    ) -> List[SimilarMaster]:
        """
        Score name against every master of the user.

        Keeps masters scoring at least threshold, best first, ties broken
        by normalized name.
        """
        normalized_name = normalize_exercise_name(name)
        try:
            masters = self._masters.list_for_user(user_id)
        except StorageUnavailableError as e:
            logger.warning(f"Similar master lookup degraded to empty for user {user_id}: {e}")
            return []

        by_id = {m.id: m for m in masters}
        ranked = rank_by_similarity(
            normalized_name,
            [(m.id, m.normalized_name) for m in masters],
            threshold=threshold,
        )
        return [SimilarMaster(master=by_id[master_id], similarity=score) for master_id, _, score in ranked]

    # =========================================================================
    # Search
    # =========================================================================

    def search(
        self,
        user_id: str,
        query: str,
        page_size: int,
        cursor: Optional[str] = None,
    ) -> MasterSearchPage:
        """
        Paginated search over the user's master exercise names.

        Prefix matches come first, then names containing the query. A blank
        query returns an empty page without touching storage. Any storage
        failure degrades to an empty page.
        """
        q = normalize_exercise_name(query)
        if not q:
            return MasterSearchPage()
        page_size = max(1, page_size)

        search_pass, position = PREFIX_PASS, None
        if cursor:
            decoded = decode_search_cursor(cursor)
            if decoded is not None:
                search_pass, position = decoded

        try:
            return self._search_passes(user_id, q, page_size, search_pass, position)
        except StorageUnavailableError as e:
            logger.warning(f"Master search degraded to empty for user {user_id}: {e}")
            return MasterSearchPage()

    def _search_passes(
        self,
        user_id: str,
        q: str,
        page_size: int,
        search_pass: int,
        position: Optional[NameCursor],
    ) -> MasterSearchPage:
        items: List[MasterExercise] = []

        if search_pass == PREFIX_PASS:
            rows = self._masters.search_by_prefix(user_id, q, limit=page_size + 1, after=position)
            if len(rows) > page_size:
                items = rows[:page_size]
                last = items[-1]
                return MasterSearchPage(
                    items=items,
                    next_cursor=encode_search_cursor(PREFIX_PASS, (last.normalized_name, last.id)),
                )
            items = list(rows)
            position = None

        # Fetch one extra row to learn whether another page exists
        remaining = page_size - len(items)
        seen = {m.id for m in items}
        rows = self._masters.search_by_substring(user_id, q, limit=remaining + 1, after=position)
        extra = [m for m in rows if m.id not in seen]

        next_cursor = None
        if len(extra) > remaining:
            extra = extra[:remaining]
            # An empty slice means the prefix pass filled the page exactly
            last_position = (extra[-1].normalized_name, extra[-1].id) if extra else None
            next_cursor = encode_search_cursor(CONTAINS_PASS, last_position)

        items.extend(extra)
        return MasterSearchPage(items=items, next_cursor=next_cursor)

    # =========================================================================
    # Management
    # =========================================================================

    def list_with_link_counts(self, user_id: str) -> List[MasterWithLinkCount]:
        """List the user's masters ordered by name, each with its link count."""
        try:
            masters = self._masters.list_for_user(user_id)
            links = self._links.list_for_user(user_id)
        except StorageUnavailableError as e:
            logger.warning(f"Master listing degraded to empty for user {user_id}: {e}")
            return []

        counts: Dict[int, int] = {}
        for link in links:
            counts[link.master_exercise_id] = counts.get(link.master_exercise_id, 0) + 1

        return [MasterWithLinkCount(master=m, linked_count=counts.get(m.id, 0)) for m in masters]

    def create(
        self,
        user_id: str,
        name: str,
        *,
        tags: Optional[str] = None,
        muscle_group: Optional[str] = None,
    ) -> MasterExercise:
        """
        Explicitly create a master exercise.

        Raises:
            MasterExerciseConflictError: the normalized name already exists
            InvalidExerciseNameError: name is blank once normalized
            StorageUnavailableError: the store failed
        """
        normalized_name = _required_normalized_name(name)
        if self._masters.find_by_normalized_name(user_id, normalized_name) is not None:
            raise MasterExerciseConflictError(normalized_name)

        created = self._masters.insert(
            user_id,
            name,
            normalized_name,
            tags=tags or None,
            muscle_group=muscle_group or None,
        )
        if created is None:
            raise StorageUnavailableError(f"Insert of master exercise '{normalized_name}' returned no row")
        logger.info(f"Created master exercise {created.id} '{normalized_name}' for user {user_id}")
        return created

    def update(
        self,
        user_id: str,
        master_id: int,
        name: str,
        *,
        tags: Optional[str] = None,
        muscle_group: Optional[str] = None,
    ) -> MasterExercise:
        """
        Rename a master exercise. Links follow the id, not the name.

        Raises:
            MasterExerciseConflictError: another master already has the new name
            InvalidExerciseNameError: name is blank once normalized
            ExerciseNotFoundError: master absent or owned by another user
        """
        normalized_name = _required_normalized_name(name)
        existing = self._masters.find_by_normalized_name(user_id, normalized_name)
        if existing is not None and existing.id != master_id:
            raise MasterExerciseConflictError(
                normalized_name,
                message="Another exercise with this name already exists",
            )

        updated = self._masters.update(
            user_id,
            master_id,
            name=name,
            normalized_name=normalized_name,
            tags=tags or None,
            muscle_group=muscle_group or None,
        )
        if updated is None:
            raise ExerciseNotFoundError("Master exercise not found")
        return updated

    def merge(self, user_id: str, source_id: int, target_id: int) -> MergeResult:
        """
        Merge source into target: move every link, then delete source.

        Raises:
            InvalidMergeError: source and target are the same master
            ExerciseNotFoundError: either master absent or owned by another user
        """
        if source_id == target_id:
            raise InvalidMergeError("Cannot merge an exercise with itself")

        source = self._masters.get(user_id, source_id)
        target = self._masters.get(user_id, target_id)
        if source is None or target is None:
            raise ExerciseNotFoundError("One or both exercises not found")

        moved = self._links.reassign_master(user_id, source_id, target_id)
        self._masters.delete(user_id, source_id)

        logger.info(
            f"Merged master exercise {source_id} into {target_id} for user {user_id} "
            f"({moved} links moved)"
        )
        return MergeResult(moved_links=moved, source_name=source.name, target_name=target.name)
