"""
Supabase implementation of the exercise identity repositories.

Tables:
- master_exercises: unique (user_id, normalized_name)
- template_exercises: written by template saves; linking_rejected is written here
- exercise_links: unique (template_exercise_id), cascades with both sides

Every backend failure is logged and re-raised as StorageUnavailableError so
the use cases can decide whether it is fatal.
"""
import logging
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

from supabase import Client

from application.exceptions import MasterExerciseConflictError, StorageUnavailableError
from application.ports.exercise_identity_repository import NameCursor
from domain.models.exercise_identity import (
    ExerciseLink,
    MasterExercise,
    TemplateExercise,
)

logger = logging.getLogger(__name__)

MASTER_TABLE = "master_exercises"
TEMPLATE_EXERCISE_TABLE = "template_exercises"
LINK_TABLE = "exercise_links"

# Postgres unique_violation
UNIQUE_VIOLATION = "23505"


def _execute(query: Any, description: str) -> List[Dict[str, Any]]:
    """Run a PostgREST query, translating any failure to StorageUnavailableError."""
    try:
        result = query.execute()
    except Exception as e:
        logger.exception(f"Error {description}")
        raise StorageUnavailableError(f"Error {description}: {e}") from e
    return result.data or []


def _is_unique_violation(error: Exception) -> bool:
    return getattr(error, "code", None) == UNIQUE_VIOLATION


def _escape_ilike(value: str) -> str:
    """Backslash-escape ILIKE wildcards in user input."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def _quote_filter_value(value: str) -> str:
    """Double-quote a value for use inside a PostgREST or=() filter."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def _after_filter(after: NameCursor) -> str:
    """Keyset filter for rows strictly after (normalized_name, id)."""
    name, row_id = after
    quoted = _quote_filter_value(name)
    return f"normalized_name.gt.{quoted},and(normalized_name.eq.{quoted},id.gt.{row_id})"


class SupabaseMasterExerciseRepository:
    """Supabase implementation of MasterExerciseRepository."""

    def __init__(self, client: Client):
        """
        Initialize with Supabase client.

        Args:
            client: Supabase client instance (injected, not global)
        """
        self._client = client

    def _table(self):
        return self._client.table(MASTER_TABLE)

    def get(self, user_id: str, master_id: int) -> Optional[MasterExercise]:
        rows = _execute(
            self._table().select("*").eq("user_id", user_id).eq("id", master_id).limit(1),
            f"fetching master exercise {master_id}",
        )
        return MasterExercise.model_validate(rows[0]) if rows else None

    def get_many(self, user_id: str, master_ids: List[int]) -> List[MasterExercise]:
        if not master_ids:
            return []
        rows = _execute(
            self._table().select("*").eq("user_id", user_id).in_("id", master_ids),
            "fetching master exercises by id",
        )
        return [MasterExercise.model_validate(r) for r in rows]

    def find_by_normalized_name(self, user_id: str, normalized_name: str) -> Optional[MasterExercise]:
        rows = _execute(
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .eq("normalized_name", normalized_name)
            .limit(1),
            f"finding master exercise '{normalized_name}'",
        )
        return MasterExercise.model_validate(rows[0]) if rows else None

    def list_for_user(self, user_id: str) -> List[MasterExercise]:
        rows = _execute(
            self._table().select("*").eq("user_id", user_id).order("name").order("id"),
            "listing master exercises",
        )
        return [MasterExercise.model_validate(r) for r in rows]

    def insert_or_get(
        self, user_id: str, name: str, normalized_name: str
    ) -> Tuple[Optional[MasterExercise], bool]:
        """
        Conflict-safe insert.

        ON CONFLICT DO NOTHING returns no row when another writer won the
        race, so the winner's row is read back and reported as not created.
        """
        rows = _execute(
            self._table().upsert(
                {"user_id": user_id, "name": name, "normalized_name": normalized_name},
                on_conflict="user_id,normalized_name",
                ignore_duplicates=True,
            ),
            f"inserting master exercise '{normalized_name}'",
        )
        if rows:
            return MasterExercise.model_validate(rows[0]), True
        return self.find_by_normalized_name(user_id, normalized_name), False

    def insert(
        self,
        user_id: str,
        name: str,
        normalized_name: str,
        *,
        tags: Optional[str] = None,
        muscle_group: Optional[str] = None,
    ) -> Optional[MasterExercise]:
        query = self._table().insert({
            "user_id": user_id,
            "name": name,
            "normalized_name": normalized_name,
            "tags": tags,
            "muscle_group": muscle_group,
        })
        try:
            result = query.execute()
        except Exception as e:
            if _is_unique_violation(e):
                raise MasterExerciseConflictError(normalized_name) from e
            logger.exception(f"Error creating master exercise '{normalized_name}'")
            raise StorageUnavailableError(f"Error creating master exercise: {e}") from e
        rows = result.data or []
        return MasterExercise.model_validate(rows[0]) if rows else None

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
        query = (
            self._table()
            .update({
                "name": name,
                "normalized_name": normalized_name,
                "tags": tags,
                "muscle_group": muscle_group,
                "updated_at": datetime.utcnow().isoformat(),
            })
            .eq("user_id", user_id)
            .eq("id", master_id)
        )
        try:
            result = query.execute()
        except Exception as e:
            if _is_unique_violation(e):
                raise MasterExerciseConflictError(
                    normalized_name,
                    message="Another exercise with this name already exists",
                ) from e
            logger.exception(f"Error updating master exercise {master_id}")
            raise StorageUnavailableError(f"Error updating master exercise: {e}") from e
        rows = result.data or []
        return MasterExercise.model_validate(rows[0]) if rows else None

    def delete(self, user_id: str, master_id: int) -> bool:
        rows = _execute(
            self._table().delete().eq("user_id", user_id).eq("id", master_id),
            f"deleting master exercise {master_id}",
        )
        return len(rows) > 0

    def search_by_prefix(
        self,
        user_id: str,
        prefix: str,
        *,
        limit: int,
        after: Optional[NameCursor] = None,
    ) -> List[MasterExercise]:
        query = (
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .ilike("normalized_name", f"{_escape_ilike(prefix)}%")
        )
        if after is not None:
            query = query.or_(_after_filter(after))
        rows = _execute(
            query.order("normalized_name").order("id").limit(limit),
            f"searching master exercises by prefix '{prefix}'",
        )
        return [MasterExercise.model_validate(r) for r in rows]

    def search_by_substring(
        self,
        user_id: str,
        fragment: str,
        *,
        limit: int,
        after: Optional[NameCursor] = None,
    ) -> List[MasterExercise]:
        escaped = _escape_ilike(fragment)
        query = (
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .ilike("normalized_name", f"%{escaped}%")
            .not_.ilike("normalized_name", f"{escaped}%")
        )
        if after is not None:
            query = query.or_(_after_filter(after))
        rows = _execute(
            query.order("normalized_name").order("id").limit(limit),
            f"searching master exercises containing '{fragment}'",
        )
        return [MasterExercise.model_validate(r) for r in rows]

    def latest_created_at(self, user_id: str) -> Optional[datetime]:
        rows = _execute(
            self._table()
            .select("created_at")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .limit(1),
            "fetching latest master exercise",
        )
        if not rows or not rows[0].get("created_at"):
            return None
        return datetime.fromisoformat(rows[0]["created_at"].replace("Z", "+00:00"))


class SupabaseTemplateExerciseRepository:
    """Supabase implementation of TemplateExerciseRepository."""

    def __init__(self, client: Client):
        self._client = client

    def _table(self):
        return self._client.table(TEMPLATE_EXERCISE_TABLE)

    def get(self, user_id: str, entry_id: int) -> Optional[TemplateExercise]:
        rows = _execute(
            self._table().select("*").eq("user_id", user_id).eq("id", entry_id).limit(1),
            f"fetching template exercise {entry_id}",
        )
        return TemplateExercise.model_validate(rows[0]) if rows else None

    def get_many(self, user_id: str, entry_ids: List[int]) -> List[TemplateExercise]:
        if not entry_ids:
            return []
        rows = _execute(
            self._table().select("*").eq("user_id", user_id).in_("id", entry_ids),
            "fetching template exercises by id",
        )
        return [TemplateExercise.model_validate(r) for r in rows]

    def list_for_template(self, user_id: str, template_id: int) -> List[TemplateExercise]:
        rows = _execute(
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .eq("template_id", template_id)
            .order("order_index"),
            f"listing exercises of template {template_id}",
        )
        return [TemplateExercise.model_validate(r) for r in rows]

    def list_for_user(self, user_id: str) -> List[TemplateExercise]:
        rows = _execute(
            self._table().select("*").eq("user_id", user_id).order("id"),
            "listing template exercises",
        )
        return [TemplateExercise.model_validate(r) for r in rows]

    def set_linking_rejected(self, user_id: str, entry_id: int, rejected: bool) -> bool:
        rows = _execute(
            self._table()
            .update({"linking_rejected": rejected})
            .eq("user_id", user_id)
            .eq("id", entry_id),
            f"updating linking_rejected on template exercise {entry_id}",
        )
        return len(rows) > 0


class SupabaseExerciseLinkRepository:
    """Supabase implementation of ExerciseLinkRepository."""

    def __init__(self, client: Client):
        self._client = client

    def _table(self):
        return self._client.table(LINK_TABLE)

    def get_for_entry(self, user_id: str, entry_id: int) -> Optional[ExerciseLink]:
        rows = _execute(
            self._table()
            .select("*")
            .eq("user_id", user_id)
            .eq("template_exercise_id", entry_id)
            .limit(1),
            f"fetching link of template exercise {entry_id}",
        )
        return ExerciseLink.model_validate(rows[0]) if rows else None

    def list_for_entries(self, user_id: str, entry_ids: List[int]) -> List[ExerciseLink]:
        if not entry_ids:
            return []
        rows = _execute(
            self._table().select("*").eq("user_id", user_id).in_("template_exercise_id", entry_ids),
            "fetching links of template exercises",
        )
        return [ExerciseLink.model_validate(r) for r in rows]

    def list_for_master(self, user_id: str, master_id: int) -> List[ExerciseLink]:
        rows = _execute(
            self._table().select("*").eq("user_id", user_id).eq("master_exercise_id", master_id),
            f"fetching links of master exercise {master_id}",
        )
        return [ExerciseLink.model_validate(r) for r in rows]

    def list_for_user(self, user_id: str) -> List[ExerciseLink]:
        rows = _execute(
            self._table().select("*").eq("user_id", user_id),
            "listing exercise links",
        )
        return [ExerciseLink.model_validate(r) for r in rows]

    def upsert(self, user_id: str, template_exercise_id: int, master_exercise_id: int) -> Optional[ExerciseLink]:
        rows = _execute(
            self._table().upsert(
                {
                    "template_exercise_id": template_exercise_id,
                    "master_exercise_id": master_exercise_id,
                    "user_id": user_id,
                },
                on_conflict="template_exercise_id",
            ),
            f"upserting link of template exercise {template_exercise_id}",
        )
        return ExerciseLink.model_validate(rows[0]) if rows else None

    def delete_for_entry(self, user_id: str, entry_id: int) -> int:
        rows = _execute(
            self._table().delete().eq("user_id", user_id).eq("template_exercise_id", entry_id),
            f"deleting link of template exercise {entry_id}",
        )
        return len(rows)

    def delete_for_master(self, user_id: str, master_id: int) -> int:
        rows = _execute(
            self._table().delete().eq("user_id", user_id).eq("master_exercise_id", master_id),
            f"deleting links of master exercise {master_id}",
        )
        return len(rows)

    def reassign_master(self, user_id: str, source_master_id: int, target_master_id: int) -> int:
        rows = _execute(
            self._table()
            .update({"master_exercise_id": target_master_id})
            .eq("user_id", user_id)
            .eq("master_exercise_id", source_master_id),
            f"moving links of master exercise {source_master_id} to {target_master_id}",
        )
        return len(rows)
