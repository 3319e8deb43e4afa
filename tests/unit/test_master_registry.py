"""
Unit tests for MasterExerciseRegistry.

Uses the in-memory fakes; storage failures are simulated with fail_on().
"""
from concurrent.futures import ThreadPoolExecutor

import pytest

from application.exceptions import (
    ExerciseNotFoundError,
    InvalidExerciseNameError,
    InvalidMergeError,
    MasterExerciseConflictError,
)
from application.use_cases.master_registry import (
    CONTAINS_PASS,
    MasterExerciseRegistry,
    decode_search_cursor,
    encode_search_cursor,
)
from tests.conftest import OTHER_USER, TEST_USER

pytestmark = pytest.mark.unit


def _names(masters):
    return [m.normalized_name for m in masters]


# =============================================================================
# create_or_get
# =============================================================================


class TestCreateOrGet:
    """Tests for get-or-create by normalized name."""

    def test_creates_master_with_normalized_key(self, registry, fakes):
        master = registry.create_or_get(TEST_USER, "  Bench   Press ")

        assert master.is_persisted
        assert master.normalized_name == "bench press"
        assert master.name == "  Bench   Press "
        assert len(fakes.masters.all()) == 1

    def test_equivalent_name_returns_existing_master(self, registry, fakes):
        first = registry.create_or_get(TEST_USER, "Bench Press")
        second = registry.create_or_get(TEST_USER, "bench  press")

        assert second.id == first.id
        assert len(fakes.masters.all()) == 1

    def test_first_display_name_wins(self, registry):
        registry.create_or_get(TEST_USER, "Bench Press")
        again = registry.create_or_get(TEST_USER, "BENCH PRESS")

        assert again.name == "Bench Press"

    def test_masters_are_scoped_per_user(self, registry):
        mine = registry.create_or_get(TEST_USER, "Bench Press")
        theirs = registry.create_or_get(OTHER_USER, "Bench Press")

        assert mine.id != theirs.id
        assert theirs.user_id == OTHER_USER

    def test_concurrent_calls_resolve_to_one_master(self, registry, fakes):
        """Racing callers with equivalent names all get the single surviving row."""
        variants = ["Bench Press", "bench press", " BENCH  PRESS", "Bench\tPress"] * 8

        with ThreadPoolExecutor(max_workers=8) as pool:
            results = list(pool.map(lambda n: registry.create_or_get(TEST_USER, n), variants))

        assert len({m.id for m in results}) == 1
        assert len(fakes.masters.all()) == 1

    def test_lookup_failure_still_creates(self, registry, fakes):
        fakes.masters.fail_on("find_by_normalized_name")

        master = registry.create_or_get(TEST_USER, "Squat")

        assert master.is_persisted
        assert fakes.masters.calls["insert_or_get"] == 1

    def test_lookup_failure_returns_existing_row(self, registry, fakes):
        existing = fakes.masters.seed([{"user_id": TEST_USER, "name": "Squat"}])[0]
        fakes.masters.fail_on("find_by_normalized_name")

        master = registry.create_or_get(TEST_USER, "squat")

        assert master.id == existing.id
        assert len(fakes.masters.all()) == 1

    def test_insert_failure_returns_synthetic_record(self, registry, fakes):
        fakes.masters.fail_on("find_by_normalized_name", "insert_or_get")

        master = registry.create_or_get(TEST_USER, "Bench Press")

        assert master.id is None
        assert not master.is_persisted
        assert master.name == "Bench Press"
        assert master.normalized_name == "bench press"
        assert master.user_id == TEST_USER

    def test_insert_returning_no_row_returns_synthetic_record(self, registry, fakes):
        fakes.masters.insert_returns_nothing = True

        master = registry.create_or_get(TEST_USER, "Row")

        assert master.id is None
        assert fakes.masters.all() == []


# =============================================================================
# find_similar
# =============================================================================


@pytest.mark.parametrize("name", ["", "   ", " \t\n "])
def test_blank_names_are_rejected_before_storage(registry, fakes, name):
    existing = fakes.masters.seed([{"user_id": TEST_USER, "name": "Row"}])[0]

    with pytest.raises(InvalidExerciseNameError):
        registry.create_or_get(TEST_USER, name)
    with pytest.raises(InvalidExerciseNameError):
        registry.create(TEST_USER, name)
    with pytest.raises(InvalidExerciseNameError):
        registry.update(TEST_USER, existing.id, name)

    assert fakes.masters.total_calls == 0
    assert [m.normalized_name for m in fakes.masters.all()] == ["row"]


class TestFindSimilar:
    """Tests for similarity lookup over a user's masters."""

    @pytest.fixture(autouse=True)
    def seed(self, fakes):
        fakes.masters.seed([
            {"user_id": TEST_USER, "name": "Squat"},
            {"user_id": TEST_USER, "name": "Incline Bench Press"},
            {"user_id": TEST_USER, "name": "Bench Press"},
            {"user_id": OTHER_USER, "name": "Bench Press"},
        ])

    def test_best_match_first_and_threshold_applied(self, registry):
        matches = registry.find_similar(TEST_USER, "Bench  Press", threshold=0.5)

        assert _names(m.master for m in matches) == ["bench press", "incline bench press"]
        assert matches[0].similarity == 1.0
        assert matches[0].similarity >= matches[1].similarity

    def test_only_own_masters_are_scored(self, registry):
        matches = registry.find_similar(TEST_USER, "bench press", threshold=0.0)

        assert all(m.master.user_id == TEST_USER for m in matches)
        assert len(matches) == 3

    def test_storage_failure_degrades_to_empty(self, registry, fakes):
        fakes.masters.fail_on("list_for_user")

        assert registry.find_similar(TEST_USER, "bench press", threshold=0.5) == []


# =============================================================================
# search
# =============================================================================


class TestSearch:
    """Tests for paginated prefix-then-contains search."""

    @pytest.fixture(autouse=True)
    def seed(self, fakes):
        fakes.masters.seed([
            {"user_id": TEST_USER, "name": "Incline Bench Press"},
            {"user_id": TEST_USER, "name": "Bench Press"},
            {"user_id": TEST_USER, "name": "Squat"},
            {"user_id": TEST_USER, "name": "Close Grip Bench Press"},
            {"user_id": TEST_USER, "name": "Bench Dip"},
            {"user_id": OTHER_USER, "name": "Bench Row"},
        ])

    def test_blank_query_does_not_touch_storage(self, registry, fakes):
        page = registry.search(TEST_USER, "   ", page_size=20)

        assert page.items == []
        assert page.next_cursor is None
        assert fakes.masters.total_calls == 0

    def test_prefix_matches_come_before_contains_matches(self, registry):
        page = registry.search(TEST_USER, "Bench", page_size=20)

        assert _names(page.items) == [
            "bench dip",
            "bench press",
            "close grip bench press",
            "incline bench press",
        ]
        assert page.next_cursor is None

    def test_no_match(self, registry):
        page = registry.search(TEST_USER, "deadlift", page_size=20)

        assert page.items == []
        assert page.next_cursor is None

    @pytest.mark.parametrize("page_size", [1, 2, 3])
    def test_pages_cover_every_match_exactly_once(self, registry, page_size):
        collected = []
        cursor = None
        for _ in range(10):
            page = registry.search(TEST_USER, "bench", page_size=page_size, cursor=cursor)
            assert len(page.items) <= page_size
            collected.extend(page.items)
            cursor = page.next_cursor
            if cursor is None:
                break

        assert _names(collected) == [
            "bench dip",
            "bench press",
            "close grip bench press",
            "incline bench press",
        ]

    def test_page_filled_by_prefix_pass_points_at_contains_pass(self, registry):
        page = registry.search(TEST_USER, "bench", page_size=2)

        assert _names(page.items) == ["bench dip", "bench press"]
        assert decode_search_cursor(page.next_cursor) == (CONTAINS_PASS, None)

    def test_malformed_cursor_restarts_from_first_page(self, registry):
        first = registry.search(TEST_USER, "bench", page_size=2)
        restarted = registry.search(TEST_USER, "bench", page_size=2, cursor="garbage")

        assert _names(restarted.items) == _names(first.items)

    def test_storage_failure_degrades_to_empty_page(self, registry, fakes):
        fakes.masters.fail_on("search_by_substring")

        page = registry.search(TEST_USER, "bench", page_size=20)

        assert page.items == []
        assert page.next_cursor is None


class TestSearchCursor:
    """Tests for the opaque cursor encoding."""

    def test_cursor_is_url_safe(self):
        cursor = encode_search_cursor(CONTAINS_PASS, ("close grip bench press / ?", 12))
        assert "+" not in cursor
        assert "/" not in cursor

    @pytest.mark.parametrize("cursor", [
        "garbage",
        "W10=",  # JSON list
        "eyJwIjogN30=",  # unknown pass
        "eyJwIjogMCwgIm4iOiAiYSJ9",  # name without id
    ])
    def test_malformed_cursors_decode_to_none(self, cursor):
        assert decode_search_cursor(cursor) is None


# =============================================================================
# Management
# =============================================================================


class TestListWithLinkCounts:
    """Tests for listing masters with their link counts."""

    def test_counts_links_per_master(self, registry, fakes):
        bench, squat = fakes.masters.seed([
            {"user_id": TEST_USER, "name": "Bench Press"},
            {"user_id": TEST_USER, "name": "Squat"},
        ])
        fakes.links.seed([
            {"template_exercise_id": 1, "master_exercise_id": bench.id, "user_id": TEST_USER},
            {"template_exercise_id": 2, "master_exercise_id": bench.id, "user_id": TEST_USER},
        ])

        rows = registry.list_with_link_counts(TEST_USER)

        assert [(r.master.name, r.linked_count) for r in rows] == [("Bench Press", 2), ("Squat", 0)]

    def test_storage_failure_degrades_to_empty(self, registry, fakes):
        fakes.masters.seed([{"user_id": TEST_USER, "name": "Squat"}])
        fakes.links.fail_on("list_for_user")

        assert registry.list_with_link_counts(TEST_USER) == []


class TestCreate:
    """Tests for explicit master creation."""

    def test_creates_with_tags_and_muscle_group(self, registry):
        master = registry.create(TEST_USER, "Front Squat", tags="legs,barbell", muscle_group="quads")

        assert master.is_persisted
        assert master.normalized_name == "front squat"
        assert master.tags == "legs,barbell"
        assert master.muscle_group == "quads"

    def test_equivalent_name_conflicts(self, registry):
        registry.create(TEST_USER, "Front Squat")

        with pytest.raises(MasterExerciseConflictError):
            registry.create(TEST_USER, "  FRONT   squat")

    def test_same_name_for_another_user_is_allowed(self, registry):
        registry.create(TEST_USER, "Front Squat")

        assert registry.create(OTHER_USER, "Front Squat").user_id == OTHER_USER


class TestUpdate:
    """Tests for renaming a master."""

    def test_rename_keeps_links(self, registry, fakes):
        master = fakes.masters.seed([{"user_id": TEST_USER, "name": "Benchpress"}])[0]
        fakes.links.seed([{"template_exercise_id": 1, "master_exercise_id": master.id, "user_id": TEST_USER}])

        updated = registry.update(TEST_USER, master.id, "Bench Press")

        assert updated.id == master.id
        assert updated.normalized_name == "bench press"
        assert fakes.links.get_for_entry(TEST_USER, 1).master_exercise_id == master.id

    def test_rename_to_own_name_with_new_casing(self, registry, fakes):
        master = fakes.masters.seed([{"user_id": TEST_USER, "name": "bench press"}])[0]

        assert registry.update(TEST_USER, master.id, "Bench Press").name == "Bench Press"

    def test_rename_onto_another_master_conflicts(self, registry, fakes):
        bench, squat = fakes.masters.seed([
            {"user_id": TEST_USER, "name": "Bench Press"},
            {"user_id": TEST_USER, "name": "Squat"},
        ])

        with pytest.raises(MasterExerciseConflictError):
            registry.update(TEST_USER, squat.id, "bench press")

    def test_foreign_master_is_not_found(self, registry, fakes):
        theirs = fakes.masters.seed([{"user_id": OTHER_USER, "name": "Squat"}])[0]

        with pytest.raises(ExerciseNotFoundError):
            registry.update(TEST_USER, theirs.id, "Back Squat")


class TestMerge:
    """Tests for merging masters."""

    def test_moves_links_and_deletes_source(self, registry, fakes):
        source, target = fakes.masters.seed([
            {"user_id": TEST_USER, "name": "DB Bench"},
            {"user_id": TEST_USER, "name": "Dumbbell Bench Press"},
        ])
        fakes.links.seed([
            {"template_exercise_id": 1, "master_exercise_id": source.id, "user_id": TEST_USER},
            {"template_exercise_id": 2, "master_exercise_id": source.id, "user_id": TEST_USER},
            {"template_exercise_id": 3, "master_exercise_id": target.id, "user_id": TEST_USER},
        ])

        result = registry.merge(TEST_USER, source.id, target.id)

        assert result.moved_links == 2
        assert result.source_name == "DB Bench"
        assert result.target_name == "Dumbbell Bench Press"
        assert {l.master_exercise_id for l in fakes.links.all()} == {target.id}
        assert [m.id for m in fakes.masters.all()] == [target.id]

    def test_merge_into_itself_is_invalid(self, registry, fakes):
        master = fakes.masters.seed([{"user_id": TEST_USER, "name": "Squat"}])[0]

        with pytest.raises(InvalidMergeError):
            registry.merge(TEST_USER, master.id, master.id)

    def test_foreign_master_is_not_found(self, registry, fakes):
        mine = fakes.masters.seed([{"user_id": TEST_USER, "name": "Squat"}])[0]
        theirs = fakes.masters.seed([{"user_id": OTHER_USER, "name": "Front Squat"}])[0]

        with pytest.raises(ExerciseNotFoundError):
            registry.merge(TEST_USER, mine.id, theirs.id)

        assert len(fakes.masters.all()) == 2


def test_registry_accepts_protocol_implementations(fakes):
    """The fakes satisfy the repository protocols used by the registry."""
    registry = MasterExerciseRegistry(master_repo=fakes.masters, link_repo=fakes.links)
    assert registry.create_or_get(TEST_USER, "Row").is_persisted
