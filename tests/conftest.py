"""
Shared pytest fixtures.

Provides fresh in-memory fakes, the use cases wired to them, and a TestClient
whose repository providers are overridden with the same fakes.
"""
import pytest
from fastapi.testclient import TestClient

from api import deps
from application.use_cases import (
    BulkLinkService,
    ExerciseLinkService,
    LinkSuggestionService,
    MasterExerciseRegistry,
    MigrateExercisesUseCase,
)
from tests.fakes import ExerciseIdentityFakes, create_exercise_identity_fakes

TEST_USER = "user-1"
OTHER_USER = "user-2"


@pytest.fixture
def fakes() -> ExerciseIdentityFakes:
    """Empty fakes; tests seed what they need."""
    return create_exercise_identity_fakes(user_id=TEST_USER)


@pytest.fixture
def registry(fakes) -> MasterExerciseRegistry:
    return MasterExerciseRegistry(master_repo=fakes.masters, link_repo=fakes.links)


@pytest.fixture
def link_service(fakes) -> ExerciseLinkService:
    return ExerciseLinkService(fakes.masters, fakes.entries, fakes.links)


@pytest.fixture
def suggestion_service(fakes, link_service) -> LinkSuggestionService:
    return LinkSuggestionService(fakes.masters, fakes.entries, fakes.links, link_service)


@pytest.fixture
def bulk_service(fakes, link_service) -> BulkLinkService:
    return BulkLinkService(fakes.masters, fakes.links, link_service)


@pytest.fixture
def migration(fakes, link_service) -> MigrateExercisesUseCase:
    return MigrateExercisesUseCase(fakes.masters, fakes.links, link_service)


@pytest.fixture
def app_with_fakes(fakes):
    """The FastAPI app with repositories replaced by fakes. Auth is not overridden."""
    from backend.main import app

    app.dependency_overrides[deps.get_master_exercise_repo] = lambda: fakes.masters
    app.dependency_overrides[deps.get_template_exercise_repo] = lambda: fakes.entries
    app.dependency_overrides[deps.get_exercise_link_repo] = lambda: fakes.links

    yield app

    app.dependency_overrides.clear()


@pytest.fixture
def client(app_with_fakes) -> TestClient:
    """TestClient authenticated as TEST_USER."""
    app_with_fakes.dependency_overrides[deps.get_current_user] = lambda: TEST_USER
    return TestClient(app_with_fakes)


@pytest.fixture
def anonymous_client(app_with_fakes) -> TestClient:
    """TestClient without an authentication override."""
    return TestClient(app_with_fakes)
