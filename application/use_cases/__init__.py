"""
Application Use Cases for the Exercise Identity service.

This package contains application-level use cases that orchestrate domain logic
and coordinate between ports/adapters.

Architecture follows Clean Architecture / Hexagonal pattern:
- Use cases orchestrate domain objects and repository ports
- Dependencies are injected via constructors for testability
- Use cases return domain models and result dataclasses, not API responses

Usage:
    from application.use_cases import MasterExerciseRegistry, ExerciseLinkService

    registry = MasterExerciseRegistry(master_repo=master_repo, link_repo=link_repo)
    master = registry.create_or_get(user_id, "Bench Press")
"""

from application.use_cases.master_registry import (
    MasterExerciseRegistry,
    MasterSearchPage,
    MasterWithLinkCount,
    MergeResult,
    SimilarMaster,
)
from application.use_cases.link_manager import (
    ExerciseLinkService,
    TemplateLinkRow,
)
from application.use_cases.link_suggestions import (
    LinkedEntry,
    LinkingDetails,
    LinkSuggestionService,
    PotentialLink,
)
from application.use_cases.bulk_linking import (
    BulkLinkResult,
    BulkLinkService,
    BulkUnlinkResult,
)
from application.use_cases.migrate_exercises import (
    MigrateExercisesUseCase,
    MigrationResult,
    MigrationStatus,
)

__all__ = [
    # Master registry
    "MasterExerciseRegistry",
    "MasterSearchPage",
    "MasterWithLinkCount",
    "MergeResult",
    "SimilarMaster",
    # Links
    "ExerciseLinkService",
    "TemplateLinkRow",
    # Suggestions
    "LinkSuggestionService",
    "LinkingDetails",
    "LinkedEntry",
    "PotentialLink",
    # Bulk operations
    "BulkLinkService",
    "BulkLinkResult",
    "BulkUnlinkResult",
    # Migration
    "MigrateExercisesUseCase",
    "MigrationResult",
    "MigrationStatus",
]
