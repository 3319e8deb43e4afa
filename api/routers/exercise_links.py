"""
Exercise links router.

This router provides endpoints for:
- Linking and unlinking a template exercise to a master exercise
- The sticky "do not suggest links" flag of a template exercise
- Link state of a template's exercises
- The one-shot migration sweep and its status
"""
from datetime import datetime
from typing import List, Literal, Optional

from fastapi import APIRouter, Depends, Path
from pydantic import BaseModel, Field

from api.deps import (
    get_current_user,
    get_link_service,
    get_migrate_exercises_use_case,
)
from api.errors import http_error_for
from application.exceptions import ExerciseIdentityError
from application.use_cases import ExerciseLinkService, MigrateExercisesUseCase
from domain.models import Linked

router = APIRouter(
    prefix="/exercises",
    tags=["Exercise Links"],
)


# =============================================================================
# Request/Response Models
# =============================================================================


class LinkRequest(BaseModel):
    """Request model for linking an entry to a master exercise."""
    template_exercise_id: int
    master_exercise_id: int


class LinkResponse(BaseModel):
    id: Optional[int] = Field(None, description="None when the link could not be confirmed as stored")
    template_exercise_id: int
    master_exercise_id: int
    created_at: Optional[datetime] = None


class SuccessResponse(BaseModel):
    success: bool


class RejectedResponse(BaseModel):
    template_exercise_id: int
    linking_rejected: bool


class LinkStateResponse(BaseModel):
    """Link state of one entry."""
    status: Literal["linked", "unlinked"]
    master_exercise_id: Optional[int] = None


class TemplateLinkResponse(BaseModel):
    template_exercise_id: int
    exercise_name: str
    master_exercise_id: Optional[int] = None
    master_exercise_name: Optional[str] = None
    is_linked: bool


class MigrationResponse(BaseModel):
    migrated_exercises: int
    created_master_exercises: int
    created_links: int


class MigrationStatusResponse(BaseModel):
    unlinked_count: int
    last_migration_at: Optional[datetime] = None
    needs_migration: bool


# =============================================================================
# Link Endpoints
# =============================================================================


@router.post("/links", response_model=LinkResponse)
def link_to_master(
    request: LinkRequest,
    user_id: str = Depends(get_current_user),
    links: ExerciseLinkService = Depends(get_link_service),
) -> LinkResponse:
    """Link an entry to a master, replacing any link it already has."""
    try:
        link = links.link_to_master(user_id, request.template_exercise_id, request.master_exercise_id)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return LinkResponse(
        id=link.id,
        template_exercise_id=link.template_exercise_id,
        master_exercise_id=link.master_exercise_id,
        created_at=link.created_at,
    )


@router.delete("/links/{template_exercise_id}", response_model=SuccessResponse)
def unlink(
    template_exercise_id: int = Path(..., description="Template exercise id"),
    user_id: str = Depends(get_current_user),
    links: ExerciseLinkService = Depends(get_link_service),
) -> SuccessResponse:
    """Remove the link of an entry. Always succeeds."""
    return SuccessResponse(success=links.unlink(user_id, template_exercise_id))


@router.get("/entries/{template_exercise_id}/link", response_model=LinkStateResponse)
def resolve_link(
    template_exercise_id: int = Path(..., description="Template exercise id"),
    user_id: str = Depends(get_current_user),
    links: ExerciseLinkService = Depends(get_link_service),
) -> LinkStateResponse:
    """Linked or unlinked, with the master id when linked."""
    try:
        resolution = links.resolve_link(user_id, template_exercise_id)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    if isinstance(resolution, Linked):
        return LinkStateResponse(status="linked", master_exercise_id=resolution.master_exercise_id)
    return LinkStateResponse(status="unlinked")


@router.get("/entries/{template_exercise_id}/rejected", response_model=RejectedResponse)
def is_linking_rejected(
    template_exercise_id: int = Path(..., description="Template exercise id"),
    user_id: str = Depends(get_current_user),
    links: ExerciseLinkService = Depends(get_link_service),
) -> RejectedResponse:
    """Whether the entry is excluded from link suggestions."""
    return RejectedResponse(
        template_exercise_id=template_exercise_id,
        linking_rejected=links.is_rejected(user_id, template_exercise_id),
    )


@router.post("/entries/{template_exercise_id}/reject", response_model=SuccessResponse)
def reject_linking(
    template_exercise_id: int = Path(..., description="Template exercise id"),
    user_id: str = Depends(get_current_user),
    links: ExerciseLinkService = Depends(get_link_service),
) -> SuccessResponse:
    """Stop suggesting links for an entry until a link is accepted."""
    try:
        return SuccessResponse(success=links.reject_linking(user_id, template_exercise_id))
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e


@router.get("/templates/{template_id}/links", response_model=List[TemplateLinkResponse])
def get_links_for_template(
    template_id: int = Path(..., description="Workout template id"),
    user_id: str = Depends(get_current_user),
    links: ExerciseLinkService = Depends(get_link_service),
) -> List[TemplateLinkResponse]:
    """Link state of every exercise of a template, in template order."""
    try:
        rows = links.get_links_for_template(user_id, template_id)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return [
        TemplateLinkResponse(
            template_exercise_id=row.template_exercise_id,
            exercise_name=row.exercise_name,
            master_exercise_id=row.master_exercise_id,
            master_exercise_name=row.master_exercise_name,
            is_linked=row.is_linked,
        )
        for row in rows
    ]


# =============================================================================
# Migration Endpoints
# =============================================================================


@router.post("/migrate", response_model=MigrationResponse)
def migrate_exercises(
    user_id: str = Depends(get_current_user),
    migration: MigrateExercisesUseCase = Depends(get_migrate_exercises_use_case),
) -> MigrationResponse:
    """Give every unlinked entry of the caller a master exercise and link it."""
    try:
        result = migration.execute(user_id)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return MigrationResponse(
        migrated_exercises=result.migrated_exercises,
        created_master_exercises=result.created_master_exercises,
        created_links=result.created_links,
    )


@router.get("/migration-status", response_model=MigrationStatusResponse)
def get_migration_status(
    user_id: str = Depends(get_current_user),
    migration: MigrateExercisesUseCase = Depends(get_migrate_exercises_use_case),
) -> MigrationStatusResponse:
    """How many entries still lack a master exercise."""
    status = migration.status(user_id)
    return MigrationStatusResponse(
        unlinked_count=status.unlinked_count,
        last_migration_at=status.last_migration_at,
        needs_migration=status.needs_migration,
    )
