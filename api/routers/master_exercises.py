"""
Master exercises router.

This router provides endpoints for:
- Resolving a free-text exercise name to the caller's master exercise
- Listing, searching and similarity lookup of master exercises
- Explicit create, rename and merge of master exercises
- Linking details and bulk link/unlink for one master exercise
"""
from datetime import datetime
from typing import Annotated, List, Optional

from fastapi import APIRouter, Depends, HTTPException, Path, Query
from pydantic import AfterValidator, BaseModel, Field

from api.deps import (
    get_bulk_link_service,
    get_current_user,
    get_master_registry,
    get_settings,
    get_suggestion_service,
)
from api.errors import http_error_for
from application.exceptions import ExerciseIdentityError
from application.use_cases import (
    BulkLinkService,
    LinkingDetails,
    LinkSuggestionService,
    MasterExerciseRegistry,
)
from backend.core.normalize import normalize_exercise_name
from backend.settings import Settings
from domain.models import MasterExercise

router = APIRouter(
    prefix="/exercises",
    tags=["Master Exercises"],
)


# =============================================================================
# Request/Response Models
# =============================================================================


def _reject_blank_name(value: str) -> str:
    if not normalize_exercise_name(value):
        raise ValueError("name must not be blank")
    return value


# Exercise name that still has content after normalization
ExerciseName = Annotated[str, Field(min_length=1, max_length=255), AfterValidator(_reject_blank_name)]


class ResolveMasterRequest(BaseModel):
    """Request model for get-or-create by name."""
    name: ExerciseName = Field(..., description="Exercise name as typed in a template")


class CreateMasterRequest(BaseModel):
    """Request model for explicitly creating a master exercise."""
    name: ExerciseName
    tags: Optional[str] = Field(None, description="Comma-separated tags")
    muscle_group: Optional[str] = None


class UpdateMasterRequest(BaseModel):
    """Request model for renaming a master exercise."""
    name: ExerciseName
    tags: Optional[str] = None
    muscle_group: Optional[str] = None


class MergeMastersRequest(BaseModel):
    """Request model for merging one master exercise into another."""
    source_id: int = Field(..., description="Master to merge away (deleted)")
    target_id: int = Field(..., description="Master that receives the links")


class BulkLinkRequest(BaseModel):
    """Request model for bulk linking by similarity."""
    minimum_similarity: Optional[float] = Field(None, ge=0.0, le=1.0)


class MasterExerciseResponse(BaseModel):
    """Response model for a master exercise."""
    id: Optional[int] = Field(None, description="None when the record could not be saved")
    name: str
    normalized_name: str
    tags: Optional[str] = None
    muscle_group: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @classmethod
    def from_master(cls, master: MasterExercise) -> "MasterExerciseResponse":
        """Convert a MasterExercise to a response model."""
        return cls(
            id=master.id,
            name=master.name,
            normalized_name=master.normalized_name,
            tags=master.tags,
            muscle_group=master.muscle_group,
            created_at=master.created_at,
            updated_at=master.updated_at,
        )


class MasterWithLinkCountResponse(MasterExerciseResponse):
    """Master exercise with the number of entries linked to it."""
    linked_count: int


class SimilarMasterResponse(MasterExerciseResponse):
    """Master exercise scored against a query name."""
    similarity: float


class MasterSearchResponse(BaseModel):
    """One page of master exercise search results."""
    items: List[MasterExerciseResponse]
    next_cursor: Optional[str] = None


class MergeMastersResponse(BaseModel):
    """Response model for a merge."""
    moved_links: int
    source_name: str
    target_name: str


class LinkedEntryResponse(BaseModel):
    template_exercise_id: int
    exercise_name: str
    template_id: int


class PotentialLinkResponse(BaseModel):
    template_exercise_id: int
    exercise_name: str
    template_id: int
    similarity: float


class LinkingDetailsResponse(BaseModel):
    """Linked entries and ranked link candidates for one master exercise."""
    master_exercise_name: str
    linked_entries: List[LinkedEntryResponse]
    potential_links: List[PotentialLinkResponse]

    @classmethod
    def from_details(cls, details: LinkingDetails) -> "LinkingDetailsResponse":
        return cls(
            master_exercise_name=details.master_exercise_name,
            linked_entries=[
                LinkedEntryResponse(
                    template_exercise_id=e.template_exercise_id,
                    exercise_name=e.exercise_name,
                    template_id=e.template_id,
                )
                for e in details.linked_entries
            ],
            potential_links=[
                PotentialLinkResponse(
                    template_exercise_id=p.template_exercise_id,
                    exercise_name=p.exercise_name,
                    template_id=p.template_id,
                    similarity=p.similarity,
                )
                for p in details.potential_links
            ],
        )


class BulkLinkResponse(BaseModel):
    linked_count: int


class BulkUnlinkResponse(BaseModel):
    unlinked_count: int


# =============================================================================
# Lookup Endpoints
# =============================================================================


@router.get("/masters", response_model=List[MasterWithLinkCountResponse])
def list_masters(
    user_id: str = Depends(get_current_user),
    registry: MasterExerciseRegistry = Depends(get_master_registry),
) -> List[MasterWithLinkCountResponse]:
    """List the caller's master exercises ordered by name, with link counts."""
    return [
        MasterWithLinkCountResponse(
            **MasterExerciseResponse.from_master(row.master).model_dump(),
            linked_count=row.linked_count,
        )
        for row in registry.list_with_link_counts(user_id)
    ]


@router.get("/masters/search", response_model=MasterSearchResponse)
def search_masters(
    q: str = Query(..., description="Search text"),
    limit: Optional[int] = Query(None, ge=1, description="Page size"),
    cursor: Optional[str] = Query(None, description="next_cursor of the previous page"),
    user_id: str = Depends(get_current_user),
    registry: MasterExerciseRegistry = Depends(get_master_registry),
    settings: Settings = Depends(get_settings),
) -> MasterSearchResponse:
    """
    Search master exercises by name.

    Names starting with the query come first, then names containing it.
    Pass next_cursor back as cursor to fetch the following page.
    """
    if limit is not None and limit > settings.search_max_page_size:
        raise HTTPException(
            status_code=422,
            detail=f"limit must be at most {settings.search_max_page_size}",
        )
    page = registry.search(
        user_id,
        q,
        page_size=limit or settings.search_page_size,
        cursor=cursor,
    )
    return MasterSearchResponse(
        items=[MasterExerciseResponse.from_master(m) for m in page.items],
        next_cursor=page.next_cursor,
    )


@router.get("/masters/similar", response_model=List[SimilarMasterResponse])
def find_similar_masters(
    name: str = Query(..., description="Exercise name to compare"),
    threshold: Optional[float] = Query(None, ge=0.0, le=1.0),
    user_id: str = Depends(get_current_user),
    registry: MasterExerciseRegistry = Depends(get_master_registry),
    settings: Settings = Depends(get_settings),
) -> List[SimilarMasterResponse]:
    """Master exercises scoring at least threshold against name, best first."""
    if threshold is None:
        threshold = settings.similar_master_threshold
    return [
        SimilarMasterResponse(
            **MasterExerciseResponse.from_master(match.master).model_dump(),
            similarity=match.similarity,
        )
        for match in registry.find_similar(user_id, name, threshold)
    ]


# =============================================================================
# Registry Endpoints
# =============================================================================


@router.post("/masters/resolve", response_model=MasterExerciseResponse)
def resolve_master(
    request: ResolveMasterRequest,
    user_id: str = Depends(get_current_user),
    registry: MasterExerciseRegistry = Depends(get_master_registry),
) -> MasterExerciseResponse:
    """
    Get or create the caller's master exercise for a name.

    Never fails on storage errors; id is null when the master could not be saved.
    """
    try:
        master = registry.create_or_get(user_id, request.name)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return MasterExerciseResponse.from_master(master)


@router.post("/masters", response_model=MasterExerciseResponse, status_code=201)
def create_master(
    request: CreateMasterRequest,
    user_id: str = Depends(get_current_user),
    registry: MasterExerciseRegistry = Depends(get_master_registry),
) -> MasterExerciseResponse:
    """Create a master exercise. 409 if the name already exists."""
    try:
        master = registry.create(
            user_id,
            request.name,
            tags=request.tags,
            muscle_group=request.muscle_group,
        )
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return MasterExerciseResponse.from_master(master)


@router.put("/masters/{master_id}", response_model=MasterExerciseResponse)
def update_master(
    request: UpdateMasterRequest,
    master_id: int = Path(..., description="Master exercise id"),
    user_id: str = Depends(get_current_user),
    registry: MasterExerciseRegistry = Depends(get_master_registry),
) -> MasterExerciseResponse:
    """Rename a master exercise. Existing links are kept."""
    try:
        master = registry.update(
            user_id,
            master_id,
            request.name,
            tags=request.tags,
            muscle_group=request.muscle_group,
        )
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return MasterExerciseResponse.from_master(master)


@router.post("/masters/merge", response_model=MergeMastersResponse)
def merge_masters(
    request: MergeMastersRequest,
    user_id: str = Depends(get_current_user),
    registry: MasterExerciseRegistry = Depends(get_master_registry),
) -> MergeMastersResponse:
    """Move every link of source to target, then delete source."""
    try:
        result = registry.merge(user_id, request.source_id, request.target_id)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return MergeMastersResponse(
        moved_links=result.moved_links,
        source_name=result.source_name,
        target_name=result.target_name,
    )


# =============================================================================
# Linking Endpoints
# =============================================================================


@router.get("/masters/{master_id}/linking-details", response_model=LinkingDetailsResponse)
def get_linking_details(
    master_id: int = Path(..., description="Master exercise id"),
    user_id: str = Depends(get_current_user),
    suggestions: LinkSuggestionService = Depends(get_suggestion_service),
) -> LinkingDetailsResponse:
    """Entries linked to a master, and unlinked entries ranked by similarity."""
    try:
        details = suggestions.get_linking_details(user_id, master_id)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return LinkingDetailsResponse.from_details(details)


@router.post("/masters/{master_id}/bulk-link", response_model=BulkLinkResponse)
def bulk_link_similar(
    request: BulkLinkRequest,
    master_id: int = Path(..., description="Master exercise id"),
    user_id: str = Depends(get_current_user),
    bulk: BulkLinkService = Depends(get_bulk_link_service),
    settings: Settings = Depends(get_settings),
) -> BulkLinkResponse:
    """Link every unlinked, non-rejected entry similar enough to the master."""
    minimum_similarity = request.minimum_similarity
    if minimum_similarity is None:
        minimum_similarity = settings.bulk_link_min_similarity
    try:
        result = bulk.bulk_link_similar(user_id, master_id, minimum_similarity)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return BulkLinkResponse(linked_count=result.linked_count)


@router.delete("/masters/{master_id}/links", response_model=BulkUnlinkResponse)
def bulk_unlink_all(
    master_id: int = Path(..., description="Master exercise id"),
    user_id: str = Depends(get_current_user),
    bulk: BulkLinkService = Depends(get_bulk_link_service),
) -> BulkUnlinkResponse:
    """Remove every link pointing at a master."""
    try:
        result = bulk.bulk_unlink_all(user_id, master_id)
    except ExerciseIdentityError as e:
        raise http_error_for(e) from e
    return BulkUnlinkResponse(unlinked_count=result.unlinked_count)
