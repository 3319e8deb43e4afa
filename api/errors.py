"""
Translation of application exceptions to HTTP errors.

Routers catch ExerciseIdentityError around each use case call and re-raise
the result of http_error_for().
"""
import logging

from fastapi import HTTPException

from application.exceptions import (
    ExerciseIdentityError,
    ExerciseNotFoundError,
    InvalidExerciseNameError,
    InvalidMergeError,
    MasterExerciseConflictError,
    MasterExerciseCreationError,
    StorageUnavailableError,
)

logger = logging.getLogger(__name__)


def http_error_for(error: ExerciseIdentityError) -> HTTPException:
    """Map an application exception to the HTTPException a router should raise."""
    if isinstance(error, ExerciseNotFoundError):
        return HTTPException(status_code=404, detail=error.message)
    if isinstance(error, MasterExerciseConflictError):
        return HTTPException(status_code=409, detail=error.message)
    if isinstance(error, InvalidExerciseNameError):
        return HTTPException(status_code=422, detail=error.message)
    if isinstance(error, InvalidMergeError):
        return HTTPException(status_code=400, detail=str(error))
    if isinstance(error, StorageUnavailableError):
        return HTTPException(status_code=503, detail="Exercise storage is unavailable")
    if isinstance(error, MasterExerciseCreationError):
        logger.error(f"Master exercise creation failed: {error}")
        return HTTPException(status_code=500, detail=str(error))
    logger.error(f"Unhandled exercise identity error: {error}")
    return HTTPException(status_code=500, detail="Internal error")
