"""
Application-layer exceptions for exercise identity resolution.

These exceptions are used across application and infrastructure layers.
Routers translate them to HTTP status codes.
"""


class ExerciseIdentityError(Exception):
    """Base class for exercise identity errors."""

    pass


class ExerciseNotFoundError(ExerciseIdentityError):
    """The entity does not exist or belongs to another user.

    Both cases are reported identically so that callers cannot probe
    for the existence of other users' data.
    """

    def __init__(self, message: str = "Exercise not found"):
        super().__init__(message)
        self.message = message


class StorageUnavailableError(ExerciseIdentityError):
    """The storage backend failed to complete a call."""

    pass


class MasterExerciseConflictError(ExerciseIdentityError):
    """Another master exercise of the user already has this normalized name."""

    def __init__(self, normalized_name: str, message: str = "An exercise with this name already exists"):
        super().__init__(message)
        self.normalized_name = normalized_name
        self.message = message


class MasterExerciseCreationError(ExerciseIdentityError):
    """A master exercise insert returned no usable row."""

    pass


class InvalidExerciseNameError(ExerciseIdentityError):
    """The exercise name is empty once normalized."""

    def __init__(self, message: str = "Exercise name must not be blank"):
        super().__init__(message)
        self.message = message


class InvalidMergeError(ExerciseIdentityError):
    """A merge request that can never succeed (e.g. merging an exercise into itself)."""

    pass
