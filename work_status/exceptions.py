"""Exceptions related to work-status."""

__all__ = [
    "WorkStatusException",
    "InputException",
    "FetchFailedError",
    "ObjectNotFoundError",
    "MutationFailedError",
    "VersionConflictError",
    "WriteFailedError",
]


class WorkStatusException(Exception):
    """Generic base exception used for this library."""


class InputException(WorkStatusException):
    """Raised when the input documents are not formatted as expected."""


class FetchFailedError(WorkStatusException):
    """Raised when a resource could not be read from the store."""


class ObjectNotFoundError(FetchFailedError):
    """Raised when an object is not found in the store."""


class MutationFailedError(WorkStatusException):
    """Raised when a status update function reports an error."""

    def __init__(self, resource_name: str, message: str | None) -> None:
        super().__init__(
            f"Update of {resource_name} status failed: {message or 'Unknown error'}"
        )
        self.resource_name = resource_name
        self.message = message


class VersionConflictError(WorkStatusException):
    """Raised when a write is rejected because the stored version has advanced."""

    def __init__(
        self,
        resource_name: str,
        expected_version: str | None,
        actual_version: str | None,
    ) -> None:
        super().__init__(
            f"Conflict updating {resource_name}: expected resourceVersion "
            f"{expected_version!r} but found {actual_version!r}"
        )
        self.resource_name = resource_name
        self.expected_version = expected_version
        self.actual_version = actual_version


class WriteFailedError(WorkStatusException):
    """Raised when a status write fails for a reason other than a conflict."""
