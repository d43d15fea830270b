"""Contains the closed set of error kinds raised by the synchronization pipeline."""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Enum for the kinds of fatal errors raised by the pipeline."""

    AUTHENTICATION = "authentication"
    CONFIGURATION_VALIDATION = "configuration_validation"
    INCOMPLETE_FETCH = "incomplete_fetch"
    PUBLISH_FAILURE = "publish_failure"


class GraphSyncError(Exception):
    """Base class for all fatal pipeline errors.

    Callers branch on ``kind`` rather than on the message text.
    """

    kind: ErrorKind


class AuthenticationError(GraphSyncError):
    """Raised when the provider rejects the lightweight authenticated call."""

    kind = ErrorKind.AUTHENTICATION

    def __init__(self, message: str, endpoint: str | None = None, status_code: int | None = None) -> None:
        """Initializes the exception with the endpoint and status code that failed, if known."""
        details = [message]
        if endpoint is not None:
            details.append(f"endpoint={endpoint}")
        if status_code is not None:
            details.append(f"status_code={status_code}")
        super().__init__(" | ".join(details))
        self.endpoint = endpoint
        self.status_code = status_code


class ConfigurationValidationError(GraphSyncError):
    """Raised when configuration values are invalid or not accessible to the credentials."""

    kind = ErrorKind.CONFIGURATION_VALIDATION

    def __init__(self, message: str, invalid_values: list[Any] | None = None) -> None:
        """Initializes the exception with every offending configuration value."""
        super().__init__(message)
        self.invalid_values = invalid_values or []


class IncompleteFetchError(GraphSyncError):
    """Raised when synchronize is invoked for a collection whose fetch did not complete."""

    kind = ErrorKind.INCOMPLETE_FETCH

    def __init__(self, collection: str, status: str | None = None) -> None:
        """Initializes the exception with the collection name and the observed fetch status."""
        observed = status if status is not None else "absent"
        super().__init__(
            f"Fetching of '{collection}' did not complete (state: {observed}), cannot synchronize '{collection}'. "
            "Re-run the fetch phase before synchronizing."
        )
        self.collection = collection
        self.status = status


class PublishFailure(GraphSyncError):
    """Raised when the persister fails to publish a batch of operations.

    The underlying persister exception is available as ``__cause__``.
    """

    kind = ErrorKind.PUBLISH_FAILURE

    def __init__(self, message: str, operation_count: int = 0) -> None:
        """Initializes the exception with the size of the batch that failed to publish."""
        super().__init__(f"{message} (operations in batch: {operation_count})")
        self.operation_count = operation_count
