# Base exception class
from .base import ImporterError

# Store errors and import pipeline errors
from .domain_exceptions import (
    ValidationError,
    NotFoundError,
    ConflictError,
    ConnectionError,
    RetryableError,
    ConfigurationError,
    MissingSourceKeyError,
    SnapshotLoadError,
    MalformedExportError,
    TableExistsNoOverwriteError,
    TableMissingNoCreateError,
    LifecycleQueryFailedError,
    TableOperationError,
    TableTransitionTimeoutError,
    DeleteTimeoutError,
    CreateTimeoutError,
)

__all__ = [
    # Base exception
    "ImporterError",

    # Store errors (alphabetically ordered)
    "ConflictError",
    "ConnectionError",
    "NotFoundError",
    "RetryableError",
    "ValidationError",

    # Pipeline errors
    "ConfigurationError",
    "CreateTimeoutError",
    "DeleteTimeoutError",
    "LifecycleQueryFailedError",
    "MalformedExportError",
    "MissingSourceKeyError",
    "SnapshotLoadError",
    "TableExistsNoOverwriteError",
    "TableMissingNoCreateError",
    "TableOperationError",
    "TableTransitionTimeoutError",
]
