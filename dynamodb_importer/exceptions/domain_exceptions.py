"""
Domain-Specific Exceptions for the Table Importer

All exceptions extend ImporterError. They fall into two groups:

1. Store errors, produced by map_dynamodb_error from botocore ClientErrors.
   Per-record write failures are classified by these types and never abort
   an import.
2. Pipeline errors, which are fatal and abort the whole run:
   - before any table mutation (configuration, source, export and policy errors)
   - mid-run (table state queries, create/delete requests and their timeouts)
"""

from typing import Any, Dict, Optional

from .base import ImporterError


# =============================================================================
# Store Errors (mapped from DynamoDB responses)
# =============================================================================

class ValidationError(ImporterError):
    """Raised when DynamoDB or the client rejects data as invalid.

    Used for:
    - ValidationException (wrong key type, empty key value, oversized item)
    - Values boto3 cannot serialize
    - Limit errors that a retry will not fix
    """

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        """Initialize validation error.

        Args:
            message: Human-readable error message
            errors: Dictionary of field-level validation errors
            original_error: The original exception that caused this error
        """
        self.errors = errors or {}
        context = {}
        if self.errors:
            context['validation_errors'] = self.errors
        super().__init__(message, original_error, context)


class NotFoundError(ImporterError):
    """DescribeTable or DeleteTable found no such table.

    The lifecycle manager reads this as "table absent"; it is never fatal by itself.
    """

    def __init__(self, message: str, resource_type: Optional[str] = None, resource_name: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_type = resource_type
        self.resource_name = resource_name
        context = {}
        if resource_type:
            context['resource_type'] = resource_type
        if resource_name:
            context['resource_name'] = resource_name
        super().__init__(message, original_error, context)


class ConflictError(ImporterError):
    """Raised when a request conflicts with the current state of a resource.

    Used for:
    - ConditionalCheckFailedException
    - ResourceInUseException (table mid-transition, table already exists)
    """

    def __init__(self, message: str, resource_id: Optional[str] = None, original_error: Optional[Exception] = None):
        self.resource_id = resource_id
        context = {}
        if resource_id:
            context['resource_id'] = resource_id
        super().__init__(message, original_error, context)


class ConnectionError(ImporterError):
    """Raised when a request cannot reach or is refused by the service.

    Used for:
    - Network connectivity issues and endpoint errors
    - Authentication/authorization failures
    - Unknown service errors
    """

    def __init__(self, message: str, original_error: Optional[Exception] = None, context: Optional[Dict[str, Any]] = None):
        super().__init__(message, original_error, context)


class RetryableError(ImporterError):
    """Raised when a request fails due to throttling or temporary unavailability."""

    def __init__(self, message: str, original_error: Optional[Exception] = None):
        super().__init__(message, original_error)


# =============================================================================
# Pipeline Errors: abort before any table mutation
# =============================================================================

class ConfigurationError(ImporterError):
    """Raised when an import option has an invalid value."""

    def __init__(self, message: str, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        self.errors = errors or {}
        super().__init__(message, original_error, {'config_errors': self.errors} if self.errors else None)


class MissingSourceKeyError(ImporterError):
    """Raised when no S3 key for the export file was supplied."""

    def __init__(self, message: str = "SOURCE_KEY must be provided either as environment variable or event parameter"):
        super().__init__(message)


class SnapshotLoadError(ImporterError):
    """Raised when the export file cannot be fetched from S3 or decoded."""

    def __init__(self, bucket: str, key: str, reason: str, original_error: Optional[Exception] = None):
        self.bucket = bucket
        self.key = key
        message = f"Failed to load s3://{bucket}/{key}: {reason}"
        super().__init__(message, original_error)


class MalformedExportError(ImporterError):
    """Raised when the export file is missing a section or its schema is invalid.

    Attributes:
        section: The first missing or invalid top-level section
        errors: Field-level parsing errors, when the section was present
    """

    def __init__(self, section: str, reason: Optional[str] = None, errors: Optional[Dict[str, Any]] = None, original_error: Optional[Exception] = None):
        self.section = section
        self.errors = errors or {}
        if reason is None:
            message = f"Invalid export file format. Missing required section: '{section}'"
        else:
            message = f"Invalid export file format. Section '{section}' {reason}"
        context = {'section': section}
        if self.errors:
            context['validation_errors'] = self.errors
        super().__init__(message, original_error, context)


class TableExistsNoOverwriteError(ImporterError):
    """Raised when the destination table exists and overwriting was not enabled."""

    def __init__(self, table_name: str):
        self.table_name = table_name
        message = f"Table {table_name} already exists. Set OVERWRITE_EXISTING=true to replace it."
        super().__init__(message, context={'table_name': table_name})


class TableMissingNoCreateError(ImporterError):
    """Raised when the destination table would have to be created but creation is disabled."""

    def __init__(self, table_name: str, exists: bool = False):
        self.table_name = table_name
        if exists:
            message = (
                f"Table {table_name} would be deleted for overwrite but CREATE_TABLE is not enabled "
                f"to recreate it"
            )
        else:
            message = f"Table {table_name} does not exist and CREATE_TABLE is not enabled"
        super().__init__(message, context={'table_name': table_name})


# =============================================================================
# Pipeline Errors: abort mid-run, table state needs manual reconciliation
# =============================================================================

class LifecycleQueryFailedError(ImporterError):
    """Raised when the table status cannot be read for a reason other than "not found"."""

    def __init__(self, table_name: str, original_error: Optional[Exception] = None):
        self.table_name = table_name
        message = f"Failed to query status of table {table_name}: {original_error}"
        super().__init__(message, original_error, {'table_name': table_name})


class TableOperationError(ImporterError):
    """Raised when a CreateTable or DeleteTable request is rejected."""

    def __init__(self, operation: str, table_name: str, original_error: Optional[Exception] = None):
        self.operation = operation
        self.table_name = table_name
        message = f"Failed to {operation} table {table_name}: {original_error}"
        super().__init__(message, original_error, {'table_name': table_name})


class TableTransitionTimeoutError(ImporterError):
    """Raised when a table does not reach the awaited state within the attempt budget."""

    awaited_state = "settle"

    def __init__(self, table_name: str, attempts: int, last_state: Optional[str] = None):
        self.table_name = table_name
        self.attempts = attempts
        self.last_state = last_state
        message = f"Timeout waiting for table {table_name} to {self.awaited_state} after {attempts} attempts"
        context = {'table_name': table_name}
        if last_state:
            context['last_state'] = last_state
        super().__init__(message, context=context)


class DeleteTimeoutError(TableTransitionTimeoutError):
    """Raised when a deleted table is still visible after the attempt budget."""

    awaited_state = "be deleted"


class CreateTimeoutError(TableTransitionTimeoutError):
    """Raised when a created table is not ACTIVE after the attempt budget."""

    awaited_state = "become active"
