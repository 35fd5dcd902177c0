"""
DynamoDB Table Importer

Restores a DynamoDB table, schema and items, from a JSON export stored in S3.
Built on boto3 and Pydantic: the export is validated before anything touches
the destination table, the table is created or replaced according to explicit
policy flags, and items are written in paced, failure-isolated groups.
"""

from .config import ImporterConfig
from .exceptions import (
    ConfigurationError,
    ConflictError,
    ConnectionError,
    CreateTimeoutError,
    DeleteTimeoutError,
    ImporterError,
    LifecycleQueryFailedError,
    MalformedExportError,
    MissingSourceKeyError,
    NotFoundError,
    RetryableError,
    SnapshotLoadError,
    TableExistsNoOverwriteError,
    TableMissingNoCreateError,
    TableOperationError,
    TableTransitionTimeoutError,
    ValidationError,
)
from .models import (
    BillingMode,
    ExportArtifact,
    FailedRecord,
    FailureCategory,
    ImportReport,
    ImportResult,
    LifecycleAction,
    TableSchema,
    TableState,
)
from .core import SnapshotLoader, TableGateway, create_table_gateway
from .handlers import (
    BatchImporter,
    TableImportOrchestrator,
    TableLifecycleManager,
    build_create_table_params,
    validate_export,
)
from .handler import lambda_handler

__version__ = "1.0.0"
__all__ = [
    # Configuration
    "ImporterConfig",

    # Exceptions
    "ImporterError",
    "ConfigurationError",
    "ConflictError",
    "ConnectionError",
    "CreateTimeoutError",
    "DeleteTimeoutError",
    "LifecycleQueryFailedError",
    "MalformedExportError",
    "MissingSourceKeyError",
    "NotFoundError",
    "RetryableError",
    "SnapshotLoadError",
    "TableExistsNoOverwriteError",
    "TableMissingNoCreateError",
    "TableOperationError",
    "TableTransitionTimeoutError",
    "ValidationError",

    # Models
    "BillingMode",
    "ExportArtifact",
    "FailedRecord",
    "FailureCategory",
    "ImportReport",
    "ImportResult",
    "LifecycleAction",
    "TableSchema",
    "TableState",

    # AWS access
    "SnapshotLoader",
    "TableGateway",
    "create_table_gateway",

    # Import steps
    "BatchImporter",
    "TableImportOrchestrator",
    "TableLifecycleManager",
    "build_create_table_params",
    "validate_export",

    # Lambda entry point
    "lambda_handler",
]
