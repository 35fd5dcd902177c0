# Export file models
from .domain_models import (
    # Enums
    KeyType,
    ScalarAttributeType,
    BillingMode,
    ProjectionType,
    TableState,

    # Schema building blocks
    KeyElement,
    AttributeDefinition,
    ProvisionedThroughput,
    Projection,
    IndexDefinition,

    # Export file
    TableSchema,
    ExportArtifact,
)

# Import outcome models
from .results import (
    FailureCategory,
    LifecycleAction,
    FailedRecord,
    BatchProgress,
    ImportResult,
    ImportReport,
)

__all__ = [
    # Enums
    "KeyType",
    "ScalarAttributeType",
    "BillingMode",
    "ProjectionType",
    "TableState",
    "FailureCategory",
    "LifecycleAction",

    # Schema building blocks
    "KeyElement",
    "AttributeDefinition",
    "ProvisionedThroughput",
    "Projection",
    "IndexDefinition",

    # Export file
    "TableSchema",
    "ExportArtifact",

    # Import outcome
    "FailedRecord",
    "BatchProgress",
    "ImportResult",
    "ImportReport",
]
