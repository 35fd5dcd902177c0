"""
Core infrastructure components for AWS access.

This module contains the components that talk to AWS directly:
- TableGateway: Thin wrapper over the DynamoDB table operations the importer uses
- SnapshotLoader: Reads export files from S3
- Factory functions for boto3 handles and gateways
"""

from .snapshot_loader import SnapshotLoader, create_s3_client, parse_export_document
from .table_gateway import (
    TableGateway,
    create_dynamodb_resource,
    create_table_gateway,
    map_dynamodb_error,
)

__all__ = [
    "SnapshotLoader",
    "TableGateway",
    "create_dynamodb_resource",
    "create_s3_client",
    "create_table_gateway",
    "map_dynamodb_error",
    "parse_export_document",
]
