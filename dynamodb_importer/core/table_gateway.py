"""
Thin DynamoDB Table Gateway

This module provides a lightweight wrapper around the boto3 DynamoDB
operations the importer needs, and nothing more:

- DescribeTable, CreateTable, DeleteTable for the table lifecycle
- PutItem for record writes

Every botocore failure leaves the gateway as a domain exception, so callers
branch on exception types instead of parsing error codes. The importer's IAM
policy only has to grant these four actions.
"""

import logging
from decimal import DecimalException
from typing import Any, Dict, Optional

import boto3
from boto3.dynamodb.types import TypeSerializer
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from ..config import ImporterConfig
from ..exceptions import (
    ConnectionError,
    ConflictError,
    NotFoundError,
    ValidationError,
    RetryableError
)

logger = logging.getLogger(__name__)


THROTTLING_ERROR_CODES = frozenset([
    'ProvisionedThroughputExceededException', 'RequestLimitExceeded',
    'ThrottlingException', 'TooManyRequestsException', 'SlowDown',
])

SERVICE_ERROR_CODES = frozenset([
    'InternalServerError', 'ServiceUnavailable', 'ServiceUnavailableException',
    'InternalFailure', 'RequestTimeoutException',
])

AUTH_ERROR_CODES = frozenset([
    'UnrecognizedClientException', 'AccessDeniedException', 'ExpiredTokenException',
    'InvalidSignatureException', 'IncompleteSignatureException',
])


def map_dynamodb_error(
    error: ClientError,
    operation: str,
    table_name: str,
    resource_id: Optional[str] = None
) -> Exception:
    """Map DynamoDB ClientError to domain-specific exceptions.

    Args:
        error: The boto3 ClientError
        operation: The operation that failed (e.g., "DescribeTable", "PutItem")
        table_name: The DynamoDB table name
        resource_id: Optional resource identifier for context

    Returns:
        NotFoundError: Table (or index) does not exist
        ConflictError: Conditional check failed, or table in use / mid-transition
        ValidationError: Request or item rejected as invalid
        RetryableError: Throttling or temporary service trouble
        ConnectionError: Authentication failures and unknown errors
    """
    error_code = error.response.get('Error', {}).get('Code', 'Unknown')
    error_message = error.response.get('Error', {}).get('Message', str(error))

    context = f"{operation} on {table_name}"
    if resource_id:
        context += f" (resource: {resource_id})"

    full_message = f"{context}: {error_message}"

    if error_code in ('ResourceNotFoundException', 'TableNotFoundException'):
        return NotFoundError(f"Table not found - {full_message}", 'table', table_name, original_error=error)

    elif error_code == 'ConditionalCheckFailedException':
        return ConflictError(f"Conditional check failed - {full_message}", resource_id, original_error=error)

    elif error_code in ('ResourceInUseException', 'TableAlreadyExistsException'):
        return ConflictError(f"Resource in use - {full_message}", resource_id or table_name, original_error=error)

    elif error_code == 'ValidationException':
        return ValidationError(f"Validation failed - {full_message}", original_error=error)

    elif error_code in ('ItemCollectionSizeLimitExceededException', 'LimitExceededException'):
        return ValidationError(f"DynamoDB limit exceeded - {full_message}", original_error=error)

    elif error_code in THROTTLING_ERROR_CODES:
        return RetryableError(f"Throttling - {full_message}", original_error=error)

    elif error_code in SERVICE_ERROR_CODES:
        return RetryableError(f"Service unavailable - {full_message}", original_error=error)

    elif error_code in AUTH_ERROR_CODES:
        return ConnectionError(f"Authentication/authorization failed - {full_message}", original_error=error)

    logger.warning(f"Unknown DynamoDB error code '{error_code}' mapped to ConnectionError")
    return ConnectionError(f"DynamoDB operation failed - {full_message}", original_error=error)


def build_boto_config(config: ImporterConfig) -> Config:
    """Retry, pool and timeout settings shared by the DynamoDB and S3 handles."""
    return Config(
        retries={'max_attempts': config.retries},
        max_pool_connections=config.max_pool_connections,
        read_timeout=config.timeout_seconds,
        connect_timeout=config.timeout_seconds
    )


def create_session(config: ImporterConfig) -> boto3.Session:
    return boto3.Session(
        aws_access_key_id=config.aws_access_key_id,
        aws_secret_access_key=config.aws_secret_access_key,
        region_name=config.region_name
    )


def create_dynamodb_resource(config: ImporterConfig, session: Optional[boto3.Session] = None):
    """Create a boto3 DynamoDB service resource from configuration.

    Raises:
        ConnectionError: The resource could not be created
    """
    try:
        session = session or create_session(config)
        resource_kwargs = {
            'region_name': config.region_name,
            'config': build_boto_config(config)
        }
        if config.endpoint_url:
            resource_kwargs['endpoint_url'] = config.endpoint_url
        return session.resource('dynamodb', **resource_kwargs)
    except (BotoCoreError, ValueError) as e:
        logger.error(f"Failed to create DynamoDB resource: {e}")
        raise ConnectionError(f"Failed to connect to DynamoDB: {e}", e) from e


class TableGateway:
    """
    Thin gateway for one destination DynamoDB table.

    The boto3 resource can be injected so a long-lived handle is shared
    across runs; otherwise it is created lazily from the configuration.
    """

    def __init__(self, config: ImporterConfig, table_name: str, dynamodb=None):
        """Initialize table gateway.

        Args:
            config: Importer configuration
            table_name: Name of the DynamoDB table
            dynamodb: Optional pre-built boto3 DynamoDB service resource
        """
        self.config = config
        self.table_name = table_name
        self._dynamodb = dynamodb
        self._serializer = TypeSerializer()

    @property
    def dynamodb(self):
        """Lazy initialization of DynamoDB resource."""
        if self._dynamodb is None:
            self._dynamodb = create_dynamodb_resource(self.config)
        return self._dynamodb

    @property
    def client(self):
        """Low-level client behind the resource. Unlike the resource it is thread-safe."""
        return self.dynamodb.meta.client

    def describe_table(self) -> Dict[str, Any]:
        """
        Describe the table.

        Returns:
            The 'Table' section of the DescribeTable response

        Raises:
            NotFoundError: The table does not exist
        """
        try:
            response = self.client.describe_table(TableName=self.table_name)
        except ClientError as e:
            raise map_dynamodb_error(e, "DescribeTable", self.table_name) from e
        except BotoCoreError as e:
            raise ConnectionError(f"DescribeTable on {self.table_name} failed: {e}", e) from e
        return response.get('Table', {})

    def create_table(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Issue CreateTable. Returns immediately; the table starts in CREATING.

        Args:
            params: Full CreateTable request, including TableName
        """
        try:
            response = self.client.create_table(**params)
        except ClientError as e:
            raise map_dynamodb_error(e, "CreateTable", self.table_name) from e
        except BotoCoreError as e:
            raise ConnectionError(f"CreateTable on {self.table_name} failed: {e}", e) from e
        logger.info(f"Table creation initiated: {self.table_name}")
        return response.get('TableDescription', {})

    def delete_table(self) -> None:
        """Issue DeleteTable. Returns immediately; the table enters DELETING."""
        try:
            self.client.delete_table(TableName=self.table_name)
        except ClientError as e:
            raise map_dynamodb_error(e, "DeleteTable", self.table_name) from e
        except BotoCoreError as e:
            raise ConnectionError(f"DeleteTable on {self.table_name} failed: {e}", e) from e
        logger.info(f"Table deletion initiated: {self.table_name}")

    def serialize_item(self, item: Dict[str, Any]) -> Dict[str, Any]:
        """Native values to DynamoDB attribute values.

        Raises:
            ValidationError: A value has no DynamoDB representation (floats,
                numbers beyond 38 digits of precision, unsupported types)
        """
        try:
            return {k: self._serializer.serialize(v) for k, v in item.items()}
        except (TypeError, ValueError, DecimalException) as e:
            raise ValidationError(f"Item cannot be serialized for {self.table_name}: {e!r}", original_error=e) from e

    def put_item(self, item: Dict[str, Any]) -> None:
        """
        Put one item into the table.

        Goes through the low-level client so one gateway can be shared by
        concurrent writers.

        Args:
            item: Item with native Python values (numbers as int or Decimal)

        Raises:
            ValidationError: The item cannot be serialized or DynamoDB rejected it
            RetryableError: Throttling
            ConnectionError: Network or credential failure
        """
        attributes = self.serialize_item(item)
        try:
            self.client.put_item(TableName=self.table_name, Item=attributes)
        except ClientError as e:
            raise map_dynamodb_error(e, "PutItem", self.table_name) from e
        except BotoCoreError as e:
            raise ConnectionError(f"PutItem on {self.table_name} failed: {e}", e) from e


def create_table_gateway(config: ImporterConfig, table_name: str, dynamodb=None) -> TableGateway:
    """
    Factory function to create a TableGateway instance.

    Args:
        config: Importer configuration
        table_name: Destination table name
        dynamodb: Optional shared boto3 DynamoDB resource

    Returns:
        Configured TableGateway instance
    """
    return TableGateway(config, table_name, dynamodb=dynamodb)
