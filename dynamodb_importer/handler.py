"""
AWS Lambda entry point.

Builds the run configuration from the environment and the invocation event,
runs one import, and turns the outcome into a {statusCode, body} response:
200 when the pipeline completed (even if some records failed), 500 when a
fatal error stopped it.

The boto3 DynamoDB resource and S3 client are created once per container
and reused by later invocations.
"""

import base64
import json
import logging
import threading
from decimal import Decimal
from typing import Any, Dict, Optional, Tuple

from .config import ImporterConfig
from .core import SnapshotLoader, create_dynamodb_resource, create_s3_client
from .exceptions import ConfigurationError, ImporterError
from .handlers import TableImportOrchestrator
from .models import ImportReport

logger = logging.getLogger(__name__)

_handles: Dict[Tuple[str, ...], Any] = {}
_handles_lock = threading.Lock()


def _cached_handle(kind: str, config: ImporterConfig, endpoint_url: Optional[str], factory):
    cache_key = (kind, config.region_name, endpoint_url or "")
    with _handles_lock:
        if cache_key not in _handles:
            _handles[cache_key] = factory(config)
        return _handles[cache_key]


def get_dynamodb_resource(config: ImporterConfig):
    """Shared DynamoDB resource for the configured region and endpoint."""
    return _cached_handle("dynamodb", config, config.endpoint_url, create_dynamodb_resource)


def get_s3_client(config: ImporterConfig):
    """Shared S3 client for the configured region and endpoint."""
    return _cached_handle("s3", config, config.s3_endpoint_url, create_s3_client)


def reset_cached_handles() -> None:
    """Drop the shared boto3 handles (used by tests)."""
    with _handles_lock:
        _handles.clear()


def configure_logging(config: ImporterConfig) -> None:
    level = logging.DEBUG if config.enable_debug_logging else logging.INFO
    logging.getLogger("dynamodb_importer").setLevel(level)
    # Lambda installs a root handler; elsewhere make sure output goes somewhere
    if not logging.getLogger().handlers:
        logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def _json_default(obj):
    """JSON serializer for values records can hold that json does not handle."""
    if isinstance(obj, Decimal):
        return int(obj) if obj == obj.to_integral_value() else float(obj)
    if isinstance(obj, (bytes, bytearray)):
        return base64.b64encode(bytes(obj)).decode('ascii')
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj)} is not JSON serializable")


def build_success_response(report: ImportReport, max_failures: int = 25) -> Dict[str, Any]:
    return {
        'statusCode': 200,
        'body': json.dumps(report.to_response_body(max_failures), default=_json_default)
    }


def build_error_response(error: Exception) -> Dict[str, Any]:
    body = {'message': 'Import failed'}
    if isinstance(error, ImporterError):
        body.update(error.to_response_fields())
    else:
        body.update({'error': str(error), 'errorType': type(error).__name__})
    return {
        'statusCode': 500,
        'body': json.dumps(body)
    }


def lambda_handler(event: Optional[Dict[str, Any]], context: Any = None) -> Dict[str, Any]:
    """
    Import a DynamoDB table from an S3 JSON export.

    Args:
        event: Optional overrides: sourceBucket, sourceKey, targetTableName,
            createTable, overwriteExisting, region, batchSize, dryRun, maxWorkers
        context: Lambda context (unused)

    Returns:
        {'statusCode': 200 | 500, 'body': JSON string}
    """
    try:
        config = ImporterConfig.from_event(event)
    except ConfigurationError as e:
        logger.error(f"Import failed: {e}")
        return build_error_response(e)

    configure_logging(config)
    logger.info("Starting DynamoDB import process")
    logger.info(f"Configuration: {config.model_dump(exclude={'aws_access_key_id', 'aws_secret_access_key'})}")

    try:
        orchestrator = TableImportOrchestrator(
            config,
            loader=SnapshotLoader(config, s3_client=get_s3_client(config)),
            dynamodb=get_dynamodb_resource(config)
        )
        report = orchestrator.run()
    except ImporterError as e:
        logger.error(f"Import failed: {e}")
        return build_error_response(e)
    except Exception as e:
        # Invocation boundary: every failure still gets a response
        logger.exception(f"Import failed with unexpected error: {e}")
        return build_error_response(e)

    return build_success_response(report, config.max_reported_failures)
