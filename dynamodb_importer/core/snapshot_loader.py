"""
Export file loading from S3.

Reads one object with GetObject and parses it as JSON. Numbers with a
fractional part are parsed as Decimal, which is what the boto3 resource
layer requires for DynamoDB N values. Keys ending in .gz are decompressed
first.
"""

import gzip
import json
import logging
import zlib
from decimal import Decimal
from typing import Any

from botocore.exceptions import BotoCoreError, ClientError

from ..config import ImporterConfig
from ..exceptions import ConnectionError, SnapshotLoadError
from .table_gateway import build_boto_config, create_session

logger = logging.getLogger(__name__)


def create_s3_client(config: ImporterConfig, session=None):
    """Create a boto3 S3 client from configuration.

    Raises:
        ConnectionError: The client could not be created
    """
    try:
        session = session or create_session(config)
        client_kwargs = {
            'region_name': config.region_name,
            'config': build_boto_config(config)
        }
        if config.s3_endpoint_url:
            client_kwargs['endpoint_url'] = config.s3_endpoint_url
        return session.client('s3', **client_kwargs)
    except (BotoCoreError, ValueError) as e:
        logger.error(f"Failed to create S3 client: {e}")
        raise ConnectionError(f"Failed to connect to S3: {e}", e) from e


def parse_export_document(payload: bytes, compressed: bool = False) -> Any:
    """Decode an export file body into Python objects."""
    if compressed:
        payload = gzip.decompress(payload)
    return json.loads(payload.decode('utf-8'), parse_float=Decimal)


class SnapshotLoader:
    """Fetches and parses export files from S3."""

    def __init__(self, config: ImporterConfig, s3_client=None):
        self.config = config
        self._s3 = s3_client

    @property
    def s3(self):
        """Lazy initialization of the S3 client."""
        if self._s3 is None:
            self._s3 = create_s3_client(self.config)
        return self._s3

    def load(self, bucket: str, key: str) -> Any:
        """
        Download and parse one export file.

        Args:
            bucket: S3 bucket name
            key: S3 object key

        Returns:
            The parsed JSON document (not yet validated)

        Raises:
            SnapshotLoadError: Object missing, unreadable, or not valid JSON
        """
        logger.info(f"Downloading from S3: {bucket}/{key}")
        try:
            response = self.s3.get_object(Bucket=bucket, Key=key)
            payload = response['Body'].read()
        except ClientError as e:
            code = e.response.get('Error', {}).get('Code', 'Unknown')
            raise SnapshotLoadError(bucket, key, f"{code}: {e}", e) from e
        except BotoCoreError as e:
            raise SnapshotLoadError(bucket, key, str(e), e) from e

        try:
            data = parse_export_document(payload, compressed=key.endswith('.gz'))
        except (OSError, EOFError, zlib.error) as e:
            raise SnapshotLoadError(bucket, key, f"not a valid gzip file: {e}", e) from e
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            raise SnapshotLoadError(bucket, key, f"not valid JSON: {e}", e) from e

        logger.info(f"Downloaded and parsed export file. Size: {len(payload) / 1024 / 1024:.2f} MB")
        return data
