"""
Table Import Orchestrator

Runs one import end to end:

    load export -> validate -> ensure destination table -> import records -> report

Any ImporterError raised along the way aborts the run and propagates to the
caller; nothing after the failing step runs. Per-record write failures are
not errors at this level, they are counted in the report.
"""

import logging
import time
from datetime import datetime, timezone
from typing import Callable, Optional

from ..config import ImporterConfig
from ..core import SnapshotLoader, TableGateway, create_table_gateway
from ..exceptions import MissingSourceKeyError
from ..models import BatchProgress, ImportReport, LifecycleAction
from .batch_importer import BatchImporter
from .lifecycle import TableLifecycleManager
from .validation import validate_export

logger = logging.getLogger(__name__)


class TableImportOrchestrator:
    """
    Sequences loader, validator, lifecycle manager and batch importer for one run.

    Collaborators are injectable so tests can drive the whole pipeline with
    fakes and no wall-clock delays.
    """

    def __init__(
        self,
        config: ImporterConfig,
        loader: Optional[SnapshotLoader] = None,
        gateway_factory: Optional[Callable[[str], TableGateway]] = None,
        dynamodb=None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = lambda: datetime.now(timezone.utc),
        on_progress: Optional[Callable[[BatchProgress], None]] = None
    ):
        """
        Args:
            config: Run configuration
            loader: Export file loader (defaults to an S3 SnapshotLoader)
            gateway_factory: Builds the gateway for the destination table name
            dynamodb: Shared boto3 DynamoDB resource for the default gateway factory
            sleep: Sleep function for polling and batch pacing
            clock: Source of the report's import date
            on_progress: Called after every group of records
        """
        self.config = config
        self.loader = loader or SnapshotLoader(config)
        self._gateway_factory = gateway_factory or (
            lambda table_name: create_table_gateway(config, table_name, dynamodb=dynamodb)
        )
        self._sleep = sleep
        self._clock = clock
        self._on_progress = on_progress

    def run(self) -> ImportReport:
        """
        Execute the import.

        Returns:
            ImportReport for the completed run

        Raises:
            MissingSourceKeyError: No source key configured
            SnapshotLoadError: Export file could not be read
            MalformedExportError: Export file failed validation
            TableExistsNoOverwriteError, TableMissingNoCreateError: Policy violation
            LifecycleQueryFailedError, TableOperationError, DeleteTimeoutError,
            CreateTimeoutError: Table lifecycle failed mid-run
        """
        config = self.config
        if not config.source_key:
            raise MissingSourceKeyError()

        logger.info(f"Importing from {config.source_uri}")
        raw = self.loader.load(config.source_bucket, config.source_key)
        artifact = validate_export(raw)
        schema = artifact.table_schema

        table_name = config.resolve_table_name(schema.table_name)
        logger.info(f"Target table name: {table_name}")
        logger.info(f"Items to import: {artifact.record_count}")

        gateway = self._gateway_factory(table_name)
        lifecycle = TableLifecycleManager(
            gateway,
            poll_interval_seconds=config.poll_interval_seconds,
            max_poll_attempts=config.max_poll_attempts,
            sleep=self._sleep
        )
        action = lifecycle.ensure_table(
            schema,
            create_table=config.create_table,
            overwrite_existing=config.overwrite_existing,
            dry_run=config.dry_run
        )

        if config.dry_run:
            logger.info(f"Dry run: would {action.value} {table_name} and import {artifact.record_count} items")
            return self._report(table_name, 0, 0, [], action)

        key_attributes = [schema.partition_key] + ([schema.sort_key] if schema.sort_key else [])
        importer = BatchImporter(
            gateway,
            batch_size=config.batch_size,
            batch_delay_seconds=config.batch_delay_seconds,
            max_workers=config.max_workers,
            key_attributes=key_attributes,
            sleep=self._sleep,
            on_progress=self._on_progress
        )
        result = importer.import_records(artifact.records)

        return self._report(table_name, result.success_count, result.failed_count, result.failed_records, action)

    def _report(self, table_name, imported, failed, failed_records, action: LifecycleAction) -> ImportReport:
        return ImportReport(
            table_name=table_name,
            imported_items=imported,
            failed_items=failed,
            source_file=self.config.source_uri,
            import_date=self._clock(),
            failed_records=failed_records,
            lifecycle_action=action,
            dry_run=self.config.dry_run
        )
