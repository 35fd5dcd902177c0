"""
Batched record import.

Records are written in consecutive groups, in source order. Within a group
every record gets its own PutItem, so one rejected record never takes its
siblings down with it; the failure is classified and recorded and the import
carries on. A fixed pause between groups keeps the request rate below what
usually triggers throttling. Failed records are not retried in the same pass.
"""

import logging
import math
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from ..exceptions import (
    ConflictError,
    ConnectionError,
    ImporterError,
    RetryableError,
    ValidationError,
)
from ..models import BatchProgress, FailureCategory, ImportResult

logger = logging.getLogger(__name__)

Record = Dict[str, Any]

# Progress is logged at INFO every this many groups, DEBUG otherwise
PROGRESS_LOG_EVERY = 10


def partition_records(records: Sequence[Record], batch_size: int) -> Iterator[List[Record]]:
    """Yield consecutive groups of at most batch_size records, in order."""
    if batch_size < 1:
        raise ValueError("batch_size must be at least 1")
    for start in range(0, len(records), batch_size):
        yield list(records[start:start + batch_size])


def classify_failure(error: Exception) -> FailureCategory:
    if isinstance(error, ValidationError):
        return FailureCategory.VALIDATION
    if isinstance(error, RetryableError):
        return FailureCategory.THROUGHPUT
    if isinstance(error, ConnectionError):
        return FailureCategory.CONNECTIVITY
    if isinstance(error, ConflictError):
        return FailureCategory.CONFLICT
    return FailureCategory.UNKNOWN


class BatchImporter:
    """Writes records to one table through a TableGateway."""

    def __init__(
        self,
        gateway,
        batch_size: int = 25,
        batch_delay_seconds: float = 0.1,
        max_workers: int = 1,
        key_attributes: Sequence[str] = (),
        sleep: Callable[[float], None] = time.sleep,
        on_progress: Optional[Callable[[BatchProgress], None]] = None
    ):
        """
        Args:
            gateway: TableGateway for the destination table
            batch_size: Records per group
            batch_delay_seconds: Pause between groups
            max_workers: Concurrent PutItem calls within a group
            key_attributes: Attributes identifying a record in log messages
            sleep: Sleep function, replaced in tests
            on_progress: Called with the running counts after every group
        """
        if batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        self.gateway = gateway
        self.batch_size = batch_size
        self.batch_delay_seconds = batch_delay_seconds
        self.max_workers = max(1, max_workers)
        self.key_attributes = tuple(key_attributes)
        self._sleep = sleep
        self._on_progress = on_progress

    def import_records(self, records: Sequence[Record]) -> ImportResult:
        """
        Write all records and report what succeeded and what failed.

        Args:
            records: Records in source order

        Returns:
            ImportResult with success_count + failed_count == len(records)
        """
        result = ImportResult()
        total_batches = math.ceil(len(records) / self.batch_size)
        table_name = self.gateway.table_name

        logger.info(f"Starting import of {len(records)} items into {table_name} in {total_batches} batches")

        for batch_number, group in enumerate(partition_records(records, self.batch_size), start=1):
            logger.debug(f"Processing batch {batch_number}/{total_batches} ({len(group)} items)")

            for record, error in self._write_group(group):
                if error is None:
                    result.record_success()
                    continue
                category = classify_failure(error)
                logger.warning(f"Failed to import item {self._describe(record)} ({category.value}): {error}")
                result.record_failure(record, str(error), category)

            result.batches_processed = batch_number
            self._report_progress(BatchProgress(
                batch_number=batch_number,
                total_batches=total_batches,
                batch_size=len(group),
                success_count=result.success_count,
                failed_count=result.failed_count,
            ), len(records))

            if batch_number < total_batches and self.batch_delay_seconds > 0:
                self._sleep(self.batch_delay_seconds)

        logger.info(f"Import complete. Success: {result.success_count}, Failed: {result.failed_count}")
        if result.failed_count:
            first_failures = [f"{self._describe(f.record)}: {f.reason}" for f in result.failed_records[:5]]
            logger.error(
                f"Failed to import {result.failed_count} items {result.failures_by_category()}. "
                f"First few errors: {first_failures}"
            )
        return result

    def _write_record(self, record: Record) -> Optional[Exception]:
        try:
            self.gateway.put_item(record)
        except ImporterError as e:
            return e
        except Exception as e:
            # Counted as UNKNOWN; a single record never aborts the run
            logger.debug(f"Unexpected error writing {self._describe(record)}", exc_info=True)
            return e
        return None

    def _write_group(self, group: List[Record]) -> List[Tuple[Record, Optional[Exception]]]:
        if self.max_workers > 1 and len(group) > 1:
            with ThreadPoolExecutor(max_workers=min(self.max_workers, len(group))) as executor:
                errors = list(executor.map(self._write_record, group))
        else:
            errors = [self._write_record(record) for record in group]
        return list(zip(group, errors))

    def _report_progress(self, progress: BatchProgress, total_records: int) -> None:
        message = (
            f"Progress: batch {progress.batch_number}/{progress.total_batches}, "
            f"{progress.success_count}/{total_records} items imported successfully, "
            f"{progress.failed_count} failed"
        )
        if progress.batch_number % PROGRESS_LOG_EVERY == 0 or progress.batch_number == progress.total_batches:
            logger.info(message)
        else:
            logger.debug(message)

        if self._on_progress is not None:
            self._on_progress(progress)

    def _describe(self, record: Record) -> str:
        if not self.key_attributes:
            return "<record>"
        return str({name: record.get(name) for name in self.key_attributes})
