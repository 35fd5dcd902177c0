"""
Import Result Models

Models produced while an import runs: the per-record failure list, the
group-level progress snapshots, the Batch Importer's ImportResult, and the
ImportReport the orchestrator returns to the caller.
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, ConfigDict, Field


class FailureCategory(str, Enum):
    """Why a single record could not be written."""
    VALIDATION = "validation"  # the store rejected the item itself
    THROUGHPUT = "throughput"  # throttled or temporarily unavailable
    CONNECTIVITY = "connectivity"  # network, endpoint or credentials
    CONFLICT = "conflict"  # conditional check or resource in use
    UNKNOWN = "unknown"


class LifecycleAction(str, Enum):
    """What the lifecycle manager did (or, on a dry run, would do) to the destination table."""
    CREATE = "CREATE"
    DELETE_AND_CREATE = "DELETE_AND_CREATE"


class FailedRecord(BaseModel):
    record: Dict[str, Any]
    reason: str
    category: FailureCategory = FailureCategory.UNKNOWN

    model_config = ConfigDict(frozen=True)


class BatchProgress(BaseModel):
    """Counts after a group of records has been written."""

    batch_number: int
    total_batches: int
    batch_size: int
    success_count: int
    failed_count: int

    @property
    def processed(self) -> int:
        return self.success_count + self.failed_count


class ImportResult(BaseModel):
    """Outcome of writing a sequence of records.

    success_count + failed_count always equals the number of records given to
    the importer once the import has finished.
    """

    success_count: int = 0
    failed_count: int = 0
    failed_records: List[FailedRecord] = Field(default_factory=list)
    batches_processed: int = 0

    @property
    def total_processed(self) -> int:
        return self.success_count + self.failed_count

    def record_success(self) -> None:
        self.success_count += 1

    def record_failure(self, record: Dict[str, Any], reason: str, category: FailureCategory) -> None:
        self.failed_count += 1
        self.failed_records.append(FailedRecord(record=record, reason=reason, category=category))

    def failures_by_category(self) -> Dict[str, int]:
        counts: Dict[str, int] = {}
        for failure in self.failed_records:
            counts[failure.category.value] = counts.get(failure.category.value, 0) + 1
        return counts


class ImportReport(BaseModel):
    """Summary of a completed import run."""

    table_name: str
    imported_items: int
    failed_items: int
    source_file: str
    import_date: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    failed_records: List[FailedRecord] = Field(default_factory=list)
    lifecycle_action: LifecycleAction
    dry_run: bool = False

    def to_response_body(self, max_failures: int = 25) -> Dict[str, Any]:
        """Camel-cased body for the invocation response."""
        if self.dry_run:
            message = "Dry run completed, no changes were made"
        else:
            message = "Import completed successfully"
        return {
            "message": message,
            "tableName": self.table_name,
            "importedItems": self.imported_items,
            "failedItems": self.failed_items,
            "sourceFile": self.source_file,
            "importDate": self.import_date.isoformat(),
            "tableAction": self.lifecycle_action.value,
            "dryRun": self.dry_run,
            "failedRecords": [
                {"record": f.record, "reason": f.reason, "category": f.category.value}
                for f in self.failed_records[:max_failures]
            ],
        }
