"""
Handler Layer for the Table Importer

Each module implements one step of an import and is usable on its own:

- validation: export file gate (validate_export)
- schema_translator: exported schema -> CreateTable request
- lifecycle: destination table state checks and create/delete transitions
- batch_importer: grouped, failure-isolated record writes
- orchestrator: runs the steps in order for one import

Architecture:
handlers/ (this layer) -> core/ (AWS access) -> DynamoDB, S3
handlers/ (this layer) <- models/ (export and result models)
"""

from .batch_importer import BatchImporter, classify_failure, partition_records
from .lifecycle import TERMINAL_STATES, TableLifecycleManager, plan_table_action
from .orchestrator import TableImportOrchestrator
from .schema_translator import build_create_table_params
from .validation import REQUIRED_SECTIONS, validate_export

__all__ = [
    'BatchImporter',
    'REQUIRED_SECTIONS',
    'TERMINAL_STATES',
    'TableImportOrchestrator',
    'TableLifecycleManager',
    'build_create_table_params',
    'classify_failure',
    'partition_records',
    'plan_table_action',
    'validate_export',
]
