#!/usr/bin/env python3
"""
Basic usage examples for the DynamoDB table importer.

This example demonstrates:
1. Building a configuration for DynamoDB Local / LocalStack
2. Planning an import with a dry run
3. Running the import with a progress callback
4. Invoking the Lambda entry point with an event
"""

import json
import os

from dynamodb_importer import ImporterConfig, ImporterError, TableImportOrchestrator, lambda_handler


def print_progress(progress):
    print(f"  batch {progress.batch_number}/{progress.total_batches}: "
          f"{progress.success_count} imported, {progress.failed_count} failed")


def main():
    """Import an export file into a local DynamoDB."""

    # 1. Configure local endpoints; the export must already be in the bucket
    print("1. Setting up importer configuration...")
    config = ImporterConfig.for_local_development(
        s3_endpoint_url=os.getenv("S3_ENDPOINT_URL", "http://localhost:4566"),
        source_bucket=os.getenv("SOURCE_BUCKET", "realmforge-backups"),
        source_key=os.getenv("SOURCE_KEY", "exports/users.json"),
        create_table=True,
        overwrite_existing=True,
    )

    # 2. Dry run: validate the export and see what would happen to the table
    print("2. Planning the import (dry run)...")
    plan = TableImportOrchestrator(config.model_copy(update={"dry_run": True})).run()
    print(f"Would {plan.lifecycle_action.value} table {plan.table_name}")

    # 3. Real run
    print("3. Importing...")
    try:
        report = TableImportOrchestrator(config, on_progress=print_progress).run()
    except ImporterError as e:
        print(f"Import failed: {e}")
        return

    print(f"Imported {report.imported_items} items into {report.table_name}, {report.failed_items} failed")
    for failure in report.failed_records[:5]:
        print(f"  {failure.category.value}: {failure.reason}")

    # 4. The same import through the Lambda entry point
    print("4. Invoking lambda_handler...")
    response = lambda_handler({
        "sourceBucket": config.source_bucket,
        "sourceKey": config.source_key,
        "createTable": True,
        "overwriteExisting": True,
    })
    print(f"statusCode={response['statusCode']}")
    print(json.dumps(json.loads(response["body"]), indent=2))


if __name__ == "__main__":
    main()
