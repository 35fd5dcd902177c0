"""
Tests for the Lambda entry point (handler.py)
"""

import json
import logging
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import patch

import pytest

from dynamodb_importer import handler
from dynamodb_importer.exceptions import (
    MalformedExportError,
    MissingSourceKeyError,
    TableExistsNoOverwriteError,
)
from dynamodb_importer.models import FailedRecord, FailureCategory, ImportReport, LifecycleAction


@pytest.fixture
def report():
    return ImportReport(
        table_name="Users",
        imported_items=2,
        failed_items=1,
        source_file="s3://test-exports/exports/users.json",
        import_date=datetime(2024, 5, 2, 9, 30, tzinfo=timezone.utc),
        failed_records=[FailedRecord(
            record={"id": 42, "score": Decimal("1.5"), "blob": b"\x00\x01", "tags": {"b", "a"}},
            reason="Validation failed - Type mismatch for key id",
            category=FailureCategory.VALIDATION
        )],
        lifecycle_action=LifecycleAction.CREATE
    )


@pytest.fixture
def mock_orchestrator():
    with patch("dynamodb_importer.handler.TableImportOrchestrator") as orchestrator_class:
        yield orchestrator_class


class TestLambdaHandler:

    def test_success_response(self, mock_orchestrator, report):
        mock_orchestrator.return_value.run.return_value = report

        response = handler.lambda_handler({"sourceKey": "exports/users.json"}, None)

        assert response["statusCode"] == 200
        body = json.loads(response["body"])
        assert body == {
            "message": "Import completed successfully",
            "tableName": "Users",
            "importedItems": 2,
            "failedItems": 1,
            "sourceFile": "s3://test-exports/exports/users.json",
            "importDate": "2024-05-02T09:30:00+00:00",
            "tableAction": "CREATE",
            "dryRun": False,
            "failedRecords": [{
                "record": {"id": 42, "score": 1.5, "blob": "AAE=", "tags": ["a", "b"]},
                "reason": "Validation failed - Type mismatch for key id",
                "category": "validation",
            }],
        }

    def test_event_reaches_configuration(self, mock_orchestrator, report):
        mock_orchestrator.return_value.run.return_value = report

        handler.lambda_handler({"sourceKey": "exports/orders.json", "createTable": True, "batchSize": 10})

        config = mock_orchestrator.call_args[0][0]
        assert config.source_key == "exports/orders.json"
        assert config.create_table is True
        assert config.batch_size == 10

    @pytest.mark.parametrize("error", [
        MissingSourceKeyError(),
        MalformedExportError("tableSchema"),
        TableExistsNoOverwriteError("Users"),
    ])
    def test_fatal_errors_return_500(self, mock_orchestrator, error):
        mock_orchestrator.return_value.run.side_effect = error

        response = handler.lambda_handler({"sourceKey": "exports/users.json"}, None)

        assert response["statusCode"] == 500
        body = json.loads(response["body"])
        assert body["message"] == "Import failed"
        assert body["error"] == error.message
        assert body["errorType"] == type(error).__name__

    def test_missing_source_key_end_to_end(self):
        """No key anywhere: the run stops before any AWS call."""
        response = handler.lambda_handler({}, None)

        assert response["statusCode"] == 500
        body = json.loads(response["body"])
        assert body["errorType"] == "MissingSourceKeyError"
        assert "SOURCE_KEY must be provided" in body["error"]

    def test_invalid_configuration(self, mock_orchestrator):
        response = handler.lambda_handler({"sourceKey": "a.json", "batchSize": 0})

        assert response["statusCode"] == 500
        assert json.loads(response["body"])["errorType"] == "ConfigurationError"
        mock_orchestrator.assert_not_called()

    def test_unexpected_error_still_answers(self, mock_orchestrator, caplog):
        mock_orchestrator.return_value.run.side_effect = RuntimeError("disk on fire")

        response = handler.lambda_handler({"sourceKey": "exports/users.json"})

        assert response["statusCode"] == 500
        body = json.loads(response["body"])
        assert body["error"] == "disk on fire"
        assert body["errorType"] == "RuntimeError"
        assert "unexpected error" in caplog.text

    def test_credentials_not_logged(self, mock_orchestrator, report, caplog):
        mock_orchestrator.return_value.run.return_value = report

        with caplog.at_level(logging.INFO, logger="dynamodb_importer"):
            handler.lambda_handler({"sourceKey": "exports/users.json"})

        assert "Starting DynamoDB import process" in caplog.text
        assert "aws_secret_access_key" not in caplog.text


class TestResponses:

    def test_failed_records_are_capped(self, report):
        many = report.model_copy(update={"failed_records": report.failed_records * 40, "failed_items": 40})

        body = json.loads(handler.build_success_response(many, max_failures=25)["body"])

        assert body["failedItems"] == 40
        assert len(body["failedRecords"]) == 25

    def test_dry_run_message(self, report):
        dry = report.model_copy(update={"dry_run": True, "imported_items": 0, "failed_items": 0, "failed_records": []})

        body = json.loads(handler.build_success_response(dry)["body"])

        assert body["dryRun"] is True
        assert body["message"] == "Dry run completed, no changes were made"

    def test_integral_decimals_serialize_as_int(self):
        assert handler._json_default(Decimal("36")) == 36
        assert isinstance(handler._json_default(Decimal("36")), int)

    def test_unknown_types_rejected(self):
        with pytest.raises(TypeError):
            handler._json_default(object())


class TestCachedHandles:

    def test_handles_reused_across_invocations(self, make_config):
        config = make_config()

        assert handler.get_dynamodb_resource(config) is handler.get_dynamodb_resource(config)
        assert handler.get_s3_client(config) is handler.get_s3_client(config)

    def test_handles_keyed_by_region(self, make_config):
        east = handler.get_s3_client(make_config(region_name="us-east-1"))
        west = handler.get_s3_client(make_config(region_name="us-west-2"))

        assert east is not west

    def test_reset(self, make_config):
        config = make_config()
        first = handler.get_dynamodb_resource(config)

        handler.reset_cached_handles()

        assert handler.get_dynamodb_resource(config) is not first
