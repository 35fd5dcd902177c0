import os
from typing import Any, Dict, Mapping, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from ..exceptions import ConfigurationError

# Load environment variables from .env file if it exists
load_dotenv()


def _env_flag(name: str, default: str = "false") -> bool:
    return os.getenv(name, default).lower() == "true"


# Invocation event keys and the config fields they override
EVENT_FIELD_MAP = {
    "sourceBucket": "source_bucket",
    "sourceKey": "source_key",
    "targetTableName": "target_table_name",
    "createTable": "create_table",
    "overwriteExisting": "overwrite_existing",
    "region": "region_name",
    "batchSize": "batch_size",
    "dryRun": "dry_run",
    "maxWorkers": "max_workers",
}


class ImporterConfig(BaseModel):
    """Configuration for a single table import run and its AWS connections."""

    aws_access_key_id: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_ACCESS_KEY_ID"),
        description="AWS access key ID"
    )

    aws_secret_access_key: Optional[str] = Field(
        default_factory=lambda: os.getenv("AWS_SECRET_ACCESS_KEY"),
        description="AWS secret access key"
    )

    region_name: str = Field(
        default_factory=lambda: os.getenv("AWS_REGION", "eu-west-2"),
        description="AWS region name"
    )

    # Endpoint overrides (for local development)
    endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("DYNAMODB_ENDPOINT_URL"),
        description="DynamoDB endpoint URL"
    )

    s3_endpoint_url: Optional[str] = Field(
        default_factory=lambda: os.getenv("S3_ENDPOINT_URL"),
        description="S3 endpoint URL"
    )

    # Connection settings
    max_pool_connections: int = Field(
        default=50,
        description="Maximum number of connections in the connection pool"
    )

    retries: int = Field(
        default=3,
        description="Number of retry attempts botocore makes for failed requests"
    )

    timeout_seconds: float = Field(
        default=30.0,
        description="Request timeout in seconds"
    )

    # Source snapshot
    source_bucket: str = Field(
        default_factory=lambda: os.getenv("SOURCE_BUCKET") or "realmforge-backups",
        description="S3 bucket containing the export file"
    )

    source_key: str = Field(
        default_factory=lambda: os.getenv("SOURCE_KEY", ""),
        description="S3 key of the export file (required)"
    )

    # Destination table policy
    target_table_name: Optional[str] = Field(
        default_factory=lambda: os.getenv("TARGET_TABLE_NAME") or None,
        description="Override for the exported table name"
    )

    create_table: bool = Field(
        default_factory=lambda: _env_flag("CREATE_TABLE"),
        description="Create the table when it does not exist"
    )

    overwrite_existing: bool = Field(
        default_factory=lambda: _env_flag("OVERWRITE_EXISTING"),
        description="Delete and recreate the table when it already exists"
    )

    dry_run: bool = Field(
        default_factory=lambda: _env_flag("DRY_RUN"),
        description="Validate the export and plan table changes without writing"
    )

    # Import pacing
    batch_size: int = Field(
        default_factory=lambda: os.getenv("BATCH_SIZE", "25"),
        validate_default=True,
        ge=1,
        description="Number of records per import group"
    )

    batch_delay_seconds: float = Field(
        default=0.1,
        ge=0,
        description="Fixed pause between import groups"
    )

    max_workers: int = Field(
        default_factory=lambda: os.getenv("IMPORT_MAX_WORKERS", "1"),
        validate_default=True,
        ge=1,
        description="Concurrent PutItem calls within one group"
    )

    # Table state polling
    poll_interval_seconds: float = Field(
        default=2.0,
        ge=0,
        description="Pause between table status checks"
    )

    max_poll_attempts: int = Field(
        default=30,
        ge=1,
        description="Status checks before a create/delete is declared timed out"
    )

    # Reporting
    max_reported_failures: int = Field(
        default=25,
        ge=0,
        description="Failed records included in the response body"
    )

    # Logging settings
    enable_debug_logging: bool = Field(
        default_factory=lambda: _env_flag("IMPORTER_DEBUG_LOGGING"),
        description="Enable debug logging for import operations"
    )

    @field_validator('region_name')
    @classmethod
    def validate_region(cls, v):
        """Validate AWS region name."""
        if not v:
            raise ValueError("AWS region name is required")
        return v

    @field_validator('source_bucket')
    @classmethod
    def validate_source_bucket(cls, v):
        """Validate source bucket name."""
        if not v:
            raise ValueError("Source bucket is required")
        return v

    @property
    def source_uri(self) -> str:
        """S3 URI of the export file."""
        return f"s3://{self.source_bucket}/{self.source_key}"

    def resolve_table_name(self, exported_name: str) -> str:
        """Destination table name: the override if set, else the exported name."""
        return self.target_table_name or exported_name

    @classmethod
    def from_env(cls) -> 'ImporterConfig':
        """Create configuration from environment variables.

        Returns:
            ImporterConfig instance
        """
        return cls._build({})

    @classmethod
    def from_event(cls, event: Optional[Mapping[str, Any]]) -> 'ImporterConfig':
        """Create the run configuration from environment defaults and event overrides.

        Event values that are None or empty strings are ignored so the
        environment value applies.

        Args:
            event: Invocation event (camelCase keys, see EVENT_FIELD_MAP)

        Returns:
            ImporterConfig instance for one run

        Raises:
            ConfigurationError: An option has an invalid value
        """
        overrides: Dict[str, Any] = {}
        for event_key, field_name in EVENT_FIELD_MAP.items():
            value = (event or {}).get(event_key)
            if value is None or value == "":
                continue
            overrides[field_name] = value
        return cls._build(overrides)

    @classmethod
    def for_local_development(cls, **kwargs) -> 'ImporterConfig':
        """Create configuration for DynamoDB Local / LocalStack development.

        Returns:
            ImporterConfig instance configured for local endpoints
        """
        defaults = dict(
            aws_access_key_id="local",
            aws_secret_access_key="local",
            region_name="us-east-1",
            endpoint_url="http://localhost:8000",
            poll_interval_seconds=0.5,
            batch_delay_seconds=0,
            enable_debug_logging=True
        )
        defaults.update(kwargs)
        return cls._build(defaults)

    @classmethod
    def _build(cls, values: Dict[str, Any]) -> 'ImporterConfig':
        try:
            return cls(**values)
        except ValidationError as e:
            errors = {
                ".".join(str(part) for part in err["loc"]): err["msg"]
                for err in e.errors()
            }
            raise ConfigurationError(f"Invalid import configuration: {e}", errors, e) from e

    model_config = ConfigDict(frozen=True)
