"""
Domain Models for the Table Importer

This module holds the models that describe an export file: the table schema
as the exporter wrote it (DynamoDB-native shapes such as KeySchema and
AttributeDefinitions) and the artifact that bundles metadata, schema and
records.

Organized by concern:
1. Enums shared by schema and lifecycle code
2. Table schema building blocks (keys, attributes, throughput, indexes)
3. TableSchema and ExportArtifact
"""

from enum import Enum
from typing import Any, Dict, Iterable, List, Optional, Set

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator


# =============================================================================
# Enums
# =============================================================================

class KeyType(str, Enum):
    """Role of an attribute in a key schema."""
    HASH = "HASH"  # partition key
    RANGE = "RANGE"  # sort key


class ScalarAttributeType(str, Enum):
    """Types DynamoDB allows for key attributes."""
    STRING = "S"
    NUMBER = "N"
    BINARY = "B"


class BillingMode(str, Enum):
    """Table capacity mode."""
    PAY_PER_REQUEST = "PAY_PER_REQUEST"
    PROVISIONED = "PROVISIONED"


class ProjectionType(str, Enum):
    """Attributes copied into a secondary index."""
    ALL = "ALL"
    KEYS_ONLY = "KEYS_ONLY"
    INCLUDE = "INCLUDE"


class TableState(str, Enum):
    """Destination table state as observed through DescribeTable."""
    ABSENT = "ABSENT"
    TRANSITIONING = "TRANSITIONING"
    ACTIVE = "ACTIVE"


# =============================================================================
# Schema Building Blocks
# =============================================================================

class _DynamoShape(BaseModel):
    """Base for models that mirror DynamoDB request/response shapes."""

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore"
    )


class KeyElement(_DynamoShape):
    attribute_name: str = Field(..., alias="AttributeName", min_length=1)
    key_type: KeyType = Field(..., alias="KeyType")


class AttributeDefinition(_DynamoShape):
    attribute_name: str = Field(..., alias="AttributeName", min_length=1)
    attribute_type: ScalarAttributeType = Field(..., alias="AttributeType")


class ProvisionedThroughput(_DynamoShape):
    """Read/write capacity units.

    Exports taken from on-demand tables carry zeros here, so zero is allowed
    and treated as "no capacity recorded".
    """

    read_capacity_units: int = Field(0, alias="ReadCapacityUnits", ge=0)
    write_capacity_units: int = Field(0, alias="WriteCapacityUnits", ge=0)

    @property
    def is_set(self) -> bool:
        return self.read_capacity_units > 0 and self.write_capacity_units > 0


class Projection(_DynamoShape):
    projection_type: ProjectionType = Field(ProjectionType.ALL, alias="ProjectionType")
    non_key_attributes: Optional[List[str]] = Field(None, alias="NonKeyAttributes")


class IndexDefinition(_DynamoShape):
    """A global or local secondary index as exported."""

    index_name: str = Field(..., alias="IndexName", min_length=1)
    key_schema: List[KeyElement] = Field(..., alias="KeySchema")
    projection: Projection = Field(default_factory=Projection, alias="Projection")
    provisioned_throughput: Optional[ProvisionedThroughput] = Field(None, alias="ProvisionedThroughput")

    @property
    def partition_key(self) -> str:
        return _partition_key(self.key_schema)

    @model_validator(mode="after")
    def validate_key_schema(self):
        _check_key_schema(self.key_schema, f"index '{self.index_name}'")
        return self


def _partition_key(key_schema: Iterable[KeyElement]) -> str:
    return next(k.attribute_name for k in key_schema if k.key_type == KeyType.HASH)


def _check_key_schema(key_schema: List[KeyElement], owner: str) -> None:
    """Exactly one HASH element, first, and at most one RANGE element."""
    roles = [k.key_type for k in key_schema]
    if roles.count(KeyType.HASH) != 1:
        raise ValueError(f"{owner} must have exactly one HASH (partition) key")
    if roles.count(KeyType.RANGE) > 1:
        raise ValueError(f"{owner} may have at most one RANGE (sort) key")
    if roles[0] != KeyType.HASH:
        raise ValueError(f"{owner} must list its HASH key first")


# =============================================================================
# Table Schema and Export Artifact
# =============================================================================

class TableSchema(_DynamoShape):
    """Exported description of a DynamoDB table."""

    table_name: str = Field(..., alias="tableName", min_length=3, max_length=255)
    key_schema: List[KeyElement] = Field(..., alias="keySchema")
    attribute_definitions: List[AttributeDefinition] = Field(..., alias="attributeDefinitions")
    billing_mode: Optional[BillingMode] = Field(None, alias="billingMode")
    provisioned_throughput: Optional[ProvisionedThroughput] = Field(None, alias="provisionedThroughput")
    global_secondary_indexes: List[IndexDefinition] = Field(default_factory=list, alias="globalSecondaryIndexes")
    local_secondary_indexes: List[IndexDefinition] = Field(default_factory=list, alias="localSecondaryIndexes")
    stream_specification: Optional[Dict[str, Any]] = Field(None, alias="streamSpecification")

    @field_validator("billing_mode", mode="before")
    @classmethod
    def normalize_billing_mode(cls, v):
        """Accept ON_DEMAND as a synonym for PAY_PER_REQUEST."""
        if isinstance(v, str):
            v = v.strip().upper()
            if v == "ON_DEMAND":
                return BillingMode.PAY_PER_REQUEST
        return v

    @field_validator("global_secondary_indexes", "local_secondary_indexes", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return [] if v is None else v

    @model_validator(mode="after")
    def validate_schema(self):
        _check_key_schema(self.key_schema, "table key schema")

        for lsi in self.local_secondary_indexes:
            if lsi.partition_key != self.partition_key:
                raise ValueError(
                    f"local index '{lsi.index_name}' must use the table partition key '{self.partition_key}'"
                )

        names = [index.index_name for index in self.indexes]
        duplicates = sorted({name for name in names if names.count(name) > 1})
        if duplicates:
            raise ValueError(f"duplicate index names: {duplicates}")

        defined = {a.attribute_name for a in self.attribute_definitions}
        missing = sorted(self.key_attribute_names() - defined)
        if missing:
            raise ValueError(f"attributeDefinitions is missing key attributes: {missing}")
        return self

    @property
    def partition_key(self) -> str:
        return _partition_key(self.key_schema)

    @property
    def sort_key(self) -> Optional[str]:
        return next((k.attribute_name for k in self.key_schema if k.key_type == KeyType.RANGE), None)

    @property
    def effective_billing_mode(self) -> BillingMode:
        """Billing mode to create the table with; on-demand unless the export says otherwise."""
        return self.billing_mode or BillingMode.PAY_PER_REQUEST

    @property
    def indexes(self) -> List[IndexDefinition]:
        return list(self.global_secondary_indexes) + list(self.local_secondary_indexes)

    def key_attribute_names(self) -> Set[str]:
        """Every attribute used by the table key or an index key."""
        names = {k.attribute_name for k in self.key_schema}
        for index in self.indexes:
            names.update(k.attribute_name for k in index.key_schema)
        return names


class ExportArtifact(BaseModel):
    """A loaded export file.

    The exporter writes the sections as exportMetadata, tableSchema and items;
    metadata, schema and records are accepted as well.
    """

    metadata: Any = Field(..., validation_alias=AliasChoices("exportMetadata", "metadata"))
    table_schema: TableSchema = Field(..., validation_alias=AliasChoices("tableSchema", "schema"))
    records: List[Dict[str, Any]] = Field(..., validation_alias=AliasChoices("items", "records"))

    model_config = ConfigDict(
        populate_by_name=True,
        frozen=True,
        extra="ignore"
    )

    @property
    def record_count(self) -> int:
        return len(self.records)
