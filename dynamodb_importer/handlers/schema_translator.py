"""
Exported schema to CreateTable request translation.

Pure functions, no AWS calls. The rules that matter:

- Billing mode is PAY_PER_REQUEST unless the export says PROVISIONED.
- ProvisionedThroughput appears only under PROVISIONED billing, on the table
  and on each global index. CreateTable rejects it under PAY_PER_REQUEST,
  so it is omitted there rather than zeroed.
- When PROVISIONED capacity was not exported, 5 RCU / 5 WCU is used.
- Local indexes never carry their own throughput.
- StreamSpecification is copied as exported.
"""

from typing import Any, Dict, List, Optional

from ..models import (
    BillingMode,
    IndexDefinition,
    KeyElement,
    Projection,
    ProjectionType,
    ProvisionedThroughput,
    TableSchema,
)

DEFAULT_READ_CAPACITY_UNITS = 5
DEFAULT_WRITE_CAPACITY_UNITS = 5


def _key_schema(elements: List[KeyElement]) -> List[Dict[str, str]]:
    return [{'AttributeName': k.attribute_name, 'KeyType': k.key_type.value} for k in elements]


def _projection(projection: Projection) -> Dict[str, Any]:
    params: Dict[str, Any] = {'ProjectionType': projection.projection_type.value}
    if projection.projection_type == ProjectionType.INCLUDE and projection.non_key_attributes:
        params['NonKeyAttributes'] = list(projection.non_key_attributes)
    return params


def provisioned_throughput(exported: Optional[ProvisionedThroughput]) -> Dict[str, int]:
    """Exported capacity when it was recorded, otherwise the conservative minimum."""
    if exported is not None and exported.is_set:
        return {
            'ReadCapacityUnits': exported.read_capacity_units,
            'WriteCapacityUnits': exported.write_capacity_units,
        }
    return {
        'ReadCapacityUnits': DEFAULT_READ_CAPACITY_UNITS,
        'WriteCapacityUnits': DEFAULT_WRITE_CAPACITY_UNITS,
    }


def translate_global_index(index: IndexDefinition, billing_mode: BillingMode) -> Dict[str, Any]:
    params = {
        'IndexName': index.index_name,
        'KeySchema': _key_schema(index.key_schema),
        'Projection': _projection(index.projection),
    }
    if billing_mode == BillingMode.PROVISIONED:
        params['ProvisionedThroughput'] = provisioned_throughput(index.provisioned_throughput)
    return params


def translate_local_index(index: IndexDefinition) -> Dict[str, Any]:
    return {
        'IndexName': index.index_name,
        'KeySchema': _key_schema(index.key_schema),
        'Projection': _projection(index.projection),
    }


def build_create_table_params(table_name: str, schema: TableSchema) -> Dict[str, Any]:
    """
    Build the CreateTable request for an exported schema.

    Args:
        table_name: Destination table name (may differ from the exported one)
        schema: Validated exported schema

    Returns:
        Keyword arguments for DynamoDB.Client.create_table
    """
    billing_mode = schema.effective_billing_mode
    referenced = schema.key_attribute_names()

    params: Dict[str, Any] = {
        'TableName': table_name,
        'KeySchema': _key_schema(schema.key_schema),
        # CreateTable rejects definitions for attributes no key uses
        'AttributeDefinitions': [
            {'AttributeName': a.attribute_name, 'AttributeType': a.attribute_type.value}
            for a in schema.attribute_definitions
            if a.attribute_name in referenced
        ],
        'BillingMode': billing_mode.value,
    }

    if billing_mode == BillingMode.PROVISIONED:
        params['ProvisionedThroughput'] = provisioned_throughput(schema.provisioned_throughput)

    if schema.global_secondary_indexes:
        params['GlobalSecondaryIndexes'] = [
            translate_global_index(gsi, billing_mode) for gsi in schema.global_secondary_indexes
        ]

    if schema.local_secondary_indexes:
        params['LocalSecondaryIndexes'] = [
            translate_local_index(lsi) for lsi in schema.local_secondary_indexes
        ]

    if schema.stream_specification:
        params['StreamSpecification'] = schema.stream_specification

    return params
