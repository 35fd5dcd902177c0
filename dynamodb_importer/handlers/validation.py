"""
Export file validation.

The gate every import passes before anything touches the destination table:
the three required sections must be present and non-null, and the schema
and records must parse into an ExportArtifact.
"""

import logging
from typing import Any, Dict, Tuple

from pydantic import ValidationError as PydanticValidationError

from ..exceptions import MalformedExportError
from ..models import ExportArtifact

logger = logging.getLogger(__name__)

# (reported name, accepted keys), checked in this order
REQUIRED_SECTIONS: Tuple[Tuple[str, Tuple[str, ...]], ...] = (
    ("exportMetadata", ("exportMetadata", "metadata")),
    ("tableSchema", ("tableSchema", "schema")),
    ("items", ("items", "records")),
)

_FIELD_SECTIONS = {
    "metadata": "exportMetadata",
    "table_schema": "tableSchema",
    "schema": "tableSchema",
    "records": "items",
}


def _section_value(raw: Dict[str, Any], keys: Tuple[str, ...]) -> Any:
    for key in keys:
        if raw.get(key) is not None:
            return raw[key]
    return None


def validate_export(raw: Any) -> ExportArtifact:
    """
    Validate a parsed export document and build the ExportArtifact.

    Args:
        raw: The document as returned by the snapshot loader

    Returns:
        Validated, immutable ExportArtifact

    Raises:
        MalformedExportError: A section is missing or null (the first one is
            named), or the schema/records do not parse
    """
    if not isinstance(raw, dict):
        raise MalformedExportError("<root>", f"must be a JSON object, got {type(raw).__name__}")

    for section, keys in REQUIRED_SECTIONS:
        if _section_value(raw, keys) is None:
            raise MalformedExportError(section)

    try:
        artifact = ExportArtifact.model_validate(raw)
    except PydanticValidationError as e:
        errors = {
            ".".join(str(part) for part in err["loc"]): err["msg"]
            for err in e.errors()
        }
        first_field = str(e.errors()[0]["loc"][0]) if e.errors() else "tableSchema"
        section = _FIELD_SECTIONS.get(first_field, first_field)
        raise MalformedExportError(section, "failed validation", errors, e) from e

    logger.info(
        f"Validated export for table {artifact.table_schema.table_name}: "
        f"{artifact.record_count} items"
    )
    return artifact
