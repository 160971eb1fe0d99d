from datetime import date, datetime
from typing import Any, Dict, Optional

from dateutil.parser import isoparse

from docstore.schema.descriptor import SchemaDescriptor
from docstore.store import get_version_store


def _jsonable(value):
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return value


def snapshot_document(schema: SchemaDescriptor, row: Dict[str, Any]) -> Dict[str, Any]:
    """Field values of a document row, as stored in a version's data."""
    return {name: _jsonable(row.get(name)) for name in schema.field_names}


def record_version(
    schema: SchemaDescriptor,
    row: Dict[str, Any],
    *,
    status: str,
    actor_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    if not schema.versioning:
        return None

    return get_version_store().create_version(
        row["document_id"],
        schema.name,
        snapshot_document(schema, row),
        status=status,
        created_by=actor_id,
        notes=notes,
        locale=row["locale"],
    )


def restore_snapshot(schema: SchemaDescriptor, data: Dict[str, Any]) -> Dict[str, Any]:
    """Inverse of snapshot_document: column-ready values from a version's data."""
    values = {}
    for spec in schema.fields:
        if spec.name not in data:
            continue
        value = data[spec.name]
        if spec.type == "datetime" and not spec.localized and isinstance(value, str):
            value = isoparse(value)
        values[spec.name] = value
    return values
