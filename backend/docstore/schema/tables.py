# docstore/schema/tables.py
from __future__ import annotations

import uuid

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Index,
    Integer,
    MetaData,
    String,
    Table,
    Text,
)

from docstore.models.base import utc_now
from docstore.storage.filters import compile_filter
from .descriptor import IndexSpec, SchemaDescriptor
from .partition import PartitionPlan

COLUMN_TYPES = {
    "string": lambda: String(255),
    "text": Text,
    "integer": Integer,
    "float": Float,
    "boolean": Boolean,
    "datetime": lambda: DateTime(timezone=True),
    "json": JSON,
}


def _system_columns():
    return [
        Column("id", String(36), primary_key=True, default=lambda: str(uuid.uuid4())),
        Column("document_id", String(64), nullable=False, index=True),
        Column("locale", String(16), nullable=False, default="en"),
        Column("status", String(20), nullable=False, default="draft"),
        Column("published_at", DateTime(timezone=True), nullable=True),
        Column("created_at", DateTime(timezone=True), nullable=False, default=utc_now),
        Column("updated_at", DateTime(timezone=True), nullable=False, default=utc_now, onupdate=utc_now),
        Column("created_by", String(36), nullable=True),
        Column("updated_by", String(36), nullable=True),
    ]


def _field_column(spec, converted: bool, default_locale: str) -> Column:
    column_type = JSON() if spec.localized else COLUMN_TYPES[spec.type]()

    default = spec.default
    if spec.localized and default is not None:
        default = {default_locale: default}

    # Converted fields lose standalone uniqueness; the partial index replaces it
    if converted:
        unique, index = False, False
    elif spec.has_unique_index:
        unique, index = True, True
    else:
        unique, index = spec.unique, bool(spec.index)

    return Column(
        spec.name,
        column_type,
        nullable=True,
        unique=unique,
        index=index,
        default=default,
    )


def _index(table: Table, spec: IndexSpec) -> Index:
    options = {}
    if spec.where:
        predicate = compile_filter(table, spec.where)
        options["sqlite_where"] = predicate
        options["postgresql_where"] = predicate

    return Index(
        spec.name,
        *(table.c[name] for name in spec.fields),
        unique=spec.unique,
        **options,
    )


def build_table(schema: SchemaDescriptor, metadata: MetaData, plan: PartitionPlan) -> Table:
    """
    Build the document table for `schema` with the partition plan applied.
    """
    converted = set(plan.fields_converted)
    dropped = set(plan.indexes_to_drop)

    table = Table(
        schema.table,
        metadata,
        *_system_columns(),
        *(_field_column(spec, spec.name in converted, schema.default_locale or "en") for spec in schema.fields),
    )

    for spec in schema.indexes:
        if spec.name not in dropped:
            _index(table, spec)

    for spec in plan.indexes_to_create:
        _index(table, spec)

    return table
