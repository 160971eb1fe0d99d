# docstore/storage/filters.py
"""
Translate dict filters into SQLAlchemy expressions.

Filter shape:
{
    "status": "draft",
    "version_number": {"$gte": 2},
    "$or": [{"locale": "en"}, {"locale": "fr"}],
}
"""
from __future__ import annotations

import operator
import uuid
from typing import Any, Dict, List, Mapping

from sqlalchemy import Column, Table, and_, not_, or_, true
from sqlalchemy.sql.elements import ColumnElement

from docstore.domain.exceptions import InvalidIdentifier

ID_ALIAS = "id"

COMPARISONS = {
    "$eq": operator.eq,
    "$ne": operator.ne,
    "$gt": operator.gt,
    "$gte": operator.ge,
    "$lt": operator.lt,
    "$lte": operator.le,
}


def primary_key_column(table: Table) -> Column:
    return list(table.primary_key.columns)[0]


def resolve_column(table: Table, key: str) -> Column:
    if key in table.c:
        return table.c[key]
    if key == ID_ALIAS:
        return primary_key_column(table)
    raise ValueError(f"Unknown field '{key}' for '{table.name}'")


def coerce_identifier(value: Any) -> str:
    """
    Normalize a primary-key value to its canonical UUID string.

    Raises InvalidIdentifier for anything that cannot be one.
    """
    try:
        return str(uuid.UUID(str(value)))
    except (TypeError, ValueError, AttributeError) as exc:
        raise InvalidIdentifier(f"'{value}' is not a valid identifier") from exc


def _coerce(column: Column, value: Any) -> Any:
    if not column.primary_key or value is None:
        return value
    if isinstance(value, (list, tuple, set)):
        return [coerce_identifier(item) for item in value]
    return coerce_identifier(value)


def _condition(column: Column, condition: Any) -> ColumnElement:
    if not isinstance(condition, Mapping) or not any(str(k).startswith("$") for k in condition):
        value = _coerce(column, condition)
        return column.is_(None) if value is None else column == value

    clauses: List[ColumnElement] = []
    for op, raw in condition.items():
        if op == "$exists":
            clauses.append(column.isnot(None) if raw else column.is_(None))
            continue

        value = _coerce(column, raw)

        if op == "$in":
            clauses.append(column.in_(list(value)))
        elif op == "$nin":
            clauses.append(not_(column.in_(list(value))))
        elif op in COMPARISONS:
            if value is None and op in ("$eq", "$ne"):
                clauses.append(column.is_(None) if op == "$eq" else column.isnot(None))
            else:
                clauses.append(COMPARISONS[op](column, value))
        else:
            raise ValueError(f"Unsupported filter operator '{op}'")

    return and_(*clauses) if len(clauses) > 1 else clauses[0]


def compile_filter(table: Table, filter: Dict[str, Any] | None) -> ColumnElement:
    if not filter:
        return true()

    clauses: List[ColumnElement] = []
    for key, condition in filter.items():
        if key == "$and":
            parts = [compile_filter(table, item) for item in condition]
            clauses.append(and_(*parts) if parts else true())
        elif key == "$or":
            parts = [compile_filter(table, item) for item in condition]
            if parts:
                clauses.append(or_(*parts))
        else:
            clauses.append(_condition(resolve_column(table, key), condition))

    if not clauses:
        return true()
    return and_(*clauses) if len(clauses) > 1 else clauses[0]
