# docstore/storage/sql.py
from __future__ import annotations

import uuid
from contextlib import contextmanager
from typing import Any, Dict, List, Optional

from sqlalchemy import Table, delete, func, insert, literal, select, update
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from docstore.domain.exceptions import InvalidIdentifier, StorageError, UniqueConstraintViolation
from docstore.extensions import db
from docstore.i18n.resolver import LocaleResolver
from docstore.schema.descriptor import SchemaDescriptor
from docstore.utils.transaction import transactional
from .filters import ID_ALIAS, compile_filter, primary_key_column, resolve_column
from .port import Filter, PaginatedResult, QueryBuilder, Record, StoragePort

DESCENDING = {-1, "desc", "descending"}


def _execute(statement):
    try:
        return db.session.execute(statement)
    except SQLAlchemyError as exc:
        db.session.rollback()
        raise StorageError(f"Query failed: {exc}") from exc


class SqlQueryBuilder(QueryBuilder):
    """
    SQLAlchemy implementation of the fluent query builder.

    Primary-key values that are not valid identifiers never reach the
    database: exec() returns [], exec_one() returns None.
    """

    def __init__(
        self,
        table: Table,
        *,
        schema: Optional[SchemaDescriptor] = None,
        resolver: Optional[LocaleResolver] = None,
        locale: Optional[str] = None,
        version: Optional[str] = None,
    ):
        self.table = table
        self.schema = schema
        self.resolver = resolver or LocaleResolver()

        self._filter: Filter = {}
        self._and: List[Filter] = []
        self._or: List[Filter] = []
        self._sort: Dict[str, Any] = {}
        self._projection: Dict[str, Any] = {}
        self._limit: Optional[int] = None
        self._skip: Optional[int] = None
        self._locale = locale
        self._version = version

    # -------------------------
    # Chainable
    # -------------------------

    def where(self, filter: Filter) -> "SqlQueryBuilder":
        self._filter.update(filter)
        return self

    def and_(self, filter: Filter) -> "SqlQueryBuilder":
        self._and.append(filter)
        return self

    def or_(self, filters: List[Filter]) -> "SqlQueryBuilder":
        self._or = list(filters)
        return self

    def sort(self, spec: Dict[str, Any]) -> "SqlQueryBuilder":
        self._sort = dict(spec)
        return self

    def limit(self, count: int) -> "SqlQueryBuilder":
        if count < 0:
            raise ValueError("Limit must not be negative")
        self._limit = count
        return self

    def skip(self, count: int) -> "SqlQueryBuilder":
        if count < 0:
            raise ValueError("Skip must not be negative")
        self._skip = count
        return self

    def select(self, projection: Dict[str, Any]) -> "SqlQueryBuilder":
        self._projection = dict(projection)
        return self

    def locale(self, locale: str) -> "SqlQueryBuilder":
        self._locale = locale
        return self

    def version(self, status: str) -> "SqlQueryBuilder":
        self._version = status
        return self

    # -------------------------
    # Terminal
    # -------------------------

    def exec(self) -> List[Record]:
        try:
            statement = self._statement()
        except InvalidIdentifier:
            return []

        rows = _execute(statement).mappings().all()
        return [self._present(dict(row)) for row in rows]

    def exec_one(self) -> Optional[Record]:
        try:
            statement = self._statement(limit=1)
        except InvalidIdentifier:
            return None

        row = _execute(statement).mappings().first()
        return self._present(dict(row)) if row is not None else None

    def count(self) -> int:
        try:
            clause = self._where_clause()
        except InvalidIdentifier:
            return 0

        statement = select(func.count()).select_from(self.table).where(clause)
        return _execute(statement).scalar_one()

    def exists(self) -> bool:
        try:
            clause = self._where_clause()
        except InvalidIdentifier:
            return False

        statement = select(literal(1)).select_from(self.table).where(clause).limit(1)
        return _execute(statement).first() is not None

    def paginate(self) -> PaginatedResult:
        data = self.exec()
        total = self.count()

        page = None
        if self._limit and self._skip is not None:
            page = self._skip // self._limit + 1

        return {
            "data": data,
            "total": total,
            "limit": self._limit,
            "page": page,
        }

    # -------------------------
    # Internals
    # -------------------------

    def _filter_document(self) -> Filter:
        document = dict(self._filter)
        conjuncts = list(document.pop("$and", []))
        conjuncts.extend(self._and)

        if self._version is not None and "status" in self.table.c:
            conjuncts.append({"status": self._version})

        if conjuncts:
            document["$and"] = conjuncts
        if self._or:
            document["$or"] = list(self._or)
        return document

    def _where_clause(self):
        return compile_filter(self.table, self._filter_document())

    def _columns(self):
        if not self._projection:
            return list(self.table.c)

        pk = primary_key_column(self.table)
        included = [key for key, flag in self._projection.items() if flag]

        if included:
            names = [resolve_column(self.table, key).name for key in included]
            hide_pk = any(
                not flag and key in (pk.name, ID_ALIAS)
                for key, flag in self._projection.items()
            )
            if not hide_pk and pk.name not in names:
                names.insert(0, pk.name)
            return [self.table.c[name] for name in names]

        excluded = {resolve_column(self.table, key).name for key in self._projection}
        return [column for column in self.table.c if column.name not in excluded]

    def _order_by(self):
        clauses = []
        for key, direction in self._sort.items():
            column = resolve_column(self.table, key)
            if isinstance(direction, str):
                direction = direction.lower()
            clauses.append(column.desc() if direction in DESCENDING else column.asc())
        return clauses

    def _statement(self, limit: Optional[int] = None):
        statement = select(*self._columns()).where(self._where_clause())

        order_by = self._order_by()
        if order_by:
            statement = statement.order_by(*order_by)

        limit = limit if limit is not None else self._limit
        if limit is not None:
            statement = statement.limit(limit)
        if self._skip is not None:
            statement = statement.offset(self._skip)

        return statement

    def _present(self, row: Record) -> Record:
        if self._locale and self.schema is not None and self.schema.localized_fields:
            return self.resolver.localize(row, self.schema, self._locale)
        return row


class SqlStorage(StoragePort):
    """
    StoragePort over one SQLAlchemy table, through the Flask-SQLAlchemy
    session. Every write commits on its own.
    """

    def __init__(
        self,
        table: Table,
        *,
        schema: Optional[SchemaDescriptor] = None,
        resolver: Optional[LocaleResolver] = None,
    ):
        self.table = table
        self.schema = schema
        self.resolver = resolver or LocaleResolver()

    @property
    def primary_key(self) -> str:
        return primary_key_column(self.table).name

    def query(self, locale: Optional[str] = None, version: Optional[str] = None) -> SqlQueryBuilder:
        return SqlQueryBuilder(
            self.table,
            schema=self.schema,
            resolver=self.resolver,
            locale=locale,
            version=version,
        )

    def create(self, record: Record) -> Record:
        values = self._values(record)
        values.setdefault(self.primary_key, str(uuid.uuid4()))

        with self._write():
            db.session.execute(insert(self.table).values(**values))

        return self.find_one({self.primary_key: values[self.primary_key]})

    def find_one(self, filter: Filter) -> Optional[Record]:
        return self.query().where(filter).exec_one()

    def find_many(self, filter: Filter) -> List[Record]:
        return self.query().where(filter).exec()

    def update(self, filter: Filter, patch: Record) -> Optional[Record]:
        target = self.query().where(filter).select({self.primary_key: 1}).exec_one()
        if target is None:
            return None

        key = target[self.primary_key]
        values = self._values(patch)
        values.pop(self.primary_key, None)

        if values:
            pk = primary_key_column(self.table)
            with self._write():
                db.session.execute(update(self.table).where(pk == key).values(**values))

        return self.find_one({self.primary_key: key})

    def delete(self, filter: Filter) -> bool:
        if not filter:
            raise ValueError("Refusing to delete without a filter")

        try:
            clause = compile_filter(self.table, filter)
        except InvalidIdentifier:
            return False

        with self._write():
            result = db.session.execute(delete(self.table).where(clause))

        return result.rowcount > 0

    def _values(self, record: Record) -> Dict[str, Any]:
        values: Dict[str, Any] = {}
        for key, value in record.items():
            if key == ID_ALIAS and ID_ALIAS not in self.table.c:
                key = self.primary_key
            if key not in self.table.c:
                raise ValueError(f"Unknown field '{key}' for '{self.table.name}'")
            values[key] = value
        return values

    @contextmanager
    def _write(self):
        try:
            with transactional():
                yield
        except IntegrityError as exc:
            raise UniqueConstraintViolation(
                f"Duplicate value rejected by '{self.table.name}': {exc.orig}"
            ) from exc
        except SQLAlchemyError as exc:
            raise StorageError(f"Write to '{self.table.name}' failed: {exc}") from exc
