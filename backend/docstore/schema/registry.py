# docstore/schema/registry.py
from __future__ import annotations

import logging
from typing import Dict, Iterable, List

from sqlalchemy import MetaData, Table, inspect, text

from docstore.domain.exceptions import ConfigurationError, UnknownSchemaError
from docstore.i18n.resolver import LocaleResolver
from docstore.storage.sql import SqlStorage
from .descriptor import SchemaDescriptor
from .partition import PartitionPlan, UniquenessPartitioner
from .tables import build_table

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """
    Holds every document schema of the app, its partition plan and table.

    Registration fails fast: a schema that cannot be stored correctly is
    rejected here, never at query time.
    """

    def __init__(
        self,
        *,
        default_locale: str = "en",
        locales: Iterable[str] = ("en",),
        partitioner: UniquenessPartitioner | None = None,
        resolver: LocaleResolver | None = None,
    ):
        self.default_locale = default_locale
        self.locales = tuple(locales)
        self.partitioner = partitioner or UniquenessPartitioner()
        self.resolver = resolver or LocaleResolver()
        self.metadata = MetaData()

        self._schemas: Dict[str, SchemaDescriptor] = {}
        self._plans: Dict[str, PartitionPlan] = {}
        self._tables: Dict[str, Table] = {}

    def register(self, schema: SchemaDescriptor) -> SchemaDescriptor:
        if schema.name in self._schemas:
            raise ConfigurationError(f"Schema '{schema.name}' is already registered")

        schema = schema.with_defaults(default_locale=self.default_locale, locales=self.locales)
        schema.validate()

        plan = self.partitioner.partition(schema)
        table = build_table(schema, self.metadata, plan)

        self._schemas[schema.name] = schema
        self._plans[schema.name] = plan
        self._tables[schema.name] = table

        logger.info(
            "Registered schema '%s' (locales=%s, converted=%s)",
            schema.name,
            ",".join(schema.locales or ()),
            ",".join(plan.fields_converted) or "-",
        )
        return schema

    def get(self, name: str) -> SchemaDescriptor:
        try:
            return self._schemas[name]
        except KeyError:
            raise UnknownSchemaError(f"Schema '{name}' is not registered") from None

    def plan_for(self, name: str) -> PartitionPlan:
        self.get(name)
        return self._plans[name]

    def table_for(self, name: str) -> Table:
        self.get(name)
        return self._tables[name]

    def storage_for(self, name: str) -> SqlStorage:
        return SqlStorage(self.table_for(name), schema=self.get(name), resolver=self.resolver)

    def schemas(self) -> List[SchemaDescriptor]:
        return list(self._schemas.values())

    def drop_stale_indexes(self, bind) -> List[str]:
        """
        Drop indexes the partition plans replaced, where a previous run of
        the app created them.
        """
        inspector = inspect(bind)
        existing_tables = set(inspector.get_table_names())
        dropped: List[str] = []

        for name, plan in self._plans.items():
            table = self._tables[name]
            if table.name not in existing_tables or not plan.indexes_to_drop:
                continue

            present = {index["name"] for index in inspector.get_indexes(table.name)}
            for index_name in plan.indexes_to_drop:
                if index_name in present:
                    logger.info("Dropping replaced index '%s' on '%s'", index_name, table.name)
                    with bind.begin() as connection:
                        quoted = bind.dialect.identifier_preparer.quote(index_name)
                        connection.execute(text(f"DROP INDEX {quoted}"))
                    dropped.append(index_name)

        return dropped

    def create_all(self, bind) -> None:
        self.drop_stale_indexes(bind)
        self.metadata.create_all(bind)
