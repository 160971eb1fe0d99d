# docstore/schema/partition.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import List

from docstore.domain.exceptions import ConfigurationError
from .descriptor import SYSTEM_FIELDS, IndexSpec, SchemaDescriptor

logger = logging.getLogger(__name__)


@dataclass
class PartitionPlan:
    fields_converted: List[str] = field(default_factory=list)
    indexes_to_create: List[IndexSpec] = field(default_factory=list)
    indexes_to_drop: List[str] = field(default_factory=list)


class UniquenessPartitioner:
    """
    Rewrites field-level uniqueness into partial unique indexes.

    Locale and status copies of one logical document share field values,
    so uniqueness only holds among default-locale draft rows. Distinct
    documents still cannot share a value there.
    """

    def partition(self, schema: SchemaDescriptor) -> PartitionPlan:
        plan = PartitionPlan()

        if not (schema.i18n or schema.versioning):
            return plan

        default_locale = schema.default_locale or "en"
        if schema.locales and default_locale not in schema.locales:
            raise ConfigurationError(
                f"Default locale '{default_locale}' is not included in locales: "
                f"{', '.join(schema.locales)}"
            )

        table = schema.table

        for spec in schema.fields:
            if spec.name in SYSTEM_FIELDS or not spec.is_unique:
                continue

            if spec.localized:
                raise ConfigurationError(
                    f"Cannot partition unique field '{spec.name}' on '{schema.name}': "
                    "localized fields hold one value per locale"
                )

            logger.info(
                "Converting unique index on '%s.%s' to partial unique index",
                schema.name,
                spec.name,
            )
            plan.fields_converted.append(spec.name)
            plan.indexes_to_create.append(
                IndexSpec(
                    name=f"{table}_{spec.name}_unique_i18n",
                    fields=(spec.name,),
                    unique=True,
                    where={"locale": default_locale, "status": "draft"},
                )
            )
            plan.indexes_to_drop.append(f"ix_{table}_{spec.name}")

        # Declared single-field unique indexes on converted fields would clash
        for index in schema.indexes:
            if (
                index.unique
                and len(index.fields) == 1
                and index.fields[0] in plan.fields_converted
                and index.name not in plan.indexes_to_drop
            ):
                logger.info("Removing original unique index definition '%s'", index.name)
                plan.indexes_to_drop.append(index.name)

        plan.indexes_to_create.extend([
            IndexSpec(
                name=f"{table}_document_locale_status_unique",
                fields=("document_id", "locale", "status"),
                unique=True,
            ),
            IndexSpec(name=f"{table}_document_locale", fields=("document_id", "locale")),
            IndexSpec(name=f"{table}_status_locale", fields=("status", "locale")),
        ])

        return plan


def partition(schema: SchemaDescriptor) -> PartitionPlan:
    return UniquenessPartitioner().partition(schema)
