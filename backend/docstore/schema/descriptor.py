# docstore/schema/descriptor.py
from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Dict, Iterable, Optional, Tuple, Union

from docstore.domain.exceptions import ConfigurationError

FIELD_TYPES = ("string", "text", "integer", "float", "boolean", "datetime", "json")

DOCUMENT_STATUSES = ("draft", "published", "archived")

# Columns every document table carries; never user-declared
SYSTEM_FIELDS = frozenset({
    "id",
    "document_id",
    "locale",
    "status",
    "published_at",
    "created_at",
    "updated_at",
    "created_by",
    "updated_by",
})


@dataclass(frozen=True)
class IndexSpec:
    name: str
    fields: Tuple[str, ...]
    unique: bool = False
    where: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))


@dataclass(frozen=True)
class FieldSpec:
    """
    One declared field of a schema.

    `index` is either a bool or an options dict such as {"unique": True},
    the latter being an implicit unique index rather than a unique column.
    """
    name: str
    type: str = "string"
    required: bool = False
    unique: bool = False
    index: Union[bool, Dict[str, Any]] = False
    localized: bool = False
    default: Any = None

    @property
    def has_unique_index(self) -> bool:
        return isinstance(self.index, dict) and bool(self.index.get("unique"))

    @property
    def is_unique(self) -> bool:
        return self.unique or self.has_unique_index


@dataclass(frozen=True)
class SchemaDescriptor:
    """
    Static description of a document schema, built once at startup.

    Nothing about a schema is discovered at runtime: the registry, the
    partitioner and the locale resolver all read this object.
    """
    name: str
    fields: Tuple[FieldSpec, ...] = ()
    i18n: bool = False
    versioning: bool = True
    locales: Optional[Tuple[str, ...]] = None
    default_locale: Optional[str] = None
    indexes: Tuple[IndexSpec, ...] = ()
    table_name: Optional[str] = None

    def __post_init__(self):
        object.__setattr__(self, "fields", tuple(self.fields))
        object.__setattr__(self, "indexes", tuple(self.indexes))
        if self.locales is not None:
            object.__setattr__(self, "locales", tuple(self.locales))

    @property
    def table(self) -> str:
        return self.table_name or self.name

    @property
    def field_names(self) -> Tuple[str, ...]:
        return tuple(f.name for f in self.fields)

    @property
    def localized_fields(self) -> Tuple[FieldSpec, ...]:
        return tuple(f for f in self.fields if f.localized)

    def field(self, name: str) -> Optional[FieldSpec]:
        for spec in self.fields:
            if spec.name == name:
                return spec
        return None

    def supports_locale(self, locale: str) -> bool:
        return locale in (self.locales or ())

    def with_defaults(self, *, default_locale: str, locales: Iterable[str]) -> "SchemaDescriptor":
        """Fill locale settings the schema leaves open from the app defaults."""
        resolved_default = self.default_locale or default_locale

        if self.locales:
            resolved_locales = self.locales
        elif self.i18n:
            resolved_locales = tuple(locales)
        else:
            resolved_locales = (resolved_default,)

        return replace(self, default_locale=resolved_default, locales=resolved_locales)

    def validate(self) -> None:
        if not self.locales or not self.default_locale:
            raise ConfigurationError(f"Schema '{self.name}' has no locales configured")

        if self.default_locale not in self.locales:
            raise ConfigurationError(
                f"Default locale '{self.default_locale}' is not included in locales: "
                f"{', '.join(self.locales)}"
            )

        seen = set()
        for spec in self.fields:
            if spec.name in SYSTEM_FIELDS:
                raise ConfigurationError(
                    f"Field '{spec.name}' on schema '{self.name}' clashes with a system field"
                )
            if spec.name in seen:
                raise ConfigurationError(f"Field '{spec.name}' is declared twice on '{self.name}'")
            if spec.type not in FIELD_TYPES:
                raise ConfigurationError(f"Field '{spec.name}' has unknown type '{spec.type}'")
            if spec.localized and not self.i18n:
                raise ConfigurationError(
                    f"Field '{spec.name}' is localized but schema '{self.name}' has i18n disabled"
                )
            seen.add(spec.name)
