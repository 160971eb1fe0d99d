# docstore/i18n/resolver.py
from __future__ import annotations

from typing import Any, Dict, Mapping, Optional

from docstore.domain.exceptions import InvariantViolation
from docstore.schema.descriptor import SchemaDescriptor

FALLBACK_LOCALE = "en"

ZERO_VALUES = {
    "string": lambda: "",
    "text": lambda: "",
    "integer": lambda: 0,
    "float": lambda: 0.0,
    "boolean": lambda: False,
    "datetime": lambda: None,
    "json": dict,
}


def zero_value(field_type: str) -> Any:
    factory = ZERO_VALUES.get(field_type)
    return factory() if factory else None


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


class LocaleResolver:
    """
    Resolves localized field values.

    A localized field is stored as a {locale: value} mapping. Reads fall
    back to the default locale, then to the type's zero value.
    """

    def resolve(
        self,
        value_map: Optional[Mapping[str, Any]],
        requested_locale: str,
        default_locale: str,
        field_type: str = "string",
    ) -> Any:
        if isinstance(value_map, Mapping):
            if value_map.get(requested_locale) is not None:
                return value_map[requested_locale]
            if value_map.get(default_locale) is not None:
                return value_map[default_locale]
        return zero_value(field_type)

    def localize(self, record: Mapping[str, Any], schema: SchemaDescriptor, locale: str) -> Dict[str, Any]:
        """Flat copy of `record` with localized fields resolved for `locale`."""
        default_locale = self.get_schema_default_locale(schema)
        view = dict(record)
        for spec in schema.localized_fields:
            view[spec.name] = self.resolve(record.get(spec.name), locale, default_locale, spec.type)
        return view

    def set_locale(self, record: Mapping[str, Any], schema: SchemaDescriptor, locale: str) -> "LocalizedRecord":
        return LocalizedRecord(record, schema, resolver=self).set_locale(locale)

    def validate_required(self, record: Mapping[str, Any], schema: SchemaDescriptor) -> None:
        """
        Required localized fields are checked in the default locale only.

        Other locales may be incomplete; the default one may not.
        """
        default_locale = self.get_schema_default_locale(schema)

        for spec in schema.fields:
            if not spec.required:
                continue

            if spec.localized:
                value_map = record.get(spec.name) or {}
                if _is_missing(value_map.get(default_locale)):
                    raise InvariantViolation(
                        f"Field '{spec.name}' is required in default locale '{default_locale}'"
                    )
            elif _is_missing(record.get(spec.name)):
                raise InvariantViolation(f"Field '{spec.name}' is required")

    def get_schema_default_locale(self, schema: SchemaDescriptor) -> str:
        return schema.default_locale or FALLBACK_LOCALE


class LocalizedRecord:
    """
    A document row bound to a current locale.

    Reads and writes of localized fields go to the current locale's slot.
    The locale lives on this object only, never on the shared schema.
    """

    def __init__(
        self,
        record: Mapping[str, Any],
        schema: SchemaDescriptor,
        locale: Optional[str] = None,
        resolver: Optional[LocaleResolver] = None,
    ):
        self.schema = schema
        self.resolver = resolver or LocaleResolver()
        self._record: Dict[str, Any] = dict(record)
        self._locale = locale or self.resolver.get_schema_default_locale(schema)

    @property
    def locale(self) -> str:
        return self._locale

    def set_locale(self, locale: str) -> "LocalizedRecord":
        if not self.schema.supports_locale(locale):
            raise InvariantViolation(
                f"Locale '{locale}' is not supported. "
                f"Supported locales: {', '.join(self.schema.locales or ())}"
            )
        self._locale = locale
        return self

    def get(self, name: str) -> Any:
        spec = self.schema.field(name)
        if spec is not None and spec.localized:
            return self.resolver.resolve(
                self._record.get(name),
                self._locale,
                self.resolver.get_schema_default_locale(self.schema),
                spec.type,
            )
        return self._record.get(name)

    def set(self, name: str, value: Any) -> "LocalizedRecord":
        spec = self.schema.field(name)
        if spec is None:
            raise InvariantViolation(f"Unknown field '{name}' for schema '{self.schema.name}'")

        if spec.localized:
            translations = dict(self._record.get(name) or {})
            translations[self._locale] = value
            self._record[name] = translations
        else:
            self._record[name] = value
        return self

    def update(self, data: Mapping[str, Any]) -> "LocalizedRecord":
        for name, value in data.items():
            self.set(name, value)
        return self

    def get_all_translations(self, name: str) -> Dict[str, Any]:
        translations = self._record.get(name) or {}
        return {locale: translations.get(locale) for locale in self.schema.locales or ()}

    def set_all_translations(self, name: str, translations: Mapping[str, Any]) -> "LocalizedRecord":
        spec = self.schema.field(name)
        if spec is None or not spec.localized:
            raise InvariantViolation(f"Field '{name}' is not localized")

        current = dict(self._record.get(name) or {})
        for locale, value in translations.items():
            if self.schema.supports_locale(locale):
                current[locale] = value
        self._record[name] = current
        return self

    def validate(self) -> None:
        self.resolver.validate_required(self._record, self.schema)

    def to_record(self) -> Dict[str, Any]:
        return dict(self._record)

    def to_dict(self) -> Dict[str, Any]:
        return self.resolver.localize(self._record, self.schema, self._locale)
