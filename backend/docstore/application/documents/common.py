# docstore/application/documents/common.py
from typing import Any, Dict, Optional, Tuple

from flask import current_app

from docstore.domain.exceptions import InvariantViolation
from docstore.schema.descriptor import SchemaDescriptor
from docstore.storage.sql import SqlStorage
from docstore.store import get_registry, get_settings_service
from docstore.utils.versioning import record_version


def resolve_schema(schema_name: str) -> Tuple[SchemaDescriptor, SqlStorage]:
    registry = get_registry()
    return registry.get(schema_name), registry.storage_for(schema_name)


def require_locale(schema: SchemaDescriptor, locale: Optional[str]) -> str:
    locale = locale or schema.default_locale
    if not schema.supports_locale(locale):
        raise InvariantViolation(
            f"Locale '{locale}' is not supported by '{schema.name}'. "
            f"Supported locales: {', '.join(schema.locales or ())}"
        )
    return locale


def find_variant(documents: SqlStorage, document_id: str, locale: str, status: str):
    return documents.find_one({"document_id": document_id, "locale": locale, "status": status})


def field_values(schema: SchemaDescriptor, row: Dict[str, Any]) -> Dict[str, Any]:
    return {name: row.get(name) for name in schema.field_names}


def after_draft_saved(
    schema: SchemaDescriptor,
    row: Dict[str, Any],
    *,
    actor_id: Optional[str] = None,
    notes: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Versioning side effects of a draft write.

    - drafts enabled: snapshot the draft
    - drafts disabled or auto-publish: publish straight away, unless
      publishing needs approval
    """
    if not schema.versioning:
        return None

    settings = get_settings_service().get_versioning_settings()

    version = None
    if settings.drafts_enabled:
        version = record_version(schema, row, status="draft", actor_id=actor_id, notes=notes)

    if settings.auto_publish or not settings.drafts_enabled:
        if settings.require_approval:
            current_app.logger.info(
                f"Skipping automatic publish of {schema.name}/{row['document_id']}: approval required"
            )
        else:
            from .publish_document import publish_document

            publish_document(
                schema_name=schema.name,
                document_id=row["document_id"],
                locale=row["locale"],
                actor_id=actor_id,
            )

    return version


def with_default_slots(
    schema: SchemaDescriptor,
    values: Dict[str, Any],
    source: Dict[str, Any],
) -> Dict[str, Any]:
    """
    `values` with the default-locale slot of every localized field taken
    from `source`, the default-locale row of the same document.
    """
    default_locale = schema.default_locale
    merged = dict(values)
    for spec in schema.localized_fields:
        translations = dict(merged.get(spec.name) or {})
        translations[default_locale] = (source.get(spec.name) or {}).get(default_locale)
        merged[spec.name] = translations
    return merged


def sync_default_locale(schema: SchemaDescriptor, documents: SqlStorage, row: Dict[str, Any]) -> int:
    """
    Push the default-locale values of `row` into the other locale rows of
    the same document and status, so their fallback reads stay current.

    Returns the number of rows patched.
    """
    if row["locale"] != schema.default_locale or not schema.localized_fields:
        return 0

    siblings = documents.find_many({
        "document_id": row["document_id"],
        "status": row["status"],
        "locale": {"$ne": schema.default_locale},
    })

    patched = 0
    for sibling in siblings:
        current = field_values(schema, sibling)
        synced = with_default_slots(schema, current, row)
        patch = {name: value for name, value in synced.items() if value != current[name]}
        if patch:
            documents.update({"id": sibling["id"]}, patch)
            patched += 1
    return patched
