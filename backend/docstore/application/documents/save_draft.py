from typing import Any, Dict, Optional

from docstore.i18n.resolver import LocalizedRecord
from docstore.utils.audit import log_action
from .common import (
    after_draft_saved,
    field_values,
    find_variant,
    require_locale,
    resolve_schema,
    sync_default_locale,
    with_default_slots,
)


def save_draft(
    *,
    schema_name: str,
    document_id: str,
    data: Dict[str, Any],
    locale: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Write field values into the draft of one locale.

    A locale without a draft yet is seeded from the default-locale draft,
    so it starts complete in the default locale and only the given values
    differ. Saving the default locale refreshes the default-locale values
    held by the other locale drafts. Returns None when the document does not exist.
    """
    schema, documents = resolve_schema(schema_name)
    locale = require_locale(schema, locale)

    default_draft = find_variant(documents, document_id, schema.default_locale, "draft")
    draft = default_draft
    if locale != schema.default_locale:
        draft = find_variant(documents, document_id, locale, "draft")

    seed = draft or default_draft
    if seed is None:
        return None

    values = field_values(schema, seed)
    if default_draft is not None and seed is not default_draft:
        # Default-locale values always come from the default-locale draft
        values = with_default_slots(schema, values, default_draft)

    record = LocalizedRecord(values, schema, locale).update(data or {})
    record.validate()
    values = record.to_record()

    if draft is not None:
        row = documents.update({"id": draft["id"]}, {**values, "updated_by": actor_id})
    else:
        row = documents.create({
            **values,
            "document_id": document_id,
            "locale": locale,
            "status": "draft",
            "created_by": actor_id,
            "updated_by": actor_id,
        })

    sync_default_locale(schema, documents, row)
    after_draft_saved(schema, row, actor_id=actor_id)

    log_action(
        action="document.save_draft",
        entity_type=schema.name,
        entity_id=document_id,
        actor_id=actor_id,
        payload={"locale": locale, "fields": sorted(data or {})},
    )

    return row
