# docstore/application/documents/restore_version.py
from typing import Any, Dict, Optional

from docstore.i18n.resolver import LocalizedRecord
from docstore.store import get_version_store
from docstore.utils.audit import log_action
from docstore.utils.versioning import restore_snapshot
from .common import (
    after_draft_saved,
    field_values,
    find_variant,
    require_locale,
    resolve_schema,
    sync_default_locale,
    with_default_slots,
)


def restore_version(
    *,
    schema_name: str,
    document_id: str,
    version_number: int,
    locale: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Roll the draft of one locale back to a previous version.

    Responsibilities:
    - Restore the snapshot into the draft row
    - Re-validate required fields
    - Record a new draft version noting where it came from
    - Audit logging

    Returns None when the version does not exist.
    """
    schema, documents = resolve_schema(schema_name)
    locale = require_locale(schema, locale)

    # 1️⃣ Fetch the version to roll back to
    version = get_version_store().find_version_by_number(
        document_id, schema.name, locale, version_number
    )
    if version is None:
        return None

    values = restore_snapshot(schema, version["data"])
    draft = find_variant(documents, document_id, locale, "draft")

    if locale != schema.default_locale:
        default_draft = find_variant(documents, document_id, schema.default_locale, "draft")
        if default_draft is not None:
            values = with_default_slots(schema, values, default_draft)

    # 2️⃣ Invariants against the restored content
    current = field_values(schema, draft) if draft else {}
    LocalizedRecord({**current, **values}, schema, locale).validate()

    # 3️⃣ Write the draft
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

    # 4️⃣ New version on top of the history
    new_version = after_draft_saved(
        schema,
        row,
        actor_id=actor_id,
        notes=f"Restored from version {version_number}",
    )

    # 5️⃣ Audit logging
    log_action(
        action="document.restore",
        entity_type=schema.name,
        entity_id=document_id,
        actor_id=actor_id,
        payload={
            "locale": locale,
            "from_version": version_number,
            "to_version": new_version["version_number"] if new_version else None,
        },
    )

    return row
