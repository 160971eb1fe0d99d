import uuid
from typing import Any, Dict, Optional

from docstore.i18n.resolver import LocalizedRecord
from docstore.utils.audit import log_action
from .common import after_draft_saved, resolve_schema


def create_document(
    *,
    schema_name: str,
    data: Dict[str, Any],
    actor_id: Optional[str] = None,
    document_id: Optional[str] = None,
) -> Dict[str, Any]:
    """
    Create a new document in DRAFT state, in the schema's default locale.

    Edge cases handled:
    - Missing required fields (checked in the default locale)
    - Duplicate unique values across documents (UniqueConstraintViolation)
    - Duplicate document_id (same identity constraint)
    """
    schema, documents = resolve_schema(schema_name)
    locale = schema.default_locale

    record = LocalizedRecord({}, schema, locale).update(data or {})
    record.validate()

    row = documents.create({
        **record.to_record(),
        "document_id": document_id or str(uuid.uuid4()),
        "locale": locale,
        "status": "draft",
        "created_by": actor_id,
        "updated_by": actor_id,
    })

    after_draft_saved(schema, row, actor_id=actor_id)

    log_action(
        action="document.create",
        entity_type=schema.name,
        entity_id=row["document_id"],
        actor_id=actor_id,
        payload={"locale": locale},
    )

    return row
