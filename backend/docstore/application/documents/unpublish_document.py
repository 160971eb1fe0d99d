from typing import Optional

from docstore.store import get_version_store
from docstore.utils.audit import log_action
from .common import find_variant, require_locale, resolve_schema


def unpublish_document(
    *,
    schema_name: str,
    document_id: str,
    locale: Optional[str] = None,
    actor_id: Optional[str] = None,
) -> bool:
    """
    Removes the published copy of one locale and archives its version.

    The draft is left untouched. Returns False when nothing was published.
    """
    schema, documents = resolve_schema(schema_name)
    locale = require_locale(schema, locale)

    published = find_variant(documents, document_id, locale, "published")
    if published is None:
        return False

    documents.delete({"id": published["id"]})

    archived = None
    if schema.versioning:
        versions = get_version_store()
        current = versions.find_latest_version(document_id, schema.name, locale, status="published")
        if current is not None:
            archived = versions.archive_version(current["version_id"])

    log_action(
        action="document.unpublish",
        entity_type=schema.name,
        entity_id=document_id,
        actor_id=actor_id,
        payload={
            "locale": locale,
            "archived_version": archived["version_number"] if archived else None,
        },
    )

    return True
