from typing import Optional

from docstore.store import get_version_store
from docstore.utils.audit import log_action
from .common import resolve_schema


def delete_document(
    *,
    schema_name: str,
    document_id: str,
    actor_id: Optional[str] = None,
) -> int:
    """
    Hard-delete every locale/status row of a document and its versions.

    Returns the number of rows removed; 0 when the document does not exist.
    """
    schema, documents = resolve_schema(schema_name)

    rows = documents.find_many({"document_id": document_id})
    if not rows:
        return 0

    documents.delete({"document_id": document_id})

    removed_versions = 0
    if schema.versioning:
        versions = get_version_store()
        for version in versions.find_versions(document_id, schema.name):
            if versions.delete_version(version["version_id"]):
                removed_versions += 1

    log_action(
        action="document.delete",
        entity_type=schema.name,
        entity_id=document_id,
        actor_id=actor_id,
        payload={"rows": len(rows), "versions": removed_versions},
    )

    return len(rows)
