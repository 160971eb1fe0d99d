# docstore/application/documents/publish_document.py
from typing import Any, Dict, Optional

from docstore.domain.exceptions import InvariantViolation
from docstore.models.base import utc_now
from docstore.schema.descriptor import SchemaDescriptor
from docstore.store import get_settings_service, get_version_store
from docstore.utils.audit import log_action
from docstore.utils.versioning import snapshot_document
from .common import field_values, find_variant, require_locale, resolve_schema, sync_default_locale


def publish_document(
    *,
    schema_name: str,
    document_id: str,
    locale: Optional[str] = None,
    actor_id: Optional[str] = None,
    approved_by: Optional[str] = None,
) -> Optional[Dict[str, Any]]:
    """
    Publishes the draft of one locale and records a published version.

    Responsibilities:
    - approval enforcement
    - draft → published row copy
    - version lifecycle (publish matching draft, archive previous)
    - audit logging

    Returns the published row, or None when there is no draft.
    """
    schema, documents = resolve_schema(schema_name)

    if not schema.versioning:
        raise InvariantViolation(f"Schema '{schema.name}' does not support publishing")

    locale = require_locale(schema, locale)

    settings = get_settings_service().get_versioning_settings()
    if settings.require_approval and not approved_by:
        raise InvariantViolation("Publishing requires approval")

    draft = find_variant(documents, document_id, locale, "draft")
    if draft is None:
        return None

    values = {
        **field_values(schema, draft),
        "published_at": utc_now(),
        "updated_by": actor_id,
    }

    published = find_variant(documents, document_id, locale, "published")
    if published is not None:
        published = documents.update({"id": published["id"]}, values)
    else:
        published = documents.create({
            **values,
            "document_id": document_id,
            "locale": locale,
            "status": "published",
            "created_by": actor_id,
        })

    sync_default_locale(schema, documents, published)

    version = _publish_snapshot(schema, draft, actor_id=actor_id)

    log_action(
        action="document.publish",
        entity_type=schema.name,
        entity_id=document_id,
        actor_id=actor_id,
        payload={
            "locale": locale,
            "version": version["version_number"],
            "approved_by": approved_by,
        },
    )

    return published


def _publish_snapshot(schema: SchemaDescriptor, draft: Dict[str, Any], *, actor_id: Optional[str]):
    versions = get_version_store()
    document_id, locale = draft["document_id"], draft["locale"]
    snapshot = snapshot_document(schema, draft)

    previous = versions.find_latest_version(document_id, schema.name, locale, status="published")
    latest = versions.find_latest_version(document_id, schema.name, locale)

    version = None
    if latest and latest["status"] == "draft" and latest["data"] == snapshot:
        version = versions.publish_version(latest["version_id"])

    if version is None:
        version = versions.create_version(
            document_id,
            schema.name,
            snapshot,
            status="published",
            created_by=actor_id,
            locale=locale,
        )

    if previous and previous["version_id"] != version["version_id"]:
        versions.archive_version(previous["version_id"])

    return version
