# docstore/application/documents/read_documents.py
from typing import Any, Dict, Optional

from docstore.normalizers.document import normalize_document
from docstore.normalizers.pagination import normalize_pagination
from docstore.schema.descriptor import DOCUMENT_STATUSES
from .common import require_locale, resolve_schema

MAX_PER_PAGE = 100


def get_document(
    *,
    schema_name: str,
    document_id: str,
    locale: Optional[str] = None,
    status: str = "draft",
) -> Optional[Dict[str, Any]]:
    """
    One document variant with localized fields resolved for `locale`.

    A locale without its own row falls back to the default-locale row,
    still resolved for the requested locale.
    """
    schema, documents = resolve_schema(schema_name)
    locale = require_locale(schema, locale)

    for candidate in dict.fromkeys((locale, schema.default_locale)):
        row = (
            documents.query(locale=locale, version=status)
            .where({"document_id": document_id, "locale": candidate})
            .exec_one()
        )
        if row is not None:
            return row

    return None


def list_documents(
    *,
    schema_name: str,
    locale: Optional[str] = None,
    status: str = "draft",
    page: int = 1,
    per_page: int = 20,
    filter: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    schema, documents = resolve_schema(schema_name)
    locale = require_locale(schema, locale)

    page = max(1, int(page))
    per_page = min(max(1, int(per_page)), MAX_PER_PAGE)

    result = (
        documents.query(locale=locale, version=status)
        .where({**(filter or {}), "locale": locale})
        .sort({"created_at": -1, "id": -1})
        .limit(per_page)
        .skip((page - 1) * per_page)
        .paginate()
    )

    return normalize_pagination(
        result["data"],
        normalize_document,
        page=result["page"],
        per_page=per_page,
        total=result["total"],
    )


def get_locale_statuses(*, schema_name: str, document_id: str) -> Dict[str, Dict[str, bool]]:
    """Which statuses exist per locale, e.g. {"en": {"draft": True, "published": False, ...}}."""
    _, documents = resolve_schema(schema_name)

    rows = (
        documents.query()
        .where({"document_id": document_id})
        .select({"locale": 1, "status": 1})
        .exec()
    )

    statuses: Dict[str, Dict[str, bool]] = {}
    for row in rows:
        entry = statuses.setdefault(row["locale"], {status: False for status in DOCUMENT_STATUSES})
        entry[row["status"]] = True
    return statuses
