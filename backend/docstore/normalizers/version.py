# docstore/normalizers/version.py
from __future__ import annotations

from typing import Any, Dict


def normalize_version(version: Dict[str, Any]) -> Dict[str, Any]:
    """
    Normalizes a version row into JSON-safe output.

    Notes:
    - `data` is already JSON (it is stored as a snapshot)
    - timestamps are ISO 8601 strings
    """

    if not version:
        raise ValueError("Version cannot be None")

    created_at = version.get("created_at")

    return {
        "version_id": version["version_id"],
        "document_id": version["document_id"],
        "schema_name": version["schema_name"],
        "locale": version["locale"],
        "version_number": version["version_number"],
        "status": version["status"],
        "data": version.get("data") or {},
        "created_at": created_at.isoformat() if created_at else None,
        "created_by": version.get("created_by"),
        "notes": version.get("notes"),
    }
