# docstore/services/version_store.py
from __future__ import annotations

from typing import Any, Dict, List, Optional

from flask import current_app

from docstore.domain.exceptions import StorageError, UniqueConstraintViolation
from docstore.domain.lifecycle.version import assert_known_status, is_allowed_transition
from docstore.storage.port import Record, StoragePort
from docstore.utils.locking import KeyedLock
from .retention import RetentionPolicy, RetentionResult
from .settings_service import SettingsService

DEFAULT_MAX_ATTEMPTS = 5


class VersionStore:
    """
    Creates, lists and retires immutable version snapshots.

    Version numbers are strictly increasing and gap-free per
    (document_id, schema_name, locale). Writers in this process are
    serialized per key; writers in other processes collide on the
    `uq_version_number` constraint and retry with a fresh number.
    """

    def __init__(
        self,
        storage: StoragePort,
        settings: SettingsService,
        *,
        retention: Optional[RetentionPolicy] = None,
        locks: Optional[KeyedLock] = None,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    ):
        self.storage = storage
        self.settings = settings
        self.retention = retention or RetentionPolicy(storage)
        self.locks = locks or KeyedLock()
        self.max_attempts = max(1, max_attempts)

    # -------------------------
    # Writes
    # -------------------------

    def create_version(
        self,
        document_id: str,
        schema_name: str,
        data: Dict[str, Any],
        status: str = "draft",
        created_by: Optional[str] = None,
        notes: Optional[str] = None,
        locale: str = "en",
    ) -> Record:
        """
        Snapshot `data` as the next version of the document+locale, then
        trim the history to the configured maximum.

        Storage failures propagate to the caller.
        """
        assert_known_status(status)

        with self.locks.hold((document_id, schema_name, locale)):
            version = self._insert_next(
                {
                    "document_id": document_id,
                    "schema_name": schema_name,
                    "locale": locale,
                    "status": status,
                    "data": data,
                    "created_by": created_by,
                    "notes": notes,
                }
            )

            settings = self.settings.get_versioning_settings()
            self.retention.enforce(document_id, schema_name, locale, settings.max_versions)

        return version

    def prune(
        self,
        document_id: str,
        schema_name: str,
        locale: str,
        max_versions: Optional[int] = None,
    ) -> RetentionResult:
        """Run retention for one history outside of a write."""
        if max_versions is None:
            max_versions = self.settings.get_versioning_settings().max_versions

        with self.locks.hold((document_id, schema_name, locale)):
            return self.retention.enforce(document_id, schema_name, locale, max_versions)

    def _insert_next(self, values: Record) -> Record:
        attempt = 0
        while True:
            attempt += 1
            latest = self.find_latest_version(
                values["document_id"], values["schema_name"], values["locale"]
            )
            number = latest["version_number"] + 1 if latest else 1

            try:
                return self.storage.create({**values, "version_number": number})
            except UniqueConstraintViolation:
                if attempt >= self.max_attempts:
                    raise
                current_app.logger.warning(
                    f"Version number {number} for {values['schema_name']}/"
                    f"{values['document_id']}/{values['locale']} was taken, "
                    f"retrying ({attempt}/{self.max_attempts})"
                )

    def update_version_status(self, version_id: str, new_status: str) -> Optional[Record]:
        """
        In-place status transition. Data, number and timestamps never change.

        Illegal transitions and storage failures both return None.
        """
        assert_known_status(new_status)

        version = self._load_for_update(version_id)
        if version is None:
            return None

        if not is_allowed_transition(from_status=version["status"], to_status=new_status):
            current_app.logger.warning(
                f"Rejected version transition {version['status']} → {new_status} for {version_id}"
            )
            return None

        try:
            return self.storage.update({"version_id": version_id}, {"status": new_status})
        except (StorageError, UniqueConstraintViolation) as exc:
            current_app.logger.error(f"Failed to update version status: {exc}")
            return None

    def publish_version(self, version_id: str) -> Optional[Record]:
        version = self._load_for_update(version_id)
        if not version or version["status"] != "draft":
            return None
        return self.update_version_status(version_id, "published")

    def archive_version(self, version_id: str) -> Optional[Record]:
        version = self._load_for_update(version_id)
        if not version or version["status"] != "published":
            return None
        return self.update_version_status(version_id, "archived")

    def _load_for_update(self, version_id: str) -> Optional[Record]:
        try:
            return self.find_version_by_id(version_id)
        except StorageError as exc:
            current_app.logger.error(f"Failed to load version {version_id}: {exc}")
            return None

    def delete_version(self, version_id: str) -> bool:
        return self.storage.delete({"version_id": version_id})

    # -------------------------
    # Reads
    # -------------------------

    def find_versions(self, document_id: str, schema_name: str) -> List[Record]:
        return (
            self.storage.query()
            .where({"document_id": document_id, "schema_name": schema_name})
            .sort({"locale": 1, "version_number": 1})
            .exec()
        )

    def find_versions_by_locale(self, document_id: str, schema_name: str, locale: str) -> List[Record]:
        return (
            self.storage.query()
            .where({"document_id": document_id, "schema_name": schema_name, "locale": locale})
            .sort({"version_number": 1})
            .exec()
        )

    def find_version_by_id(self, version_id: str) -> Optional[Record]:
        return self.storage.query().where({"version_id": version_id}).exec_one()

    def find_version_by_number(
        self,
        document_id: str,
        schema_name: str,
        locale: str,
        version_number: int,
    ) -> Optional[Record]:
        return (
            self.storage.query()
            .where({
                "document_id": document_id,
                "schema_name": schema_name,
                "locale": locale,
                "version_number": version_number,
            })
            .exec_one()
        )

    def find_latest_version(
        self,
        document_id: str,
        schema_name: str,
        locale: str,
        status: Optional[str] = None,
    ) -> Optional[Record]:
        query = self.storage.query().where(
            {"document_id": document_id, "schema_name": schema_name, "locale": locale}
        )
        if status is not None:
            query = query.and_({"status": status})

        return query.sort({"version_number": -1}).limit(1).exec_one()

    def get_versioned_locales(self, document_id: str, schema_name: str) -> List[str]:
        rows = (
            self.storage.query()
            .where({"document_id": document_id, "schema_name": schema_name})
            .select({"locale": 1, "version_id": 0})
            .sort({"locale": 1})
            .exec()
        )
        return sorted({row["locale"] for row in rows})
