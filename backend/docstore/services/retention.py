# docstore/services/retention.py
from __future__ import annotations

from dataclasses import dataclass

from flask import current_app

from docstore.domain.exceptions import StorageError, UniqueConstraintViolation
from docstore.storage.port import StoragePort


@dataclass(frozen=True)
class RetentionResult:
    deleted: int = 0
    failed: int = 0

    @property
    def excess(self) -> int:
        return self.deleted + self.failed


class RetentionPolicy:
    """
    Caps the number of versions kept per (document, schema, locale).

    Deletes are best-effort: one failed delete is logged and counted,
    the rest of the pass still runs.
    """

    def __init__(self, storage: StoragePort):
        self.storage = storage

    def enforce(
        self,
        document_id: str,
        schema_name: str,
        locale: str,
        max_versions: int,
    ) -> RetentionResult:
        if max_versions < 1:
            return RetentionResult()

        scope = {
            "document_id": document_id,
            "schema_name": schema_name,
            "locale": locale,
        }

        total = self.storage.query().where(scope).count()
        if total <= max_versions:
            return RetentionResult()

        excess = total - max_versions
        oldest = (
            self.storage.query()
            .where(scope)
            .sort({"version_number": 1})
            .limit(excess)
            .select({"version_id": 1, "version_number": 1})
            .exec()
        )

        deleted = failed = 0
        for version in oldest:
            try:
                # Already gone counts as done; a concurrent pass may have won
                self.storage.delete({"version_id": version["version_id"]})
                deleted += 1
            except (StorageError, UniqueConstraintViolation) as exc:
                failed += 1
                current_app.logger.error(
                    f"Failed to delete version {version['version_id']} "
                    f"({schema_name}/{document_id}/{locale} #{version['version_number']}): {exc}"
                )

        current_app.logger.info(
            f"Retention for {schema_name}/{document_id}/{locale}: "
            f"kept {max_versions}, deleted {deleted}, failed {failed}"
        )
        return RetentionResult(deleted=deleted, failed=failed)
