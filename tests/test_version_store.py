"""Tests for docstore.services.version_store: numbering, lifecycle, reads."""

import threading
import uuid

import pytest

from docstore.domain.exceptions import StorageError, UniqueConstraintViolation
from docstore.extensions import db
from docstore.store import get_version_store

from conftest import make_app

DOC = "doc-1"


def _create(versions, number_of=1, locale="en", status="draft", document_id=DOC):
    return [
        versions.create_version(document_id, "posts", {"n": i}, status=status, locale=locale)
        for i in range(number_of)
    ]


class TestCreateVersion:
    def test_first_version_is_one(self, versions):
        version = versions.create_version(DOC, "posts", {"slug": "a"}, created_by="user-1", notes="first")
        assert version["version_number"] == 1
        assert version["status"] == "draft"
        assert version["data"] == {"slug": "a"}
        assert version["created_by"] == "user-1"
        assert version["notes"] == "first"
        assert version["created_at"] is not None

    def test_numbers_increase_without_gaps(self, versions):
        created = _create(versions, 4)
        assert [v["version_number"] for v in created] == [1, 2, 3, 4]

    def test_numbering_is_per_locale(self, versions):
        _create(versions, 3, locale="en")
        fr = versions.create_version(DOC, "posts", {}, locale="fr")
        assert fr["version_number"] == 1

    def test_numbering_is_per_document(self, versions):
        _create(versions, 2)
        other = versions.create_version("doc-2", "posts", {})
        assert other["version_number"] == 1

    def test_unknown_status_rejected(self, versions):
        with pytest.raises(ValueError):
            versions.create_version(DOC, "posts", {}, status="deleted")

    def test_retries_when_number_was_taken(self, versions, monkeypatch):
        _create(versions, 1)

        original = versions.find_latest_version
        calls = []

        def stale_then_fresh(*args, **kwargs):
            calls.append(args)
            if len(calls) == 1:
                return None  # another writer got there first
            return original(*args, **kwargs)

        monkeypatch.setattr(versions, "find_latest_version", stale_then_fresh)

        version = versions.create_version(DOC, "posts", {})
        assert version["version_number"] == 2
        assert len(calls) == 2

    def test_gives_up_after_max_attempts(self, versions, monkeypatch):
        _create(versions, 1)
        monkeypatch.setattr(versions, "find_latest_version", lambda *a, **kw: None)

        with pytest.raises(UniqueConstraintViolation):
            versions.create_version(DOC, "posts", {})

        assert len(versions.find_versions(DOC, "posts")) == 1

    def test_lock_released_after_write(self, versions):
        _create(versions, 2)
        assert len(versions.locks) == 0


class TestConcurrentWriters:
    def test_threads_get_distinct_consecutive_numbers(self, tmp_path):
        app = make_app(config={
            "SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'versions.db'}",
            "VERSIONING_MAX_VERSIONS": 100,
        })
        with app.app_context():
            db.create_all()

        writers = 8
        numbers, errors = [], []
        start = threading.Barrier(writers)

        def write():
            with app.app_context():
                start.wait()
                try:
                    version = get_version_store().create_version(DOC, "posts", {})
                    numbers.append(version["version_number"])
                except Exception as exc:  # collected and asserted below
                    errors.append(exc)

        threads = [threading.Thread(target=write) for _ in range(writers)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert errors == []
        assert sorted(numbers) == list(range(1, writers + 1))

        with app.app_context():
            stored = get_version_store().find_versions(DOC, "posts")
            assert [v["version_number"] for v in stored] == list(range(1, writers + 1))
            db.engine.dispose()


class TestStatusTransitions:
    def test_draft_to_published_to_archived(self, versions):
        (version,) = _create(versions, 1)

        published = versions.publish_version(version["version_id"])
        assert published["status"] == "published"

        archived = versions.archive_version(version["version_id"])
        assert archived["status"] == "archived"

    def test_transition_keeps_data_and_number(self, versions):
        (version,) = _create(versions, 1)
        published = versions.update_version_status(version["version_id"], "published")

        assert published["data"] == version["data"]
        assert published["version_number"] == version["version_number"]
        assert published["created_at"] == version["created_at"]

    def test_archived_is_terminal(self, versions):
        (version,) = _create(versions, 1, status="published")
        versions.archive_version(version["version_id"])

        assert versions.update_version_status(version["version_id"], "published") is None
        assert versions.update_version_status(version["version_id"], "draft") is None
        assert versions.find_version_by_id(version["version_id"])["status"] == "archived"

    def test_draft_cannot_skip_to_archived(self, versions):
        (version,) = _create(versions, 1)
        assert versions.update_version_status(version["version_id"], "archived") is None
        assert versions.archive_version(version["version_id"]) is None

    def test_publish_requires_draft(self, versions):
        (version,) = _create(versions, 1, status="published")
        assert versions.publish_version(version["version_id"]) is None

    def test_unknown_target_status(self, versions):
        (version,) = _create(versions, 1)
        with pytest.raises(ValueError):
            versions.update_version_status(version["version_id"], "live")


class TestStorageFailures:
    @pytest.fixture
    def lost_connection(self, monkeypatch):
        def fail(statement):
            raise StorageError("connection lost")

        def apply():
            monkeypatch.setattr("docstore.storage.sql._execute", fail)

        return apply

    def test_failed_lookup_is_not_found(self, versions, lost_connection, caplog):
        (version,) = _create(versions, 1)
        lost_connection()

        assert versions.update_version_status(version["version_id"], "published") is None
        assert versions.publish_version(version["version_id"]) is None
        assert versions.archive_version(version["version_id"]) is None
        assert "Failed to load version" in caplog.text

    def test_failed_update_is_not_found(self, versions, monkeypatch, caplog):
        (version,) = _create(versions, 1)

        def fail(*args, **kwargs):
            raise StorageError("disk full")

        monkeypatch.setattr(versions.storage, "update", fail)

        assert versions.update_version_status(version["version_id"], "published") is None
        assert "Failed to update version status" in caplog.text


class TestReads:
    def test_find_versions_sorted_by_locale_then_number(self, versions):
        _create(versions, 2, locale="fr")
        _create(versions, 2, locale="en")

        found = [(v["locale"], v["version_number"]) for v in versions.find_versions(DOC, "posts")]
        assert found == [("en", 1), ("en", 2), ("fr", 1), ("fr", 2)]

    def test_find_versions_by_locale(self, versions):
        _create(versions, 2, locale="fr")
        _create(versions, 1, locale="en")
        assert [v["version_number"] for v in versions.find_versions_by_locale(DOC, "posts", "fr")] == [1, 2]

    def test_find_version_by_number(self, versions):
        _create(versions, 3)
        assert versions.find_version_by_number(DOC, "posts", "en", 2)["data"] == {"n": 1}
        assert versions.find_version_by_number(DOC, "posts", "en", 9) is None

    def test_find_latest_version(self, versions):
        _create(versions, 3)
        assert versions.find_latest_version(DOC, "posts", "en")["version_number"] == 3
        assert versions.find_latest_version(DOC, "posts", "fr") is None

    def test_find_latest_version_by_status(self, versions):
        _create(versions, 1, status="published")
        _create(versions, 2)

        latest = versions.find_latest_version(DOC, "posts", "en", status="published")
        assert latest["version_number"] == 1

    def test_get_versioned_locales(self, versions):
        _create(versions, 2, locale="fr")
        _create(versions, 1, locale="en")
        assert versions.get_versioned_locales(DOC, "posts") == ["en", "fr"]
        assert versions.get_versioned_locales("missing", "posts") == []

    def test_delete_version(self, versions):
        (version,) = _create(versions, 1)
        assert versions.delete_version(version["version_id"]) is True
        assert versions.delete_version(version["version_id"]) is False


class TestMalformedIdentifiers:
    @pytest.mark.parametrize("bad_id", ["not-a-uuid", "", "12345", None])
    def test_lookup_by_malformed_id_is_not_found(self, versions, bad_id):
        _create(versions, 1)
        assert versions.find_version_by_id(bad_id) is None
        assert versions.update_version_status(bad_id, "published") is None
        assert versions.delete_version(bad_id) is False

    def test_unknown_but_valid_id_is_not_found(self, versions):
        assert versions.find_version_by_id(str(uuid.uuid4())) is None
