"""Tests for the `flask docstore` command group."""

import json

from sqlalchemy import inspect

from docstore.application.documents.create_document import create_document
from docstore.application.documents.save_draft import save_draft
from docstore.extensions import db

from conftest import ACTOR, make_app


def _runner(app):
    return app.test_cli_runner()


class TestInitDb:
    def test_creates_all_tables(self, tmp_path):
        app = make_app(config={"SQLALCHEMY_DATABASE_URI": f"sqlite:///{tmp_path / 'cli.db'}"})

        result = _runner(app).invoke(args=["docstore", "init-db"])

        assert result.exit_code == 0, result.output
        assert "Initialized 3 schema table(s)" in result.output
        with app.app_context():
            tables = set(inspect(db.engine).get_table_names())
            db.engine.dispose()
        assert {"versions", "settings", "audit_logs", "posts", "pages", "notes"} <= tables


class TestVersionCommands:
    def test_versions_prints_history(self, app):
        row = create_document(schema_name="posts", data={"slug": "a", "title": "A"}, actor_id=ACTOR)
        save_draft(schema_name="posts", document_id=row["document_id"], locale="fr", data={"title": "Bonjour"})

        result = _runner(app).invoke(args=["docstore", "versions", "posts", row["document_id"]])

        assert result.exit_code == 0, result.output
        history = json.loads(result.output)
        assert [(v["locale"], v["version_number"]) for v in history] == [("en", 1), ("fr", 1)]
        assert history[0]["data"]["title"] == {"en": "A"}

    def test_versions_by_locale(self, app):
        row = create_document(schema_name="posts", data={"slug": "a", "title": "A"})
        save_draft(schema_name="posts", document_id=row["document_id"], locale="fr", data={"title": "Bonjour"})

        result = _runner(app).invoke(
            args=["docstore", "versions", "posts", row["document_id"], "--locale", "fr"]
        )
        assert [v["locale"] for v in json.loads(result.output)] == ["fr"]

    def test_prune_versions(self, app, versions):
        row = create_document(schema_name="posts", data={"slug": "a", "title": "A"})
        for i in range(3):
            save_draft(schema_name="posts", document_id=row["document_id"], data={"title": f"A{i}"})

        result = _runner(app).invoke(args=["docstore", "prune-versions", "--max-versions", "2"])

        assert result.exit_code == 0, result.output
        assert "Pruned 2 version(s)" in result.output
        numbers = [v["version_number"] for v in versions.find_versions(row["document_id"], "posts")]
        assert numbers == [3, 4]

    def test_audit_trail(self, app):
        row = create_document(schema_name="posts", data={"slug": "a", "title": "A"}, actor_id=ACTOR)

        result = _runner(app).invoke(args=["docstore", "audit", row["document_id"]])

        (entry,) = json.loads(result.output)
        assert entry["action"] == "document.create"
        assert entry["actor_id"] == ACTOR
