"""
Docstore test suite: shared fixtures.

Run:  pytest tests/ -v

Every test gets its own Flask app on an in-memory SQLite database with
the tables for all test schemas created.
"""

from __future__ import annotations

import pytest

from docstore import create_app
from docstore.extensions import db
from docstore.schema.descriptor import FieldSpec, SchemaDescriptor
from docstore.store import get_registry, get_settings_service, get_version_store

ACTOR = "user-1"


def post_schema(**overrides) -> SchemaDescriptor:
    """Localized, versioned schema with a unique slug and a localized title."""
    options = dict(
        name="posts",
        i18n=True,
        versioning=True,
        locales=("en", "fr"),
        default_locale="en",
        fields=(
            FieldSpec("slug", required=True, unique=True),
            FieldSpec("title", required=True, localized=True),
            FieldSpec("views", type="integer", default=0),
            FieldSpec("published_on", type="datetime"),
        ),
    )
    options.update(overrides)
    return SchemaDescriptor(**options)


def page_schema() -> SchemaDescriptor:
    """Single-locale, versioned schema with an implicit unique index."""
    return SchemaDescriptor(
        name="pages",
        fields=(
            FieldSpec("path", required=True, index={"unique": True}),
            FieldSpec("body", type="text"),
        ),
    )


def note_schema() -> SchemaDescriptor:
    """Plain schema: no i18n, no versioning."""
    return SchemaDescriptor(
        name="notes",
        versioning=False,
        fields=(FieldSpec("body", type="text"),),
    )


def make_app(config=None, schemas=None):
    return create_app(
        "testing",
        schemas=schemas if schemas is not None else [post_schema(), page_schema(), note_schema()],
        config={"DOCSTORE_LOCALES": ["en", "fr"], **(config or {})},
    )


@pytest.fixture
def app():
    app = make_app()
    with app.app_context():
        db.create_all()
        get_registry().create_all(db.engine)
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def registry(app):
    return get_registry()


@pytest.fixture
def versions(app):
    return get_version_store()


@pytest.fixture
def settings(app):
    return get_settings_service()


@pytest.fixture
def posts(registry):
    return registry.storage_for("posts")


@pytest.fixture
def set_versioning(settings):
    """Write keys of the "Versioning" settings group."""

    def _set(**values):
        for key, value in values.items():
            settings.set_setting("Versioning", key, value)

    return _set
