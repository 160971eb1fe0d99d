"""Tests for docstore.schema.partition and the partial unique indexes it plans."""

import pytest
from sqlalchemy import create_engine, inspect, text

from docstore.application.documents.create_document import create_document
from docstore.application.documents.publish_document import publish_document
from docstore.application.documents.save_draft import save_draft
from docstore.domain.exceptions import ConfigurationError, UniqueConstraintViolation
from docstore.schema.descriptor import FieldSpec, IndexSpec, SchemaDescriptor
from docstore.schema.partition import UniquenessPartitioner, partition
from docstore.schema.registry import SchemaRegistry

from conftest import post_schema


def _ready(schema):
    return schema.with_defaults(default_locale="en", locales=("en", "fr"))


class TestPartitionPlan:
    def test_unique_field_becomes_partial_index(self):
        plan = partition(_ready(post_schema()))

        assert plan.fields_converted == ["slug"]
        partial = plan.indexes_to_create[0]
        assert partial.name == "posts_slug_unique_i18n"
        assert partial.fields == ("slug",)
        assert partial.unique is True
        assert partial.where == {"locale": "en", "status": "draft"}
        assert plan.indexes_to_drop == ["ix_posts_slug"]

    def test_compound_indexes_added(self):
        plan = partition(_ready(post_schema()))
        by_name = {index.name: index for index in plan.indexes_to_create}

        assert by_name["posts_document_locale_status_unique"].fields == ("document_id", "locale", "status")
        assert by_name["posts_document_locale_status_unique"].unique is True
        assert by_name["posts_document_locale"].fields == ("document_id", "locale")
        assert by_name["posts_status_locale"].fields == ("status", "locale")

    def test_scope_uses_schema_default_locale(self):
        schema = _ready(post_schema(default_locale="fr"))
        plan = partition(schema)
        assert plan.indexes_to_create[0].where == {"locale": "fr", "status": "draft"}

    def test_implicit_unique_index_is_converted(self):
        schema = _ready(SchemaDescriptor(
            name="pages",
            fields=(FieldSpec("path", index={"unique": True}),),
        ))
        assert partition(schema).fields_converted == ["path"]

    def test_declared_unique_index_is_dropped(self):
        schema = _ready(post_schema(indexes=(
            IndexSpec("posts_slug_key", ("slug",), unique=True),
            IndexSpec("posts_views", ("views",)),
        )))
        plan = partition(schema)

        assert "posts_slug_key" in plan.indexes_to_drop
        assert "posts_views" not in plan.indexes_to_drop

    def test_plain_schema_is_untouched(self):
        schema = _ready(SchemaDescriptor(
            name="tags",
            versioning=False,
            fields=(FieldSpec("label", unique=True),),
        ))
        plan = partition(schema)

        assert plan.fields_converted == []
        assert plan.indexes_to_create == []
        assert plan.indexes_to_drop == []

    def test_localized_unique_field_is_rejected(self):
        schema = _ready(post_schema(fields=(FieldSpec("title", unique=True, localized=True),)))
        with pytest.raises(ConfigurationError):
            partition(schema)

    def test_default_locale_outside_locales_is_rejected(self):
        schema = post_schema(default_locale="de", locales=("en", "fr"))
        with pytest.raises(ConfigurationError):
            UniquenessPartitioner().partition(schema)


class TestPartialUniqueness:
    def test_same_value_across_documents_rejected(self, app):
        create_document(schema_name="posts", data={"slug": "hello", "title": "Hello"})

        with pytest.raises(UniqueConstraintViolation):
            create_document(schema_name="posts", data={"slug": "hello", "title": "Other"})

    def test_same_value_across_locales_and_statuses_allowed(self, app, posts):
        draft = create_document(schema_name="posts", data={"slug": "hello", "title": "Hello"})
        document_id = draft["document_id"]

        save_draft(schema_name="posts", document_id=document_id, locale="fr", data={"title": "Bonjour"})
        publish_document(schema_name="posts", document_id=document_id)
        publish_document(schema_name="posts", document_id=document_id, locale="fr")

        rows = posts.find_many({"document_id": document_id})
        assert len(rows) == 4
        assert {row["slug"] for row in rows} == {"hello"}

    def test_one_row_per_document_locale_status(self, app, posts):
        draft = create_document(schema_name="posts", data={"slug": "a", "title": "A"})

        with pytest.raises(UniqueConstraintViolation):
            posts.create({
                "document_id": draft["document_id"],
                "locale": "en",
                "status": "draft",
                "slug": "b",
                "title": {"en": "B"},
            })

    def test_single_locale_schema_still_partitioned(self, app):
        create_document(schema_name="pages", data={"path": "/about"})
        create_document(schema_name="pages", data={"path": "/contact"})

        with pytest.raises(UniqueConstraintViolation):
            create_document(schema_name="pages", data={"path": "/about"})

    def test_converted_column_has_no_standalone_unique(self, app, registry):
        table = registry.table_for("posts")
        assert table.c.slug.unique is False
        assert table.c.slug.index is False


class TestStaleIndexes:
    def test_replaced_index_is_dropped_from_existing_table(self):
        engine = create_engine("sqlite://")
        with engine.begin() as connection:
            connection.execute(text("CREATE TABLE posts (id VARCHAR(36) PRIMARY KEY, slug VARCHAR(255))"))
            connection.execute(text("CREATE UNIQUE INDEX ix_posts_slug ON posts (slug)"))

        registry = SchemaRegistry(default_locale="en", locales=("en", "fr"))
        registry.register(post_schema())

        assert registry.drop_stale_indexes(engine) == ["ix_posts_slug"]
        names = {index["name"] for index in inspect(engine).get_indexes("posts")}
        assert "ix_posts_slug" not in names

    def test_nothing_to_drop_without_table(self):
        engine = create_engine("sqlite://")
        registry = SchemaRegistry(default_locale="en", locales=("en", "fr"))
        registry.register(post_schema())

        assert registry.drop_stale_indexes(engine) == []
