# docstore/cli.py
import json

import click
from flask import Flask
from flask.cli import AppGroup
from sqlalchemy import select

from docstore.extensions import db
from docstore.models.audit_log import AuditLog
from docstore.models.version import Version
from docstore.normalizers.audit import normalize_audit_log
from docstore.normalizers.version import normalize_version
from docstore.store import get_registry, get_version_store

docstore_cli = AppGroup("docstore", help="Document store maintenance.")


@docstore_cli.command("init-db")
def init_db():
    """Create the version, settings and audit tables plus every schema table."""
    db.create_all()
    get_registry().create_all(db.engine)
    click.echo(f"Initialized {len(get_registry().schemas())} schema table(s)")


@docstore_cli.command("prune-versions")
@click.option("--max-versions", type=int, default=None, help="Override the configured cap.")
def prune_versions(max_versions):
    """Apply the retention cap to every document/locale history."""
    versions = get_version_store()

    scopes = db.session.execute(
        select(Version.document_id, Version.schema_name, Version.locale).distinct()
    ).all()

    deleted = failed = 0
    for document_id, schema_name, locale in scopes:
        result = versions.prune(document_id, schema_name, locale, max_versions)
        deleted += result.deleted
        failed += result.failed

    click.echo(f"Pruned {deleted} version(s) across {len(scopes)} histories, {failed} failed")


@docstore_cli.command("versions")
@click.argument("schema_name")
@click.argument("document_id")
@click.option("--locale", default=None)
def list_versions(schema_name, document_id, locale):
    """Print the version history of a document as JSON."""
    schema = get_registry().get(schema_name)
    versions = get_version_store()

    if locale:
        rows = versions.find_versions_by_locale(document_id, schema.name, locale)
    else:
        rows = versions.find_versions(document_id, schema.name)

    click.echo(json.dumps([normalize_version(row) for row in rows], indent=2))


@docstore_cli.command("audit")
@click.argument("document_id")
def audit_trail(document_id):
    """Print the audit trail of a document as JSON."""
    logs = (
        AuditLog.query.filter_by(entity_id=document_id)
        .order_by(AuditLog.created_at.asc())
        .all()
    )
    click.echo(json.dumps([normalize_audit_log(log) for log in logs], indent=2))


def register_cli(app: Flask) -> None:
    app.cli.add_command(docstore_cli)
