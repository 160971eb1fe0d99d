from typing import Any, Iterable, Mapping, Optional

from flask import Flask

from .config import config_by_name
from .extensions import db, migrate
from .cli import register_cli
from .schema.descriptor import SchemaDescriptor
from .store import init_docstore

# Import models so Flask-Migrate and db.create_all() see their tables
from .models import audit_log, setting, version  # noqa: F401


def create_app(
    config_name: str = "development",
    schemas: Optional[Iterable[SchemaDescriptor]] = None,
    config: Optional[Mapping[str, Any]] = None,
) -> Flask:
    app = Flask(__name__)
    app.config.from_object(config_by_name[config_name])
    if config:
        app.config.update(config)

    app.logger.setLevel(app.config["LOG_LEVEL"])

    # -------------------------------------------------
    # Extensions
    # -------------------------------------------------
    db.init_app(app)
    migrate.init_app(app, db)

    # -------------------------------------------------
    # Document store
    # -------------------------------------------------
    init_docstore(app, schemas or app.config.get("DOCSTORE_SCHEMAS"))

    # -------------------------------------------------
    # CLI
    # -------------------------------------------------
    register_cli(app)

    return app
