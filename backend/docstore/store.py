# docstore/store.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional

from flask import Flask, current_app

from docstore.domain.exceptions import ConfigurationError
from docstore.models.version import Version
from docstore.schema.descriptor import SchemaDescriptor
from docstore.schema.registry import SchemaRegistry
from docstore.services.settings_service import SettingsService
from docstore.services.version_store import VersionStore
from docstore.storage.sql import SqlStorage
from docstore.utils.locking import KeyedLock

EXTENSION_KEY = "docstore"


@dataclass
class DocstoreState:
    registry: SchemaRegistry
    settings: SettingsService
    versions: VersionStore


def init_docstore(app: Flask, schemas: Optional[Iterable[SchemaDescriptor]] = None) -> DocstoreState:
    """
    Build the per-app registry and version store.

    Schemas are registered here so configuration errors stop the app
    from starting.
    """
    default_locale = app.config["DOCSTORE_DEFAULT_LOCALE"]
    locales = app.config["DOCSTORE_LOCALES"]
    if default_locale not in locales:
        raise ConfigurationError(
            f"Default locale '{default_locale}' is not included in locales: {', '.join(locales)}"
        )

    registry = SchemaRegistry(default_locale=default_locale, locales=locales)
    for schema in schemas or ():
        registry.register(schema)

    settings = SettingsService()
    versions = VersionStore(
        SqlStorage(Version.__table__),
        settings,
        locks=KeyedLock(),
        max_attempts=app.config["VERSION_NUMBER_MAX_ATTEMPTS"],
    )

    state = DocstoreState(registry=registry, settings=settings, versions=versions)
    app.extensions[EXTENSION_KEY] = state
    return state


def _state() -> DocstoreState:
    return current_app.extensions[EXTENSION_KEY]


def get_registry() -> SchemaRegistry:
    return _state().registry


def get_settings_service() -> SettingsService:
    return _state().settings


def get_version_store() -> VersionStore:
    return _state().versions
