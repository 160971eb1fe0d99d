# docstore/services/settings_service.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

from flask import current_app

from docstore.extensions import db
from docstore.models.setting import Setting
from docstore.utils.transaction import transactional

VERSIONING_GROUP = "Versioning"


def as_bool(value: Any, default: bool = False) -> bool:
    """
    Native booleans pass through; legacy rows stored "true"/"false".
    """
    if value is None:
        return default
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return bool(value)


@dataclass(frozen=True)
class VersioningSettings:
    drafts_enabled: bool = True
    require_approval: bool = False
    auto_publish: bool = False
    max_versions: int = 20

    @classmethod
    def from_settings(
        cls,
        values: Mapping[str, Any],
        defaults: Optional["VersioningSettings"] = None,
    ) -> "VersioningSettings":
        defaults = defaults or cls()

        max_versions = values.get("maxVersions")
        try:
            max_versions = int(max_versions) if max_versions is not None else defaults.max_versions
        except (TypeError, ValueError):
            max_versions = defaults.max_versions

        return cls(
            drafts_enabled=as_bool(values.get("draftsEnabled"), defaults.drafts_enabled),
            require_approval=as_bool(values.get("requireApproval"), defaults.require_approval),
            auto_publish=as_bool(values.get("autoPublish"), defaults.auto_publish),
            max_versions=max_versions,
        )


class SettingsService:
    """Key/value settings grouped by name, persisted in the settings table."""

    def get_settings_by_group(self, group: str) -> List[Dict[str, Any]]:
        rows = Setting.query.filter_by(group=group).order_by(Setting.key.asc()).all()
        return [{"key": row.key, "value": row.value} for row in rows]

    def set_setting(self, group: str, key: str, value: Any) -> Setting:
        setting = Setting.query.filter_by(group=group, key=key).first()

        with transactional():
            if not setting:
                setting = Setting()
                setting.group = group
                setting.key = key

            setting.value = value
            setting.type = type(value).__name__
            db.session.add(setting)

        return setting

    def get_versioning_settings(self) -> VersioningSettings:
        config = current_app.config
        defaults = VersioningSettings(
            drafts_enabled=config.get("VERSIONING_DRAFTS_ENABLED", True),
            require_approval=config.get("VERSIONING_REQUIRE_APPROVAL", False),
            auto_publish=config.get("VERSIONING_AUTO_PUBLISH", False),
            max_versions=config.get("VERSIONING_MAX_VERSIONS", 20),
        )

        values = {
            item["key"]: item["value"]
            for item in self.get_settings_by_group(VERSIONING_GROUP)
        }
        return VersioningSettings.from_settings(values, defaults)
