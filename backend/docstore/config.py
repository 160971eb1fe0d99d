import os
from dotenv import load_dotenv

load_dotenv()


def _env_bool(name, default):
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name, default):
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


class BaseConfig:
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")

    # Locales every schema inherits unless it declares its own
    DOCSTORE_DEFAULT_LOCALE = os.getenv("DOCSTORE_DEFAULT_LOCALE", "en")
    DOCSTORE_LOCALES = _env_list("DOCSTORE_LOCALES", ["en"])

    # Fallbacks for the "Versioning" settings group
    VERSIONING_DRAFTS_ENABLED = _env_bool("VERSIONING_DRAFTS_ENABLED", True)
    VERSIONING_REQUIRE_APPROVAL = _env_bool("VERSIONING_REQUIRE_APPROVAL", False)
    VERSIONING_AUTO_PUBLISH = _env_bool("VERSIONING_AUTO_PUBLISH", False)
    VERSIONING_MAX_VERSIONS = int(os.getenv("VERSIONING_MAX_VERSIONS", "20"))

    VERSION_NUMBER_MAX_ATTEMPTS = int(os.getenv("VERSION_NUMBER_MAX_ATTEMPTS", "5"))


class DevelopmentConfig(BaseConfig):
    DEBUG = True
    SQLALCHEMY_DATABASE_URI = os.getenv("DEV_DATABASE_URI", "sqlite:///docstore-dev.db")


class TestingConfig(BaseConfig):
    TESTING = True
    SQLALCHEMY_DATABASE_URI = "sqlite://"
    LOG_LEVEL = "DEBUG"


class ProductionConfig(BaseConfig):
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URI")


config_by_name = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig
}
