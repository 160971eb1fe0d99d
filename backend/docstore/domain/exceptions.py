class InvariantViolation(Exception):
    """Raised when a write would leave a document in an invalid state."""


class UniqueConstraintViolation(InvariantViolation):
    """Raised when the storage engine rejects a row for a duplicate key."""


class ConfigurationError(Exception):
    """Raised at registration time for schemas that can never work."""


class StorageError(Exception):
    """Raised for storage engine failures other than constraint violations."""


class InvalidIdentifier(ValueError):
    """Raised when a value is not a structurally valid storage identifier."""


class UnknownSchemaError(LookupError):
    pass
