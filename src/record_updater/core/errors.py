"""Custom exception hierarchy for the record updater."""


class UpdaterError(Exception):
    """Base exception for all record updater errors."""


# --- Configuration ---
class ConfigError(UpdaterError):
    """Invalid or missing configuration."""


# --- Schema ---
class SchemaError(UpdaterError):
    """Schema could not be derived from a record type."""


class InvalidInstanceError(SchemaError):
    """Sample is neither a record instance nor a record type."""


class EmptySchemaError(SchemaError):
    """Record type exposes no eligible attributes."""


class SchemaCollisionError(SchemaError):
    """Two attributes fold to the same external name."""

    def __init__(self, external_name: str, first: str, second: str):
        self.external_name = external_name
        self.first = first
        self.second = second
        super().__init__(
            f"Attributes '{first}' and '{second}' both map to "
            f"external name '{external_name}'"
        )


# --- Merge ---
class MergeError(UpdaterError):
    """Merge invocation failure."""


class InvalidRecordError(MergeError):
    """Existing object is not a record compatible with the bound type."""
