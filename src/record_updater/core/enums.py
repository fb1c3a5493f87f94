"""Enumerations used across the record updater."""

from enum import Enum


class RecordKind(str, Enum):
    DATACLASS = "dataclass"
    PYDANTIC = "pydantic"
    SQLALCHEMY = "sqlalchemy"


class CollisionPolicy(str, Enum):
    """What to do when two attributes share an external name."""

    ERROR = "error"
    LAST_WINS = "last_wins"


class CopyMode(str, Enum):
    """How assigned values are carried into the destination record."""

    REFERENCE = "reference"  # Share the object, like a plain assignment
    DEEP = "deep"  # copy.deepcopy every assigned value


class FieldOutcome(str, Enum):
    APPLIED = "applied"  # Taken from the incoming values
    KEPT_EXISTING = "kept_existing"  # Copied from the existing record
    ZEROED = "zeroed"  # Default / zero value of the declared type


class FallbackReason(str, Enum):
    NONE = "none"
    ABSENT = "absent"
    NULL = "null"
    UNCONVERTIBLE = "unconvertible"
