"""Record updater: merge sparse patches into typed records.

Public API
----------
Factory:
    make_updater, Updater

Schema:
    build_schema, Schema, FieldDescriptor, SchemaRegistry,
    patch_field, patch_metadata, fold

Merge:
    merge, ConversionTable, UNCONVERTIBLE,
    MergeReport, FieldReport, FieldOutcome, FallbackReason

Config:
    Settings, load_settings, CollisionPolicy, CopyMode

Errors:
    UpdaterError, ConfigError, SchemaError, InvalidInstanceError,
    EmptySchemaError, SchemaCollisionError, MergeError, InvalidRecordError
"""

from record_updater.core.config import Settings, load_settings
from record_updater.core.enums import (
    CollisionPolicy,
    CopyMode,
    FallbackReason,
    FieldOutcome,
    RecordKind,
)
from record_updater.core.errors import (
    ConfigError,
    EmptySchemaError,
    InvalidInstanceError,
    InvalidRecordError,
    MergeError,
    SchemaCollisionError,
    SchemaError,
    UpdaterError,
)
from record_updater.merge.coercion import UNCONVERTIBLE, ConversionTable
from record_updater.merge.diagnostics import FieldReport, MergeReport
from record_updater.merge.merger import merge
from record_updater.naming.case_folder import fold
from record_updater.schema.builder import build_schema
from record_updater.schema.models import FieldDescriptor, Schema
from record_updater.schema.registry import SchemaRegistry
from record_updater.schema.tags import patch_field, patch_metadata
from record_updater.updater import Updater, make_updater

__all__ = [
    # Factory
    "make_updater",
    "Updater",
    # Schema
    "build_schema",
    "Schema",
    "FieldDescriptor",
    "SchemaRegistry",
    "patch_field",
    "patch_metadata",
    "fold",
    "RecordKind",
    # Merge
    "merge",
    "ConversionTable",
    "UNCONVERTIBLE",
    "MergeReport",
    "FieldReport",
    "FieldOutcome",
    "FallbackReason",
    # Config
    "Settings",
    "load_settings",
    "CollisionPolicy",
    "CopyMode",
    # Errors
    "UpdaterError",
    "ConfigError",
    "SchemaError",
    "InvalidInstanceError",
    "EmptySchemaError",
    "SchemaCollisionError",
    "MergeError",
    "InvalidRecordError",
]
