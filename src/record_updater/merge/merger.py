"""Field merger.

Computes one destination value per schema field with a fixed precedence:

1. the incoming value, if present, not ``None`` and convertible to the
   field's declared type;
2. otherwise the existing record's value, if it satisfies the declared
   type;
3. otherwise the field's zero value.

Private and excluded attributes are not patchable; when the source is of
the schema's record type they are copied over unchanged, otherwise they
get their zero value.

No per-field outcome is an error.  The destination is always a new
instance of the schema's record type; neither ``values`` nor the source
record is mutated.
"""

from __future__ import annotations

import copy
from typing import Any, Mapping

from record_updater.core.enums import CopyMode, FallbackReason, FieldOutcome
from record_updater.core.errors import InvalidRecordError
from record_updater.schema.introspect import is_record_instance
from record_updater.schema.models import Schema

from .coercion import UNCONVERTIBLE
from .diagnostics import MergeReport

_MISSING = object()


def check_source(schema: Schema, source: Any, *, strict_source_type: bool = False) -> bool:
    """Validate the source record of a merge.

    Returns True if *source* is an instance of the schema's record type.

    Raises:
        InvalidRecordError: *source* is not a record instance, or with
            *strict_source_type* not an instance of the bound type.
    """
    if schema.adapter.is_instance(source):
        return True
    if strict_source_type or not is_record_instance(source):
        raise InvalidRecordError(
            f"Existing object must be a {schema.record_type.__qualname__} "
            f"instance, got {type(source).__name__}"
        )
    return False


def merge(
    schema: Schema,
    values: Mapping[str, Any],
    source: Any,
    *,
    report: MergeReport | None = None,
    copy_mode: CopyMode = CopyMode.REFERENCE,
    strict_source_type: bool = False,
) -> Any:
    """Merge *values* over *source* and return a new record.

    Args:
        schema: Schema of the destination record type.
        values: Incoming patch keyed by external field name.  Unknown keys
            are ignored.
        source: Existing record supplying fallback values.  May be of a
            different record type unless *strict_source_type* is set; its
            attributes are then looked up by internal name, then by
            external name.
        report: Optional collector for per-field outcomes.
        copy_mode: ``DEEP`` deep-copies every value stored in the result.

    Raises:
        InvalidRecordError: *source* is not a compatible record, or
            *values* is not a mapping.
    """
    if not isinstance(values, Mapping):
        raise InvalidRecordError(
            f"Values must be a mapping, got {type(values).__name__}"
        )
    same_type = check_source(schema, source, strict_source_type=strict_source_type)
    deep = copy_mode == CopyMode.DEEP

    out: dict[str, Any] = {}
    fields_set: set[str] = set()

    for f in schema.fields:
        reason = FallbackReason.NONE
        raw = values.get(f.external_name)
        if raw is not None:
            converted = f.convert(raw)
            if converted is not UNCONVERTIBLE:
                out[f.internal_name] = copy.deepcopy(converted) if deep else converted
                fields_set.add(f.internal_name)
                if report is not None:
                    report.record(f.external_name, f.internal_name, FieldOutcome.APPLIED)
                continue
            reason = FallbackReason.UNCONVERTIBLE
        elif report is not None:
            reason = FallbackReason.NULL if f.external_name in values else FallbackReason.ABSENT

        existing = getattr(source, f.internal_name, _MISSING)
        if existing is _MISSING and not same_type:
            existing = getattr(source, f.external_name, _MISSING)

        if existing is not _MISSING and f.accepts(existing):
            out[f.internal_name] = copy.deepcopy(existing) if deep else existing
            fields_set.add(f.internal_name)
            outcome = FieldOutcome.KEPT_EXISTING
        else:
            out[f.internal_name] = f.zero()
            outcome = FieldOutcome.ZEROED

        if report is not None:
            report.record(f.external_name, f.internal_name, outcome, reason)

    if same_type:
        for name in schema.carried:
            existing = getattr(source, name, _MISSING)
            if existing is not _MISSING:
                out[name] = copy.deepcopy(existing) if deep else existing
                fields_set.add(name)

    if report is not None:
        report.record_type = schema.record_type.__qualname__
        report.unknown_keys.extend(str(k) for k in values if k not in schema)

    return schema.adapter.instantiate(out, fields_set)
