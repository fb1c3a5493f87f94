"""Updater factory.

``make_updater`` derives a record type's schema once and returns an
``Updater`` bound to it.  Each call of the updater merges a new patch
over an existing record; the schema is never re-derived::

    update_person = make_updater(Person)

    person = repo.load(person_id)
    person = update_person(person, {"name": "Bob", "age": 25})
    repo.save(person)
"""

from __future__ import annotations

import logging
from typing import Any, Mapping

from record_updater.core.config import Settings
from record_updater.merge.coercion import ConversionTable
from record_updater.merge.diagnostics import MergeReport
from record_updater.merge.merger import merge
from record_updater.schema.builder import build_schema
from record_updater.schema.models import Schema
from record_updater.schema.registry import SchemaRegistry

logger = logging.getLogger(__name__)


class Updater:
    """Reusable merge callable bound to one frozen schema.

    Safe to call concurrently: the schema is read-only and every call
    allocates its own destination record.
    """

    def __init__(self, schema: Schema, settings: Settings | None = None) -> None:
        self._schema = schema
        self._settings = settings or Settings()

    @property
    def schema(self) -> Schema:
        return self._schema

    @property
    def record_type(self) -> type:
        return self._schema.record_type

    def __call__(
        self,
        existing: Any,
        values: Mapping[str, Any],
        *,
        report: MergeReport | None = None,
    ) -> Any:
        """Return a new record with *values* merged over *existing*.

        Raises:
            InvalidRecordError: *existing* is not a compatible record.
        """
        return merge(
            self._schema,
            values,
            existing,
            report=report,
            copy_mode=self._settings.copy_mode,
            strict_source_type=self._settings.strict_source_type,
        )

    def __repr__(self) -> str:
        return (
            f"Updater({self.record_type.__qualname__}, "
            f"fields={self._schema.external_names()})"
        )


def make_updater(
    sample: Any,
    *,
    settings: Settings | None = None,
    registry: SchemaRegistry | None = None,
    table: ConversionTable | None = None,
) -> Updater:
    """Build an ``Updater`` for *sample*'s record type.

    Args:
        sample: A record instance (often a default-constructed one) or the
            record type itself.
        settings: Naming, conversion and merge policy.
        registry: Take the schema from this registry instead of building a
            private one.  The registry's own settings and conversion table
            then govern schema derivation.
        table: Conversion table for a privately built schema.  Cannot be
            combined with *registry*, which compiles its own table.

    Raises:
        ValueError: Both *registry* and *table* were given.
        InvalidInstanceError: *sample* is not a record.
        EmptySchemaError: The record type has no eligible attributes.
        SchemaCollisionError: Two attributes share an external name.
    """
    if registry is not None and table is not None:
        raise ValueError("Pass either registry or table, not both")
    settings = settings or (registry.settings if registry is not None else Settings())
    if registry is not None:
        schema = registry.get(sample)
    else:
        schema = build_schema(sample, settings=settings, table=table)

    logger.debug(
        "Created updater for %s with %d fields",
        schema.record_type.__qualname__, len(schema),
    )
    return Updater(schema, settings)
