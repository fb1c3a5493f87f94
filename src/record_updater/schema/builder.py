"""Schema derivation.

Walks a record type's attributes once, in declaration order, and produces
the immutable ``Schema`` the merger runs against::

    schema = build_schema(Person())
    schema.mapping()
    # {"name": "name", "age": "age", "dob": "date_of_birth", ...}

An attribute is eligible when it is public (no leading underscore) and
not marked with the exclusion annotation.  Its external name is the
explicit override when one is given, otherwise the folded attribute name.
"""

from __future__ import annotations

import logging
from typing import Any

from record_updater.core.config import Settings
from record_updater.core.enums import CollisionPolicy, RecordKind
from record_updater.core.errors import EmptySchemaError, SchemaCollisionError
from record_updater.merge.coercion import ConversionTable, compile_checker
from record_updater.naming.case_folder import fold

from .introspect import RecordAttribute, adapter_for
from .models import FieldDescriptor, Schema
from .tags import explicit_name, is_excluded

logger = logging.getLogger(__name__)


def external_name_for(attr: RecordAttribute, kind: RecordKind, settings: Settings) -> str:
    """Resolve the external name of one attribute."""
    name = explicit_name(attr.metadata, settings)
    if name is not None:
        return name
    if (
        kind == RecordKind.PYDANTIC
        and settings.honor_pydantic_alias
        and attr.alias
        and attr.alias != settings.default_name_sentinel
    ):
        return attr.alias
    return fold(attr.name, legacy_whitespace=settings.legacy_whitespace_folding)


def build_schema(
    sample: Any,
    *,
    settings: Settings | None = None,
    table: ConversionTable | None = None,
) -> Schema:
    """Derive the schema of *sample*'s record type.

    Args:
        sample: A record instance or record type.
        settings: Naming and collision policy (defaults to ``Settings()``).
        table: Conversion table compiled into each descriptor (defaults to
            one built from *settings*).

    Raises:
        InvalidInstanceError: *sample* is not a record.
        EmptySchemaError: No eligible attributes.
        SchemaCollisionError: Two attributes share an external name and the
            collision policy is ``error``.
    """
    settings = settings or Settings()
    table = table or ConversionTable.from_settings(settings)
    adapter = adapter_for(sample)

    by_name: dict[str, FieldDescriptor] = {}
    carried: list[str] = []
    for attr in adapter.attributes():
        if not attr.is_public or is_excluded(attr.metadata, settings):
            carried.append(attr.name)
            continue

        external = external_name_for(attr, adapter.kind, settings)
        previous = by_name.get(external)
        if previous is not None:
            if settings.collision_policy == CollisionPolicy.ERROR:
                raise SchemaCollisionError(external, previous.internal_name, attr.name)
            logger.warning(
                "Attribute '%s' of %s shadows '%s' under external name '%s'",
                attr.name, adapter.record_type.__qualname__,
                previous.internal_name, external,
            )
            del by_name[external]

        by_name[external] = FieldDescriptor(
            external_name=external,
            internal_name=attr.name,
            declared_type=attr.declared_type,
            convert=table.compile(attr.declared_type),
            accepts=compile_checker(attr.declared_type),
            zero=attr.zero,
        )

    if not by_name:
        raise EmptySchemaError(
            f"{adapter.record_type.__qualname__} has no eligible attributes"
        )

    schema = Schema(
        record_type=adapter.record_type,
        adapter=adapter,
        fields=tuple(by_name.values()),
        carried=tuple(carried),
    )
    logger.debug(
        "Built schema for %s (%s): %s",
        adapter.record_type.__qualname__, adapter.kind.value, schema.external_names(),
    )
    return schema
