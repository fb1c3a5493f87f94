"""Schema registry.

Explicit cache of derived schemas keyed by record type identity.  Nothing
is cached implicitly: callers that want memoisation create a registry,
pass it where schemas are needed, and tear it down with ``clear()``.
"""

from __future__ import annotations

import logging
import threading
from typing import Any

from record_updater.core.config import Settings
from record_updater.merge.coercion import ConversionTable

from .builder import build_schema
from .introspect import resolve_record_type
from .models import Schema

logger = logging.getLogger(__name__)


class SchemaRegistry:
    """Builds each record type's schema once and hands out the shared copy.

    Parameters
    ----------
    settings:
        Settings every schema in this registry is built with.
    table:
        Conversion table compiled into every schema.
    """

    def __init__(
        self,
        settings: Settings | None = None,
        table: ConversionTable | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.table = table or ConversionTable.from_settings(self.settings)
        self._schemas: dict[type, Schema] = {}
        self._lock = threading.Lock()

    def get(self, sample: Any) -> Schema:
        """Return the schema for *sample*'s record type, building it if needed."""
        record_type = resolve_record_type(sample)
        schema = self._schemas.get(record_type)
        if schema is not None:
            return schema

        with self._lock:
            schema = self._schemas.get(record_type)
            if schema is None:
                schema = build_schema(record_type, settings=self.settings, table=self.table)
                self._schemas[record_type] = schema
                logger.debug("Registered schema for %s", record_type.__qualname__)
        return schema

    def evict(self, record_type: type) -> bool:
        """Drop the cached schema of *record_type*. Returns True if one existed."""
        with self._lock:
            evicted = self._schemas.pop(record_type, None) is not None
        if evicted:
            logger.debug("Evicted schema for %s", record_type.__qualname__)
        return evicted

    def clear(self) -> None:
        with self._lock:
            self._schemas.clear()

    def record_types(self) -> list[type]:
        return list(self._schemas)

    def __contains__(self, record_type: object) -> bool:
        return record_type in self._schemas

    def __len__(self) -> int:
        return len(self._schemas)
