"""Schema data structures.

A ``Schema`` is derived once per record type and never changes
afterwards, so one instance can be shared by any number of concurrent
merges.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import TYPE_CHECKING, Any, Callable, Iterator, Mapping

if TYPE_CHECKING:
    from .introspect import RecordAdapter


def _unset() -> Any:
    return None


def _accept_all(value: Any) -> bool:
    return True


@dataclass(frozen=True)
class FieldDescriptor:
    """One patchable attribute and the name callers address it by.

    ``convert``, ``accepts`` and ``zero`` are compiled when the schema is
    built and do not take part in equality.
    """

    external_name: str
    internal_name: str
    declared_type: Any

    convert: Callable[[Any], Any] = field(default=_unset, compare=False, repr=False)
    accepts: Callable[[Any], bool] = field(default=_accept_all, compare=False, repr=False)
    zero: Callable[[], Any] = field(default=_unset, compare=False, repr=False)


@dataclass(frozen=True)
class Schema:
    """Ordered, immutable mapping of external names to field descriptors.

    ``carried`` names the private and excluded attributes of the record
    type.  They are not patchable but are copied unchanged from a source
    record of the same type.
    """

    record_type: type
    adapter: RecordAdapter = field(compare=False, repr=False)
    fields: tuple[FieldDescriptor, ...]
    carried: tuple[str, ...] = ()
    _index: Mapping[str, FieldDescriptor] = field(
        init=False, compare=False, repr=False,
    )

    def __post_init__(self) -> None:
        object.__setattr__(
            self,
            "_index",
            MappingProxyType({f.external_name: f for f in self.fields}),
        )

    def __iter__(self) -> Iterator[FieldDescriptor]:
        return iter(self.fields)

    def __len__(self) -> int:
        return len(self.fields)

    def __contains__(self, external_name: object) -> bool:
        return external_name in self._index

    def get(self, external_name: str) -> FieldDescriptor | None:
        return self._index.get(external_name)

    def external_names(self) -> list[str]:
        return [f.external_name for f in self.fields]

    def mapping(self) -> dict[str, str]:
        """``{external_name: internal_name}`` in declaration order."""
        return {f.external_name: f.internal_name for f in self.fields}
