"""Record introspection.

Recognises the record kinds the engine can patch and wraps each record
type in a ``RecordAdapter`` that knows how to:

- list the type's attributes in declaration order, with their resolved
  annotations, annotation metadata and zero values;
- allocate a fresh instance from a mapping of attribute values without
  running user ``__init__`` / validation logic;
- dump an instance back to a plain dict.

Supported kinds: ``dataclasses``, pydantic ``BaseModel`` subclasses and
SQLAlchemy declarative (mapped) classes.  All type inspection happens
here, once per record type; the merge hot path only uses the results.
"""

from __future__ import annotations

import dataclasses
import logging
import types
import typing
from abc import ABC, abstractmethod
from collections import abc as cabc
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Callable, Mapping, Union

import sqlalchemy as sa
from pydantic import BaseModel
from sqlalchemy.orm import Mapper
from sqlalchemy.orm.state import InstanceState

from record_updater.core.enums import RecordKind
from record_updater.core.errors import InvalidInstanceError

logger = logging.getLogger(__name__)

_NONE_TYPE = type(None)

# Declared type -> factory producing its zero value.  Containers get a
# fresh object on every call.
_ZERO_FACTORIES: dict[Any, Callable[[], Any]] = {
    int: int,
    float: float,
    complex: complex,
    str: str,
    bytes: bytes,
    bool: bool,
    Decimal: Decimal,
    list: list,
    dict: dict,
    set: set,
    frozenset: frozenset,
    tuple: tuple,
    cabc.Sequence: list,
    cabc.MutableSequence: list,
    cabc.Mapping: dict,
    cabc.MutableMapping: dict,
    cabc.Set: set,
    cabc.MutableSet: set,
}


def _none() -> None:
    return None


def _constant(value: Any) -> Callable[[], Any]:
    return lambda: value


def is_optional(tp: Any) -> bool:
    """True if ``None`` is an accepted value of *tp*."""
    if tp is _NONE_TYPE or tp is None:
        return True
    origin = typing.get_origin(tp)
    if origin is typing.Annotated:
        return is_optional(typing.get_args(tp)[0])
    if origin is Union or origin is types.UnionType:
        return any(is_optional(arg) for arg in typing.get_args(tp))
    return False


def zero_factory(tp: Any) -> Callable[[], Any]:
    """Return a factory for the zero value of the declared type *tp*."""
    if tp is Any or is_optional(tp):
        return _none
    origin = typing.get_origin(tp)
    if origin is typing.Annotated:
        return zero_factory(typing.get_args(tp)[0])
    base = origin if origin is not None else tp
    supertype = getattr(base, "__supertype__", None)  # typing.NewType
    if supertype is not None:
        return zero_factory(supertype)
    try:
        return _ZERO_FACTORIES.get(base, _none)
    except TypeError:  # unhashable annotation objects
        return _none


# ---------------------------------------------------------------------------
# Attribute description
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class RecordAttribute:
    """One attribute of a record type, as seen by the schema builder."""

    name: str
    declared_type: Any
    metadata: Mapping[str, Any] = field(default_factory=dict)
    alias: str | None = None
    zero: Callable[[], Any] = field(default=_none, compare=False, repr=False)

    @property
    def is_public(self) -> bool:
        return not self.name.startswith("_")


# ---------------------------------------------------------------------------
# Adapters
# ---------------------------------------------------------------------------

class RecordAdapter(ABC):
    """Kind-specific access to a record type."""

    kind: RecordKind

    def __init__(self, record_type: type) -> None:
        self.record_type = record_type
        self._attributes: tuple[RecordAttribute, ...] = tuple(self._collect())

    def attributes(self) -> tuple[RecordAttribute, ...]:
        """All attributes in declaration order, private ones included."""
        return self._attributes

    @abstractmethod
    def _collect(self) -> list[RecordAttribute]: ...

    @abstractmethod
    def is_instance(self, obj: Any) -> bool:
        """True if *obj* is an instance of the adapted record type."""

    @abstractmethod
    def _allocate(self, values: dict[str, Any], fields_set: set[str]) -> Any: ...

    def instantiate(
        self,
        values: Mapping[str, Any],
        fields_set: set[str] | None = None,
    ) -> Any:
        """Allocate a new instance from attribute values.

        Attributes missing from *values* get their zero value.
        """
        full = {
            attr.name: values[attr.name] if attr.name in values else attr.zero()
            for attr in self._attributes
        }
        return self._allocate(full, fields_set if fields_set is not None else set(values))

    def dump(self, obj: Any) -> dict[str, Any]:
        return {attr.name: getattr(obj, attr.name) for attr in self._attributes}

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.record_type.__qualname__})"


def _resolved_hints(record_type: type) -> dict[str, Any]:
    try:
        return typing.get_type_hints(record_type)
    except (NameError, TypeError):
        pass
    # Self references in classes whose module namespace is not importable
    try:
        return typing.get_type_hints(
            record_type, localns={record_type.__name__: record_type},
        )
    except (NameError, TypeError) as exc:
        logger.debug(
            "Could not resolve annotations of %s: %s",
            record_type.__qualname__, exc,
        )
        return {}


def _annotation(raw: Any) -> Any:
    # Unresolved forward references accept any value
    return Any if isinstance(raw, (str, typing.ForwardRef)) else raw


class DataclassAdapter(RecordAdapter):
    kind = RecordKind.DATACLASS

    def _collect(self) -> list[RecordAttribute]:
        hints = _resolved_hints(self.record_type)
        attrs: list[RecordAttribute] = []
        for f in dataclasses.fields(self.record_type):
            declared = hints.get(f.name, _annotation(f.type))
            if f.default is not dataclasses.MISSING:
                zero = _constant(f.default)
            elif f.default_factory is not dataclasses.MISSING:
                zero = f.default_factory
            else:
                zero = zero_factory(declared)
            attrs.append(RecordAttribute(
                name=f.name,
                declared_type=declared,
                metadata=f.metadata,
                zero=zero,
            ))
        return attrs

    def is_instance(self, obj: Any) -> bool:
        return isinstance(obj, self.record_type)

    def _allocate(self, values: dict[str, Any], fields_set: set[str]) -> Any:
        # Bypasses __init__/__post_init__; works for frozen and slotted classes
        obj = object.__new__(self.record_type)
        for name, value in values.items():
            object.__setattr__(obj, name, value)
        return obj


class PydanticAdapter(RecordAdapter):
    kind = RecordKind.PYDANTIC

    def _collect(self) -> list[RecordAttribute]:
        attrs: list[RecordAttribute] = []
        for name, info in self.record_type.model_fields.items():
            declared = _annotation(info.annotation) if info.annotation is not None else Any
            extra = info.json_schema_extra if isinstance(info.json_schema_extra, dict) else {}
            if info.is_required():
                zero = zero_factory(declared)
            else:
                zero = _pydantic_default(info)
            attrs.append(RecordAttribute(
                name=name,
                declared_type=declared,
                metadata=extra,
                alias=info.alias,
                zero=zero,
            ))
        return attrs

    def is_instance(self, obj: Any) -> bool:
        return isinstance(obj, self.record_type)

    def _allocate(self, values: dict[str, Any], fields_set: set[str]) -> Any:
        return self.record_type.model_construct(_fields_set=fields_set, **values)

    def dump(self, obj: Any) -> dict[str, Any]:
        return obj.model_dump()


def _pydantic_default(info: Any) -> Callable[[], Any]:
    def _default() -> Any:
        return info.get_default(call_default_factory=True)
    return _default


class SqlAlchemyAdapter(RecordAdapter):
    kind = RecordKind.SQLALCHEMY

    def _collect(self) -> list[RecordAttribute]:
        mapper: Mapper = sa.inspect(self.record_type)
        attrs: list[RecordAttribute] = []
        for prop in mapper.column_attrs:
            column = prop.columns[0]
            try:
                declared: Any = column.type.python_type
            except NotImplementedError:
                declared = Any
            if declared is not Any and getattr(column, "nullable", False):
                declared = typing.Optional[declared]
            default = getattr(column, "default", None)
            if default is not None and getattr(default, "is_scalar", False):
                zero = _constant(default.arg)
            else:
                zero = zero_factory(declared)
            attrs.append(RecordAttribute(
                name=prop.key,
                declared_type=declared,
                metadata=getattr(column, "info", {}) or {},
                zero=zero,
            ))
        return attrs

    def is_instance(self, obj: Any) -> bool:
        return isinstance(obj, self.record_type)

    def _allocate(self, values: dict[str, Any], fields_set: set[str]) -> Any:
        mapper: Mapper = sa.inspect(self.record_type)
        obj = mapper.class_manager.new_instance()
        for name, value in values.items():
            setattr(obj, name, value)
        return obj


# ---------------------------------------------------------------------------
# Recognition
# ---------------------------------------------------------------------------

def record_kind(obj: Any) -> RecordKind | None:
    """Kind of a record instance or record type, or None if not a record."""
    cls = obj if isinstance(obj, type) else type(obj)
    if issubclass(cls, BaseModel):
        return RecordKind.PYDANTIC if cls is not BaseModel else None
    if dataclasses.is_dataclass(cls):
        return RecordKind.DATACLASS
    if isinstance(sa.inspect(cls, raiseerr=False), Mapper):
        return RecordKind.SQLALCHEMY
    return None


def is_record_instance(obj: Any) -> bool:
    """True for record instances, False for record types and non-records."""
    if isinstance(obj, type):
        return False
    if isinstance(obj, BaseModel) or dataclasses.is_dataclass(obj):
        return True
    return isinstance(sa.inspect(obj, raiseerr=False), InstanceState)


def resolve_record_type(sample: Any) -> type:
    """Return the record type of *sample* (a record instance or type).

    Raises:
        InvalidInstanceError: *sample* is not a record.
    """
    if record_kind(sample) is None:
        raise InvalidInstanceError(
            f"Expected a dataclass, pydantic model or SQLAlchemy mapped "
            f"instance or type, got {type(sample).__name__}"
        )
    return sample if isinstance(sample, type) else type(sample)


_ADAPTERS: dict[RecordKind, type[RecordAdapter]] = {
    RecordKind.DATACLASS: DataclassAdapter,
    RecordKind.PYDANTIC: PydanticAdapter,
    RecordKind.SQLALCHEMY: SqlAlchemyAdapter,
}


def adapter_for(sample: Any) -> RecordAdapter:
    """Build the adapter for the record type of *sample*."""
    record_type = resolve_record_type(sample)
    kind = record_kind(record_type)
    return _ADAPTERS[kind](record_type)
