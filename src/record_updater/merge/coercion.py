"""Closed, explicit conversion table.

Decides whether a dynamically typed value may be stored in a field of a
given declared type, and converts it when a defined coercion exists.
Both decisions are compiled per declared type at schema-build time so
the merge loop never inspects annotations.

Accepted pairs, in order:

1. identical type: the value already satisfies the declared type
   (structurally, including container element types);
2. numeric widening: ``int -> float``, ``int -> Decimal``,
   ``float -> Decimal``;
3. enum lookup: a raw value naming an ``Enum`` member by value;
4. pairs registered explicitly with ``ConversionTable.register``.

Every other pair is rejected, as is a value whose conversion raises
``ArithmeticError``, ``ValueError`` or ``TypeError``.  There is no string parsing (``"25"`` never
becomes an ``int``) and no number-to-string conversion.  ``bool`` is never
accepted where a number is declared.
"""

from __future__ import annotations

import logging
import types
import typing
from collections import abc as cabc
from decimal import Decimal
from enum import Enum
from typing import Any, Callable, Union

logger = logging.getLogger(__name__)

Checker = Callable[[Any], bool]
Converter = Callable[[Any], Any]


class _Unconvertible:
    _instance: _Unconvertible | None = None

    def __new__(cls) -> _Unconvertible:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "UNCONVERTIBLE"

    def __bool__(self) -> bool:
        return False


UNCONVERTIBLE: Any = _Unconvertible()
"""Returned by compiled converters when no conversion applies."""

_NONE_TYPE = type(None)
_NUMBERS = (int, float, complex, Decimal)

_SEQUENCE_ORIGINS = (list, set, frozenset, cabc.Sequence, cabc.MutableSequence,
                     cabc.Set, cabc.MutableSet, cabc.Collection, cabc.Iterable)
_MAPPING_ORIGINS = (dict, cabc.Mapping, cabc.MutableMapping)


def _accept_all(value: Any) -> bool:
    return True


def _float_to_decimal(value: float) -> Decimal:
    return Decimal(str(value))


def _instance_checker(cls: type) -> Checker:
    if cls is bool:
        return lambda v: isinstance(v, bool)
    if cls in _NUMBERS:
        return lambda v: isinstance(v, cls) and not isinstance(v, bool)
    return lambda v: isinstance(v, cls)


def compile_checker(tp: Any) -> Checker:
    """Compile a structural ``isinstance`` check for the declared type *tp*."""
    if tp is Any or tp is object:
        return _accept_all
    if tp is None or tp is _NONE_TYPE:
        return lambda v: v is None
    if isinstance(tp, (str, typing.ForwardRef, typing.TypeVar)):
        return _accept_all

    supertype = getattr(tp, "__supertype__", None)  # typing.NewType
    if supertype is not None:
        return compile_checker(supertype)

    origin = typing.get_origin(tp)
    args = typing.get_args(tp)

    if origin is typing.Annotated:
        return compile_checker(args[0])

    if origin is Union or origin is types.UnionType:
        members = [compile_checker(arg) for arg in args]
        return lambda v: any(check(v) for check in members)

    if origin is typing.Literal:
        allowed = args
        return lambda v: any(v == a and type(v) is type(a) for a in allowed)

    if origin is tuple:
        if len(args) == 2 and args[1] is Ellipsis:
            item = compile_checker(args[0])
            return lambda v: isinstance(v, tuple) and all(item(x) for x in v)
        if args == ((),):  # tuple[()]
            return lambda v: v == ()
        if args:
            items = [compile_checker(arg) for arg in args]
            return lambda v: (
                isinstance(v, tuple)
                and len(v) == len(items)
                and all(check(x) for check, x in zip(items, v))
            )
        return lambda v: isinstance(v, tuple)

    if origin in _MAPPING_ORIGINS:
        if args:
            key_check = compile_checker(args[0])
            value_check = compile_checker(args[1])
            return lambda v: isinstance(v, origin) and all(
                key_check(k) and value_check(x) for k, x in v.items()
            )
        return lambda v: isinstance(v, origin)

    if origin in _SEQUENCE_ORIGINS:
        if args:
            item = compile_checker(args[0])
            if origin in (cabc.Sequence, cabc.Collection, cabc.Iterable):
                # A str is a Sequence[str] but never a useful field value for one
                return lambda v: (
                    isinstance(v, origin)
                    and not isinstance(v, (str, bytes))
                    and all(item(x) for x in v)
                )
            return lambda v: isinstance(v, origin) and all(item(x) for x in v)
        return lambda v: isinstance(v, origin)

    if origin is type:
        bound = args[0] if args else object
        if bound is Any or not isinstance(bound, type):
            return lambda v: isinstance(v, type)
        return lambda v: isinstance(v, type) and issubclass(v, bound)

    if origin is not None:
        # Other parametrised generics: check the bare origin only
        if isinstance(origin, type):
            return _instance_checker(origin)
        return _accept_all

    if isinstance(tp, type):
        return _instance_checker(tp)

    logger.debug("No checker for annotation %r, accepting any value", tp)
    return _accept_all


class ConversionTable:
    """Explicit conversion policy between value types and declared types.

    Parameters
    ----------
    numeric_widening:
        Enable ``int -> float``, ``int -> Decimal`` and ``float -> Decimal``.
    enum_lookup:
        Allow raw values to be looked up as members of an ``Enum`` field.
    """

    def __init__(
        self,
        *,
        numeric_widening: bool = True,
        enum_lookup: bool = True,
    ) -> None:
        self.numeric_widening = numeric_widening
        self.enum_lookup = enum_lookup
        self._pairs: dict[tuple[type, type], Converter] = {}
        if numeric_widening:
            self._pairs[(int, float)] = float
            self._pairs[(int, Decimal)] = Decimal
            self._pairs[(float, Decimal)] = _float_to_decimal

    @classmethod
    def from_settings(cls, settings: Any) -> ConversionTable:
        return cls(
            numeric_widening=settings.numeric_widening,
            enum_lookup=settings.enum_lookup,
        )

    def register(self, source_type: type, target_type: type, func: Converter) -> None:
        """Allow values of exactly *source_type* into *target_type* fields."""
        self._pairs[(source_type, target_type)] = func

    def pairs(self) -> list[tuple[type, type]]:
        return list(self._pairs)

    def compile(self, tp: Any) -> Converter:
        """Compile the converter for declared type *tp*.

        The returned callable yields the value to store, or
        ``UNCONVERTIBLE`` if the value cannot be stored in the field.
        """
        check = compile_checker(tp)
        fallback = self._compile_fallback(tp)

        if fallback is None:
            def convert(value: Any) -> Any:
                return value if check(value) else UNCONVERTIBLE
        else:
            def convert(value: Any) -> Any:
                if check(value):
                    return value
                return fallback(value)

        return convert

    def _compile_fallback(self, tp: Any) -> Converter | None:
        """Conversions tried after the identical-type check fails."""
        supertype = getattr(tp, "__supertype__", None)
        if supertype is not None:
            return self._compile_fallback(supertype)

        origin = typing.get_origin(tp)
        args = typing.get_args(tp)

        if origin is typing.Annotated:
            return self._compile_fallback(args[0])

        if origin is Union or origin is types.UnionType:
            members = [
                fallback for fallback in (self._compile_fallback(arg) for arg in args)
                if fallback is not None
            ]
            if not members:
                return None

            def convert_union(value: Any) -> Any:
                for member in members:
                    converted = member(value)
                    if converted is not UNCONVERTIBLE:
                        return converted
                return UNCONVERTIBLE

            return convert_union

        if not isinstance(tp, type):
            return None

        by_source = {src: func for (src, dst), func in self._pairs.items() if dst is tp}
        enum_cls = tp if self.enum_lookup and issubclass(tp, Enum) else None
        if not by_source and enum_cls is None:
            return None

        def convert_scalar(value: Any) -> Any:
            func = by_source.get(type(value))
            if func is not None:
                try:
                    return func(value)
                except (ArithmeticError, ValueError, TypeError):
                    # e.g. an int too large for float
                    return UNCONVERTIBLE
            if enum_cls is not None and not isinstance(value, Enum):
                try:
                    return enum_cls(value)
                except (ValueError, TypeError):
                    return UNCONVERTIBLE
            return UNCONVERTIBLE

        return convert_scalar
