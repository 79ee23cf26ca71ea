"""
Type Translator: raw column values ⇄ attribute values.

Reading dispatches on the *target* attribute type in a fixed precedence;
the first dispatcher that knows the target wins::

    ┌──────────────────────────────────────────────────────────────┐
    │ 1. primitives      bool, int, float                          │
    │ 2. decimal         Decimal                                   │
    │ 3. text            str                                       │
    │ 4. well-known      datetime, date, time, timedelta,          │
    │                    bytes, UUID                               │
    │ 5. enum value      Enum subclass (matched by member value)   │
    │ 6. enum set        EnumSet[E] (comma-joined)                 │
    └──────────────────────────────────────────────────────────────┘

A dispatcher that does not know the target returns :data:`UNHANDLED` so the
next one is tried; when none handles it :class:`UnsupportedTypeError` is
raised. SQL NULL always becomes ``None``.

Writing (:meth:`TypeTranslator.to_column`) is the reverse, driven by the
runtime type of the value.

Examples:
    >>> t = TypeTranslator()
    >>> t.to_attribute("2024-03-01", date)
    datetime.date(2024, 3, 1)
    >>> t.to_attribute("A,B,B,C", EnumSet[Flag]).to_csv()
    'A,B,C'
    >>> t.to_column(Status.OPEN)
    'open'
"""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from enum import Enum
from typing import Any, get_args, get_origin
from uuid import UUID

from rowgraph.core.errors import TranslationError, UnsupportedTypeError
from rowgraph.mapping.types import EnumSet, member_for

UNHANDLED = object()
"""Returned by a dispatcher that does not know the target type."""


def _is_enum_type(target: Any) -> bool:
    # parameterized generics such as list[int] pass isinstance(..., type) on 3.10
    return get_origin(target) is None and isinstance(target, type) and issubclass(target, Enum)


def _primitive(raw: Any, target: type) -> Any:
    if target is bool:
        if isinstance(raw, str):
            return raw.strip().lower() in ("1", "t", "true", "y", "yes")
        return bool(raw)
    if target is int:
        return int(raw)
    if target is float:
        return float(raw)
    return UNHANDLED


def _decimal(raw: Any, target: type) -> Any:
    if target is Decimal:
        if isinstance(raw, Decimal):
            return raw
        return Decimal(str(raw))
    return UNHANDLED


def _text(raw: Any, target: type) -> Any:
    if target is str:
        if isinstance(raw, (bytes, bytearray, memoryview)):
            return bytes(raw).decode("utf-8")
        return str(raw)
    return UNHANDLED


def _well_known(raw: Any, target: type) -> Any:
    # datetime before date: datetime is a date subclass
    if target is dt.datetime:
        if isinstance(raw, dt.datetime):
            return raw
        if isinstance(raw, dt.date):
            return dt.datetime(raw.year, raw.month, raw.day)
        return dt.datetime.fromisoformat(str(raw))
    if target is dt.date:
        if isinstance(raw, dt.datetime):
            return raw.date()
        if isinstance(raw, dt.date):
            return raw
        return dt.date.fromisoformat(str(raw)[:10])
    if target is dt.time:
        if isinstance(raw, dt.time):
            return raw
        if isinstance(raw, dt.datetime):
            return raw.time()
        return dt.time.fromisoformat(str(raw))
    if target is dt.timedelta:
        if isinstance(raw, dt.timedelta):
            return raw
        return dt.timedelta(seconds=float(raw))
    if target is bytes:
        if isinstance(raw, str):
            return raw.encode("utf-8")
        return bytes(raw)
    if target is UUID:
        if isinstance(raw, UUID):
            return raw
        if isinstance(raw, (bytes, bytearray)) and len(raw) == 16:
            return UUID(bytes=bytes(raw))
        return UUID(str(raw))
    return UNHANDLED


class TypeTranslator:
    """Stateless converter between column values and attribute values.

    Args:
        strict_enums: Raise :class:`~rowgraph.core.errors.UnknownMemberError`
            for tokens that name no enumeration member, instead of dropping
            them (sets) or yielding ``None`` (single values).
    """

    def __init__(self, *, strict_enums: bool = False) -> None:
        self.strict_enums = strict_enums
        self._dispatchers = (
            _primitive,
            _decimal,
            _text,
            _well_known,
            self._enum_value,
            self._enum_set,
        )

    # -- reading -----------------------------------------------------------

    def to_attribute(self, raw: Any, target: Any) -> Any:
        """Convert ``raw`` for an attribute declared as ``target``."""
        if raw is None:
            return None
        for dispatch in self._dispatchers:
            try:
                result = dispatch(raw, target)
            except TranslationError:
                raise
            except (TypeError, ValueError, ArithmeticError) as e:
                name = getattr(target, "__name__", repr(target))
                raise TranslationError(
                    f"Cannot convert {raw!r} to {name}", cause=e
                ) from e
            if result is not UNHANDLED:
                return result
        raise UnsupportedTypeError(target)

    def supports(self, target: Any) -> bool:
        """Whether some dispatcher handles ``target`` (checked at descriptor build)."""
        if target in (bool, int, float, Decimal, str, bytes, UUID):
            return True
        if target in (dt.datetime, dt.date, dt.time, dt.timedelta):
            return True
        if _is_enum_type(target):
            return True
        return self._set_member_type(target) is not None

    def _enum_value(self, raw: Any, target: Any) -> Any:
        if _is_enum_type(target):
            if isinstance(raw, target):
                return raw
            return member_for(target, str(raw), strict=self.strict_enums)
        return UNHANDLED

    def _enum_set(self, raw: Any, target: Any) -> Any:
        member_type = self._set_member_type(target)
        if member_type is None:
            return UNHANDLED
        if isinstance(raw, EnumSet):
            return raw
        return EnumSet.from_csv(member_type, str(raw), strict=self.strict_enums)

    @staticmethod
    def _set_member_type(target: Any) -> type[Enum] | None:
        if get_origin(target) is EnumSet:
            args = get_args(target)
            if args and _is_enum_type(args[0]):
                return args[0]
        return None

    # -- writing -----------------------------------------------------------

    def to_column(self, value: Any) -> Any:
        """Convert an attribute value into a bindable parameter."""
        if value is None:
            return None
        if isinstance(value, EnumSet):
            return value.to_csv()
        if isinstance(value, Enum):
            return value.value
        if isinstance(value, bool):
            return int(value)
        if isinstance(value, (int, float, str, bytes, Decimal)):
            return value
        if isinstance(value, (dt.datetime, dt.date, dt.time)):
            return value.isoformat()
        if isinstance(value, dt.timedelta):
            return value.total_seconds()
        if isinstance(value, UUID):
            return str(value)
        raise UnsupportedTypeError(type(value))


__all__ = ["TypeTranslator", "UNHANDLED"]
