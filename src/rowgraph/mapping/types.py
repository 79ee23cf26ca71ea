"""Enumerated-string column types.

A single enumerated value is any :class:`enum.Enum` subclass whose member
values are the strings stored in the column::

    class Status(str, Enum):
        OPEN = "open"
        CLOSED = "closed"

A multi-value column (SQL ``SET``) maps to :class:`EnumSet`, a set of
members of one enumeration stored as a comma-joined string and capped at
64 distinct members.
"""

from __future__ import annotations

from collections.abc import Iterable
from enum import Enum
from typing import Generic, TypeVar

from rowgraph.core.errors import CapacityExceededError, UnknownMemberError

E = TypeVar("E", bound=Enum)

MAX_SET_MEMBERS = 64


def member_for(enum_type: type[E], token: str, *, strict: bool = False) -> E | None:
    """Return the member of ``enum_type`` whose value is ``token``.

    Unknown tokens give ``None``, or raise :class:`UnknownMemberError`
    when ``strict``.
    """
    for member in enum_type:
        if member.value == token:
            return member
    if strict:
        raise UnknownMemberError(enum_type, token)
    return None


class EnumSet(set, Generic[E]):
    """Set of members of one enumeration, at most 64 of them.

    Examples:
        >>> flags = EnumSet.from_csv(Flag, "A,B,B,C")
        >>> len(flags)
        3
        >>> flags.to_csv()
        'A,B,C'
    """

    def __init__(self, enum_type: type[E], members: Iterable[E] = ()) -> None:
        super().__init__()
        self.enum_type = enum_type
        for member in members:
            self.add(member)

    @classmethod
    def from_csv(cls, enum_type: type[E], values: str | None, *, strict: bool = False) -> EnumSet[E]:
        result = cls(enum_type)
        result.add_by_comma(values, strict=strict)
        return result

    def add(self, member: E) -> None:
        if not isinstance(member, self.enum_type):
            raise TypeError(f"{member!r} is not a {self.enum_type.__name__}")
        if member not in self and len(self) >= MAX_SET_MEMBERS:
            raise CapacityExceededError(MAX_SET_MEMBERS)
        super().add(member)

    def update(self, *others: Iterable[E]) -> None:
        for other in others:
            for member in other:
                self.add(member)

    def symmetric_difference_update(self, other: Iterable[E]) -> None:
        other = set(other)
        removed = other & self
        added = other - self
        if len(self) - len(removed) + len(added) > MAX_SET_MEMBERS:
            raise CapacityExceededError(MAX_SET_MEMBERS)
        for member in added:
            if not isinstance(member, self.enum_type):
                raise TypeError(f"{member!r} is not a {self.enum_type.__name__}")
        self.difference_update(removed)
        self.update(added)

    # set's in-place operators bypass add(); route them through the checks
    def __ior__(self, other: Iterable[E]) -> EnumSet[E]:
        self.update(other)
        return self

    def __ixor__(self, other: Iterable[E]) -> EnumSet[E]:
        self.symmetric_difference_update(other)
        return self

    def __iand__(self, other: Iterable[E]) -> EnumSet[E]:
        self.intersection_update(other)
        return self

    def __isub__(self, other: Iterable[E]) -> EnumSet[E]:
        self.difference_update(other)
        return self

    def add_by_comma(self, values: str | None, *, strict: bool = False) -> None:
        """Add every token of a comma-joined string.

        Empty tokens are ignored. Unknown tokens are dropped unless ``strict``.
        """
        if not values:
            return
        for token in values.split(","):
            token = token.strip()
            if not token:
                continue
            member = member_for(self.enum_type, token, strict=strict)
            if member is not None:
                self.add(member)

    def to_csv(self) -> str:
        """Comma-joined member values in declaration order, each once."""
        return ",".join(member.value for member in self.enum_type if member in self)

    def __repr__(self) -> str:
        members = ", ".join(m.name for m in self.enum_type if m in self)
        return f"EnumSet({self.enum_type.__name__}: {{{members}}})"

    def __reduce__(self):
        return (type(self), (self.enum_type, list(self)))


__all__ = ["EnumSet", "MAX_SET_MEMBERS", "member_for"]
