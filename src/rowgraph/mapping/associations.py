"""Association Resolution Queue.

Pending foreign-object lookups collected while rows are filled are ordered
by ``(reference label, target type, key)`` so that

* all lookups of one label run against one prepared statement (a *group*)
* equal keys pop consecutively and share a single execution

which bounds the queries of a pass to one per distinct referenced type per
distinct key, however many holders point at it::

    Orders referencing customers [7, 3, 7]
        pop (customer_id, 3)  → execute  → Customer(3)
        pop (customer_id, 7)  → execute  → Customer(7)
        pop (customer_id, 7)  → reuse    → Customer(7)   (same instance)

Keys of one group must be of one kind (numeric, text, or otherwise one
exact type); mixing kinds raises :class:`OrderingAmbiguityError`.
"""

from __future__ import annotations

import heapq
import itertools
from collections.abc import Callable
from dataclasses import dataclass
from numbers import Number
from typing import Any

from rowgraph.core.errors import MappingError, OrderingAmbiguityError
from rowgraph.core.logging import get_logger
from rowgraph.mapping.metadata import ReferenceDescriptor

logger = get_logger(__name__)

Lookup = Callable[["PendingAssociation"], Any]
LookupFactory = Callable[[ReferenceDescriptor], "Lookup | None"]

_NOTHING = object()


@dataclass
class PendingAssociation:
    """A holder waiting for the instance its reference column points at.

    ``depth`` is the graph distance of the instance to be fetched from the
    pass's base rows.
    """

    holder: Any
    key: Any
    reference: ReferenceDescriptor
    depth: int = 1


@dataclass(frozen=True)
class DrainStats:
    groups: int = 0
    executions: int = 0
    assigned: int = 0


def key_kind(key: Any) -> Any:
    """Comparison kind of ``key``: ``"numeric"``, ``"text"`` or its exact type."""
    if isinstance(key, Number):
        return "numeric"
    if isinstance(key, str):
        return "text"
    return type(key)


class _Entry:
    __slots__ = ("group", "kind", "seq", "association")

    def __init__(self, group: tuple[str, str, str], kind: Any, seq: int, association: PendingAssociation) -> None:
        self.group = group
        self.kind = kind
        self.seq = seq
        self.association = association

    def __lt__(self, other: _Entry) -> bool:
        if self.group != other.group:
            return self.group < other.group
        left, right = self.association.key, other.association.key
        if self.kind != other.kind:
            raise OrderingAmbiguityError(left, right)
        if left != right:
            return left < right
        return self.seq < other.seq


class AssociationQueue:
    """Priority queue of :class:`PendingAssociation` with a batched drain."""

    def __init__(self) -> None:
        self._heap: list[_Entry] = []
        self._kinds: dict[tuple[str, str, str], tuple[Any, Any]] = {}
        self._counter = itertools.count()

    def push(self, association: PendingAssociation) -> None:
        reference = association.reference
        target = reference.target
        group = (reference.label.lower(), target.__module__, target.__qualname__)
        kind = key_kind(association.key)
        known_kind, sample = self._kinds.setdefault(group, (kind, association.key))
        if known_kind != kind:
            raise OrderingAmbiguityError(sample, association.key).with_context(
                label=reference.label, entity=reference.target.__name__
            )
        heapq.heappush(self._heap, _Entry(group, kind, next(self._counter), association))

    def pop(self) -> PendingAssociation:
        return heapq.heappop(self._heap).association

    def __len__(self) -> int:
        return len(self._heap)

    def __bool__(self) -> bool:
        return bool(self._heap)

    def drain(self, lookup_factory: LookupFactory) -> DrainStats:
        """Pop every association and assign its looked-up instance.

        ``lookup_factory(reference)`` is called once per group and returns a
        ``lookup(association)`` callable, or ``None`` to skip the group (the
        referenced type is restricted). Associations pushed while draining
        are drained too.
        """
        groups = executions = assigned = 0
        current_group: tuple[str, str, str] | None = None
        lookup: Lookup | None = None
        last_key: Any = _NOTHING
        last_instance: Any = None

        while self._heap:
            entry = heapq.heappop(self._heap)
            association = entry.association

            if entry.group != current_group:
                current_group = entry.group
                lookup = lookup_factory(association.reference)
                last_key, last_instance = _NOTHING, None
                if lookup is None:
                    logger.debug("lookup_group_skipped", label=association.reference.label)
                else:
                    groups += 1
                    logger.debug(
                        "lookup_group_opened",
                        label=association.reference.label,
                        target=association.reference.target.__name__,
                    )

            if lookup is None:
                continue

            if last_key is _NOTHING or association.key != last_key:
                last_instance = lookup(association)
                last_key = association.key
                executions += 1

            try:
                setattr(association.holder, association.reference.name, last_instance)
            except (AttributeError, TypeError) as e:
                raise MappingError(
                    f"Cannot assign {association.reference.name}", cause=e
                ).with_context(label=association.reference.label) from e
            assigned += 1

        self._kinds.clear()
        return DrainStats(groups=groups, executions=executions, assigned=assigned)


__all__ = ["PendingAssociation", "AssociationQueue", "DrainStats", "key_kind"]
