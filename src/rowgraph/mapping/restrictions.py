"""Per-caller column and class restrictions.

A :class:`Restrictions` object records, per entity type, which column labels
must not be fetched, and which types must not be fetched at all. The engine
consults it before every SELECT it builds:

* a class-restricted type is never queried; attributes that would hold it
  keep their defaults
* a column-restricted type is projected explicitly, without the restricted
  labels; the identity label is always projected

Restrictions for objects (base rows and referenced instances) and for lists
(collection children) are kept apart in :class:`ObjectSettings` and
:class:`ListSettings`, which also carry the graph-expansion flags.

Examples:
    >>> settings = ObjectSettings()
    >>> settings.restrict_columns(Customer, "name", "email")
    >>> settings.permissions_for(Customer)
    ('id',)
    >>> settings.permissions_for(Order) is None
    True
"""

from __future__ import annotations

from rowgraph.core.errors import MappingError
from rowgraph.core.logging import get_logger
from rowgraph.mapping.metadata import EntityRegistry, ReferenceDescriptor, registry as default_registry

logger = get_logger(__name__)


class Restrictions:
    """Column and class restrictions keyed by entity type."""

    def __init__(self, registry: EntityRegistry | None = None) -> None:
        self._registry = registry if registry is not None else default_registry
        self._classes: set[type] = set()
        self._columns: dict[type, frozenset[str]] = {}

    # -- restricting -------------------------------------------------------

    def restrict_class(self, cls: type) -> None:
        """Never fetch ``cls``."""
        self._classes.add(cls)

    def remove_class_restriction(self, cls: type) -> None:
        self._classes.discard(cls)

    def restrict_columns(self, cls: type, *labels: str) -> None:
        """Exclude ``labels`` from ``cls``'s projection, replacing any prior set."""
        self._columns[cls] = frozenset(label.lower() for label in labels)

    def restrict_attributes(self, cls: type, *names: str) -> None:
        """Like :meth:`restrict_columns`, naming attributes instead of labels."""
        descriptor = self._registry.descriptor_of(cls)
        labels = []
        for name in names:
            label = descriptor.label_for(name)
            if label is None:
                raise MappingError(
                    f"{descriptor.name} has no mapped attribute {name!r}"
                ).with_context(entity=descriptor.name, attribute=name)
            labels.append(label)
        self.restrict_columns(cls, *labels)

    def restrict_reverse_reference(self, child: type, holder: type) -> ReferenceDescriptor:
        """Exclude ``child``'s reference back to ``holder``; return that reference.

        Adds to the restrictions already present for ``child``.
        """
        descriptor = self._registry.descriptor_of(child)
        reverse = descriptor.reference_to(holder)
        if reverse is None:
            raise MappingError(
                f"{descriptor.name} has no reference to {holder.__name__}; "
                f"cannot resolve the collection of {holder.__name__}"
            ).with_context(entity=descriptor.name, table=descriptor.table)
        current = self._columns.get(child, frozenset())
        if reverse.label.lower() not in current:
            self._columns[child] = current | {reverse.label.lower()}
            logger.debug("reverse_reference_restricted", entity=descriptor.name, label=reverse.label)
        return reverse

    # -- resetting ---------------------------------------------------------

    def reset_restrictions_of(self, cls: type) -> None:
        self._columns.pop(cls, None)

    def reset_restrictions(self) -> None:
        """Drop every column restriction."""
        self._columns.clear()

    def reset_class_restrictions(self) -> None:
        self._classes.clear()

    def reset_all(self) -> None:
        self.reset_restrictions()
        self.reset_class_restrictions()

    # -- querying ----------------------------------------------------------

    def is_class_restricted(self, cls: type) -> bool:
        return cls in self._classes

    def has_restrictions(self, cls: type) -> bool:
        return cls in self._columns

    def permissions_for(self, cls: type) -> tuple[str, ...] | None:
        """Labels to project for ``cls``, or ``None`` when nothing is restricted."""
        excluded = self._columns.get(cls)
        if excluded is None:
            return None
        descriptor = self._registry.descriptor_of(cls)
        return tuple(
            label
            for label in descriptor.all_labels
            if label == descriptor.identity.label or label.lower() not in excluded
        )


class ObjectSettings(Restrictions):
    """Restrictions for base rows and referenced instances.

    Args:
        fill_objects: Resolve references of base rows.
        fill_sub_objects: Resolve references of referenced instances.
    """

    def __init__(
        self,
        *,
        fill_objects: bool = True,
        fill_sub_objects: bool = False,
        registry: EntityRegistry | None = None,
    ) -> None:
        super().__init__(registry)
        self.fill_objects = fill_objects
        self.fill_sub_objects = fill_sub_objects

    def __repr__(self) -> str:
        return f"ObjectSettings(fill_objects={self.fill_objects}, fill_sub_objects={self.fill_sub_objects})"


class ListSettings(Restrictions):
    """Restrictions for collection children.

    Args:
        fill_lists: Resolve collections of base rows.
        fill_sub_lists: Resolve collections of collection children and of
            referenced instances.
    """

    def __init__(
        self,
        *,
        fill_lists: bool = False,
        fill_sub_lists: bool = False,
        registry: EntityRegistry | None = None,
    ) -> None:
        super().__init__(registry)
        self.fill_lists = fill_lists
        self.fill_sub_lists = fill_sub_lists

    def __repr__(self) -> str:
        return f"ListSettings(fill_lists={self.fill_lists}, fill_sub_lists={self.fill_sub_lists})"


__all__ = ["Restrictions", "ObjectSettings", "ListSettings"]
