"""Entity Metadata Registry.

Entities declare their mapping with :func:`entity` and ``Annotated``
markers; the registry turns a declaration into an immutable
:class:`EntityDescriptor` the first time the type is needed and keeps it
for the life of the process.

Declaring::

    @entity("orders")
    @dataclass
    class Order:
        id: Annotated[int, Identity("id")] = 0
        placed: Annotated[date | None, Column("placed_on")] = None
        customer: Annotated[Customer | None, Reference("customer_id")] = None
        lines: Annotated[list[OrderLine], Collection()] = field(default_factory=list)

    @entity("priority_orders", identity="order_id")
    @dataclass
    class PriorityOrder(Order):
        level: Annotated[int, Column("level")] = 0

``@entity`` only records the table (and, for subclasses, the label of the
inherited identity column). Descriptors are built lazily so forward
references between entity classes resolve once all of them exist.

Tags:
    metadata, registry, descriptor, entity, rowgraph
"""

from __future__ import annotations

import inspect
import threading
import types
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Annotated, Any, TypeVar, Union, get_args, get_origin, get_type_hints

from rowgraph.core.errors import MappingError, UnsupportedTypeError
from rowgraph.core.logging import get_logger
from rowgraph.mapping.translator import TypeTranslator

logger = get_logger(__name__)

T = TypeVar("T", bound=type)

_DECLARATION = "__rowgraph_entity__"


# =============================================================================
# Markers
# =============================================================================


class _Marker:
    label: str | None = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.label!r})"


class Identity(_Marker):
    """Marks the attribute mapped to the table's primary key column."""

    def __init__(self, label: str) -> None:
        self.label = label


class Column(_Marker):
    """Marks a scalar attribute mapped to a column."""

    def __init__(self, label: str) -> None:
        self.label = label


class Reference(_Marker):
    """Marks a many-to-one attribute; ``label`` is the foreign key column."""

    def __init__(self, label: str) -> None:
        self.label = label


class Collection(_Marker):
    """Marks a one-to-many ``list[Child]`` attribute."""


@dataclass(frozen=True)
class _Declaration:
    table: str
    identity_label: str | None


def entity(table: str, *, identity: str | None = None) -> Callable[[T], T]:
    """Class decorator declaring a mapped type.

    Args:
        table: Table holding this type's own columns.
        identity: For a subclass of a mapped type, the label of the identity
            column in ``table``; the identity attribute itself is the one
            declared on the root mapped ancestor.
    """

    def decorator(cls: T) -> T:
        setattr(cls, _DECLARATION, _Declaration(table, identity))
        return cls

    return decorator


def is_entity(cls: Any) -> bool:
    return isinstance(cls, type) and _DECLARATION in cls.__dict__


# =============================================================================
# Descriptors
# =============================================================================


@dataclass(frozen=True)
class AttributeDescriptor:
    """A scalar attribute (or the identity) bound to a column label."""

    name: str
    label: str
    type: Any
    inherited: bool = False


@dataclass(frozen=True)
class ReferenceDescriptor:
    """A foreign single-object attribute.

    ``key_type`` is the type of the referenced entity's identity attribute;
    foreign key values are translated to it before they are queued.
    """

    name: str
    label: str
    target: type
    key_type: Any


@dataclass(frozen=True)
class CollectionDescriptor:
    """A foreign child-collection attribute."""

    name: str
    element: type


@dataclass(frozen=True)
class EntityDescriptor:
    """Immutable mapping of one entity type."""

    entity_type: type
    table: str
    identity: AttributeDescriptor
    columns: tuple[AttributeDescriptor, ...] = ()
    references: tuple[ReferenceDescriptor, ...] = ()
    collections: tuple[CollectionDescriptor, ...] = ()
    super_entity: type | None = None

    @property
    def name(self) -> str:
        return self.entity_type.__name__

    @property
    def has_super_entity(self) -> bool:
        return self.super_entity is not None

    @property
    def identity_inherited(self) -> bool:
        return self.identity.inherited

    @property
    def all_labels(self) -> tuple[str, ...]:
        """Identity, column and reference labels in declaration order."""
        labels = [self.identity.label]
        labels.extend(c.label for c in self.columns)
        labels.extend(r.label for r in self.references)
        return tuple(dict.fromkeys(labels))

    def label_for(self, attribute: str) -> str | None:
        if self.identity.name == attribute:
            return self.identity.label
        for item in (*self.columns, *self.references):
            if item.name == attribute:
                return item.label
        return None

    def reference_to(self, target: type) -> ReferenceDescriptor | None:
        """The first reference whose target is exactly ``target``."""
        for reference in self.references:
            if reference.target is target:
                return reference
        return None

    def new_instance(self) -> Any:
        try:
            return self.entity_type()
        except Exception as e:
            raise MappingError(
                f"Cannot instantiate {self.name} without arguments", cause=e
            ).with_context(entity=self.name) from e

    def attribute_value(self, instance: Any, name: str) -> Any:
        """Read attribute ``name`` of ``instance``; a missing attribute is a ``MappingError``."""
        try:
            return getattr(instance, name)
        except AttributeError as e:
            raise MappingError(
                f"{type(instance).__name__} has no value for {name!r}", cause=e
            ).with_context(entity=self.name, table=self.table, attribute=name) from e

    def identity_value(self, instance: Any) -> Any:
        return self.attribute_value(instance, self.identity.name)


# =============================================================================
# Annotation helpers
# =============================================================================


def _unwrap_optional(hint: Any) -> Any:
    origin = get_origin(hint)
    if origin is Union or origin is types.UnionType:
        args = [a for a in get_args(hint) if a is not type(None)]
        if len(args) == 1:
            return args[0]
    return hint


def _split_annotated(hint: Any) -> tuple[Any, _Marker | None]:
    """Return ``(base type, marker)`` for an attribute hint."""
    # Optional[Annotated[...]] as produced for ``= None`` defaults on older interpreters
    hint = _unwrap_optional(hint)
    if get_origin(hint) is not Annotated:
        return hint, None
    base, *extras = get_args(hint)
    markers = [e for e in extras if isinstance(e, _Marker)]
    if not markers:
        return base, None
    if len(markers) > 1:
        raise MappingError(f"More than one mapping marker: {markers}")
    return _unwrap_optional(base), markers[0]


def _own_markers(cls: type) -> list[tuple[str, Any, _Marker]]:
    """``(attribute, base type, marker)`` for attributes declared on ``cls`` itself."""
    own = inspect.get_annotations(cls)
    if not own:
        return []
    try:
        hints = get_type_hints(cls, include_extras=True)
    except (NameError, TypeError) as e:
        raise MappingError(
            f"Cannot resolve annotations of {cls.__name__}", cause=e
        ).with_context(entity=cls.__name__) from e

    result = []
    for name in own:
        base, marker = _split_annotated(hints.get(name))
        if marker is not None:
            result.append((name, base, marker))
    return result


def _mapped_ancestors(cls: type) -> list[type]:
    """Mapped classes above ``cls``, nearest first."""
    return [base for base in cls.__mro__[1:] if is_entity(base)]


def _root_identity(cls: type) -> tuple[str, Any, str] | None:
    """``(attribute, type, label)`` of the identity declared on the root of ``cls``'s chain."""
    chain = [cls] + _mapped_ancestors(cls) if is_entity(cls) else _mapped_ancestors(cls)
    for candidate in reversed(chain):
        for name, base, marker in _own_markers(candidate):
            if isinstance(marker, Identity):
                return name, base, marker.label or ""
    return None


def _collection_element(hint: Any) -> Any:
    if get_origin(hint) in (list, Sequence):
        args = get_args(hint)
        if len(args) == 1:
            return args[0]
    return None


# =============================================================================
# Registry
# =============================================================================


class EntityRegistry:
    """Process-wide, write-once-per-type cache of entity descriptors.

    Lookups of known types take no lock. The first lookup of a type builds
    its descriptor under the registry lock; a second thread racing on the
    same type waits and then reads the cached result.
    """

    def __init__(self, translator: TypeTranslator | None = None) -> None:
        self._descriptors: dict[type, EntityDescriptor] = {}
        self._reference_keys: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._translator = translator or TypeTranslator()

    def descriptor_of(self, cls: type) -> EntityDescriptor:
        descriptor = self._descriptors.get(cls)
        if descriptor is not None:
            return descriptor
        with self._lock:
            descriptor = self._descriptors.get(cls)
            if descriptor is None:
                descriptor = self._build(cls)
                self._descriptors[cls] = descriptor
                for reference in descriptor.references:
                    self._reference_keys.setdefault(reference.label, reference.key_type)
                logger.debug(
                    "descriptor_built",
                    entity=descriptor.name,
                    table=descriptor.table,
                    columns=len(descriptor.columns),
                    references=len(descriptor.references),
                    collections=len(descriptor.collections),
                    inherited_identity=descriptor.identity_inherited,
                )
            return descriptor

    def __contains__(self, cls: type) -> bool:
        return cls in self._descriptors

    def __len__(self) -> int:
        return len(self._descriptors)

    def inheritance_chain(self, cls: type) -> tuple[EntityDescriptor, ...]:
        """Descriptors sharing ``cls``'s identity value, most derived first."""
        chain = [self.descriptor_of(cls)]
        while chain[-1].identity_inherited and chain[-1].super_entity is not None:
            chain.append(self.descriptor_of(chain[-1].super_entity))
        return tuple(chain)

    def clear(self) -> None:
        """Forget every descriptor (for testing)."""
        with self._lock:
            self._descriptors.clear()
            self._reference_keys.clear()

    # -- building ----------------------------------------------------------

    def _build(self, cls: type) -> EntityDescriptor:
        if not is_entity(cls):
            name = getattr(cls, "__name__", repr(cls))
            raise MappingError(f"{name} is not a mapped entity").with_context(entity=name)

        declaration: _Declaration = cls.__dict__[_DECLARATION]
        identity: AttributeDescriptor | None = None
        columns: list[AttributeDescriptor] = []
        references: list[ReferenceDescriptor] = []
        collections: list[CollectionDescriptor] = []

        for name, base, marker in _own_markers(cls):
            if isinstance(marker, Identity):
                if identity is not None:
                    raise MappingError(
                        f"{cls.__name__} declares more than one identity"
                    ).with_context(entity=cls.__name__, label=marker.label)
                self._check_scalar(cls, name, base)
                identity = AttributeDescriptor(name, marker.label or "", base)
            elif isinstance(marker, Column):
                self._check_scalar(cls, name, base)
                columns.append(AttributeDescriptor(name, marker.label or "", base))
            elif isinstance(marker, Reference):
                references.append(self._reference(cls, name, base, marker))
            elif isinstance(marker, Collection):
                collections.append(self._collection(cls, name, base))

        ancestors = _mapped_ancestors(cls)
        super_entity = ancestors[0] if ancestors else None

        if declaration.identity_label is not None:
            if identity is not None:
                raise MappingError(
                    f"{cls.__name__} declares its own identity and an inherited identity label"
                ).with_context(entity=cls.__name__)
            if super_entity is None:
                raise MappingError(
                    f"{cls.__name__} declares an inherited identity but has no mapped ancestor"
                ).with_context(entity=cls.__name__)
            root = _root_identity(super_entity)
            if root is None:
                raise MappingError(
                    f"No identity found on the ancestors of {cls.__name__}"
                ).with_context(entity=cls.__name__)
            identity = AttributeDescriptor(root[0], declaration.identity_label, root[1], inherited=True)

        if identity is None:
            raise MappingError(f"{cls.__name__} has no identity").with_context(
                entity=cls.__name__, table=declaration.table
            )

        return EntityDescriptor(
            entity_type=cls,
            table=declaration.table,
            identity=identity,
            columns=tuple(columns),
            references=tuple(references),
            collections=tuple(collections),
            super_entity=super_entity,
        )

    def _check_scalar(self, cls: type, name: str, base: Any) -> None:
        if not self._translator.supports(base):
            raise UnsupportedTypeError(base).with_context(entity=cls.__name__, attribute=name)

    def _reference(self, cls: type, name: str, target: Any, marker: Reference) -> ReferenceDescriptor:
        if not is_entity(target):
            raise MappingError(
                f"{cls.__name__}.{name} references {target!r}, which is not a mapped entity"
            ).with_context(entity=cls.__name__, label=marker.label)
        root = _root_identity(target)
        if root is None:
            raise MappingError(
                f"{cls.__name__}.{name} references {target.__name__}, which has no identity"
            ).with_context(entity=cls.__name__, label=marker.label)
        key_type = root[1]
        label = marker.label or ""
        known = self._reference_keys.get(label)
        if known is not None and known is not key_type:
            raise MappingError(
                f"Reference label {label!r} is declared with key type "
                f"{getattr(key_type, '__name__', key_type)} on {cls.__name__} but "
                f"{getattr(known, '__name__', known)} elsewhere"
            ).with_context(entity=cls.__name__, label=label)
        return ReferenceDescriptor(name, label, target, key_type)

    def _collection(self, cls: type, name: str, hint: Any) -> CollectionDescriptor:
        element = _collection_element(hint)
        if not is_entity(element):
            raise MappingError(
                f"{cls.__name__}.{name} must be annotated as list[<entity>]"
            ).with_context(entity=cls.__name__, attribute=name)
        if _root_identity(element) is None:
            raise MappingError(
                f"{cls.__name__}.{name} collects {element.__name__}, which has no identity"
            ).with_context(entity=cls.__name__, attribute=name)
        return CollectionDescriptor(name, element)


registry = EntityRegistry()


def descriptor_of(cls: type) -> EntityDescriptor:
    """Descriptor of ``cls`` from the process-wide registry."""
    return registry.descriptor_of(cls)


def inheritance_chain(cls: type) -> tuple[EntityDescriptor, ...]:
    return registry.inheritance_chain(cls)


def clear_registry() -> None:
    """Clear the process-wide registry (for testing)."""
    registry.clear()


__all__ = [
    "Identity",
    "Column",
    "Reference",
    "Collection",
    "entity",
    "is_entity",
    "AttributeDescriptor",
    "ReferenceDescriptor",
    "CollectionDescriptor",
    "EntityDescriptor",
    "EntityRegistry",
    "registry",
    "descriptor_of",
    "inheritance_chain",
    "clear_registry",
]
