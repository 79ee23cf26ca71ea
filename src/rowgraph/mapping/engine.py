"""
Graph Materializer: rows → resolved object graphs.

One call of :meth:`GraphEngine.run_single_row`,
:meth:`GraphEngine.run_several_rows` or :meth:`GraphEngine.run_callback_per_row`
is one *pass*. A pass runs the base query, fills an instance per row, and
then works off three kinds of pending work until none is left::

    FillBase
       │
       ▼
    ┌───────────────────────────────────────────────────────────────────┐
    │ ResolveSuperclasses  one SELECT ... WHERE id IN (...) per level   │
    │ ResolveReferences    drain the association queue                  │
    │ ResolveCollections   one SELECT per holder, if any are pending    │
    │ ResolveReferences    drain what the collection children queued    │
    └───────────────────────────────────────────────────────────────────┘
       │  repeat while anything is pending
       ▼
    instances returned to the caller

Which work an instance queues depends on how it entered the graph:

    ┌──────────────────────┬───────────────────────┬─────────────────────┐
    │ instance             │ references            │ collections         │
    ├──────────────────────┼───────────────────────┼─────────────────────┤
    │ base row             │ fill_objects          │ fill_lists          │
    │ referenced instance  │ fill_sub_objects      │ fill_sub_lists      │
    │ collection child     │ fill_objects          │ fill_sub_lists      │
    └──────────────────────┴───────────────────────┴─────────────────────┘

and nothing is queued for an instance further than ``max_depth`` from the
base rows. Superclass levels belong to the same node and always run.

Errors:
    rowgraph errors propagate unchanged. A driver failure during a query
    becomes :class:`DataAccessError`; a failure reading or assigning an
    attribute becomes :class:`MappingError`. Either aborts the pass.

Tags:
    engine, materializer, graph, n+1, inheritance, rowgraph
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

from rowgraph.core.errors import DataAccessError, MappingError
from rowgraph.core.logging import LogContext, get_logger
from rowgraph.mapping.associations import AssociationQueue, PendingAssociation
from rowgraph.mapping.metadata import EntityDescriptor, ReferenceDescriptor
from rowgraph.mapping.restrictions import Restrictions
from rowgraph.mapping.rows import RowSource
from rowgraph.mapping.statements import StatementBuilder

if TYPE_CHECKING:
    from rowgraph.mapping.session import Session

logger = get_logger(__name__)

T = TypeVar("T")

RowListener = Callable[[dict[str, Any], Any], None]


@dataclass
class PassStats:
    """Query counts of the last pass."""

    base_queries: int = 0
    superclass_queries: int = 0
    lookup_groups: int = 0
    lookup_executions: int = 0
    collection_queries: int = 0
    instances: int = 0

    @property
    def total_queries(self) -> int:
        return self.base_queries + self.superclass_queries + self.lookup_executions + self.collection_queries


@dataclass(frozen=True)
class _Expansion:
    references: bool
    collections: bool
    restrictions: Restrictions


@dataclass
class _SuperclassItem:
    instance: Any
    key: Any
    depth: int
    expansion: _Expansion


@dataclass
class _CollectionItem:
    instance: Any
    descriptor: EntityDescriptor
    depth: int


class GraphEngine(Generic[T]):
    """Materializes rows of one entity type, with everything they reach.

    Engines are created by :meth:`Session.engine`; they read the session's
    connection, dialect, translator, restrictions and settings.
    """

    def __init__(self, session: Session, entity_type: type[T]) -> None:
        self.session = session
        self.entity_type = entity_type
        self.descriptor = session.descriptor_of(entity_type)
        self.last_stats = PassStats()

        objects, lists = session.object_settings, session.list_settings
        self._base = _Expansion(objects.fill_objects, lists.fill_lists, objects)
        self._referenced = _Expansion(objects.fill_sub_objects, lists.fill_sub_lists, objects)
        self._child = _Expansion(objects.fill_objects, lists.fill_sub_lists, lists)
        self._max_depth = session.settings.max_depth
        self._batch_size = session.settings.superclass_batch_size

        self._references = AssociationQueue()
        self._superclasses: dict[tuple[type, Restrictions], list[_SuperclassItem]] = {}
        self._collections: list[_CollectionItem] = []
        self._stats = PassStats()

    # =========================================================================
    # Public operations
    # =========================================================================

    def run_single_row(self, sql: str, params: Sequence[Any] = ()) -> T | None:
        """Materialize the first row of ``sql``, or return ``None``."""
        instances = self._run(sql, params, single=True)
        return instances[0][1] if instances else None

    def run_several_rows(self, sql: str, params: Sequence[Any] = ()) -> list[T]:
        """Materialize every row of ``sql`` in result order."""
        return [instance for _, instance in self._run(sql, params, single=False)]

    def run_callback_per_row(
        self,
        sql: str,
        params: Sequence[Any],
        listener: RowListener,
        *,
        single: bool = False,
    ) -> int:
        """Call ``listener(row, instance)`` for each row; return how many.

        ``row`` maps lowercase column labels to raw values. Listeners run
        once the whole graph of the pass is resolved.
        """
        materialized = self._run(sql, params, single=single)
        for row, instance in materialized:
            listener(row, instance)
        return len(materialized)

    # =========================================================================
    # Pass
    # =========================================================================

    def _run(self, sql: str, params: Sequence[Any], *, single: bool) -> list[tuple[dict[str, Any], T]]:
        self._reset()
        with LogContext(entity=self.descriptor.name):
            logger.debug("pass_started", sql=sql)
            rows = self._query(sql, params)
            self._stats.base_queries += 1

            selected = rows.rows[:1] if single else rows.rows
            materialized = []
            for row in selected:
                instance = self.descriptor.new_instance()
                self._fill(instance, self.descriptor, rows, row, 0, self._base)
                materialized.append((rows.as_dict(row), instance))

            while self._pending():
                self._resolve_superclasses()
                self._resolve_references()
                if self._collections:
                    self._resolve_collections()
                    self._resolve_references()

            self.last_stats = self._stats
            logger.debug(
                "pass_completed",
                rows=len(materialized),
                instances=self._stats.instances,
                queries=self._stats.total_queries,
            )
        return materialized

    def _reset(self) -> None:
        self._references = AssociationQueue()
        self._superclasses = {}
        self._collections = []
        self._stats = PassStats()

    def _pending(self) -> bool:
        return bool(self._superclasses or self._references or self._collections)

    def _query(self, sql: str, params: Sequence[Any]) -> RowSource:
        try:
            return RowSource(self.session.conn.execute(sql, tuple(params)))
        except Exception as e:
            raise DataAccessError(f"Query failed: {e}", cause=e).with_context(sql=sql) from e

    def _builder(self, descriptor: EntityDescriptor) -> StatementBuilder:
        return StatementBuilder(
            descriptor, self.session.dialect, translator=self.session.translator, registry=self.session.registry
        )

    # =========================================================================
    # FillBase
    # =========================================================================

    def _fill(
        self,
        instance: Any,
        descriptor: EntityDescriptor,
        rows: RowSource,
        row: Sequence[Any],
        depth: int,
        expansion: _Expansion,
    ) -> None:
        """Fill one inheritance level of ``instance`` from ``row`` and queue its work."""
        translate = self.session.translator.to_attribute
        identity = descriptor.identity
        if rows.has_column(identity.label):
            _assign(instance, identity.name, translate(rows.value(row, identity.label), identity.type))
        for column in descriptor.columns:
            if rows.has_column(column.label):
                _assign(instance, column.name, translate(rows.value(row, column.label), column.type))
        if descriptor.entity_type is type(instance):
            self._stats.instances += 1

        expandable = depth < self._max_depth

        if expansion.references and expandable:
            for reference in descriptor.references:
                self._queue_reference(instance, reference, rows, row, depth + 1)

        if descriptor.identity_inherited and descriptor.super_entity is not None:
            parent = descriptor.super_entity
            if not expansion.restrictions.is_class_restricted(parent):
                key = descriptor.identity_value(instance)
                item = _SuperclassItem(instance, key, depth, expansion)
                self._superclasses.setdefault((parent, expansion.restrictions), []).append(item)

        if expansion.collections and expandable and descriptor.collections:
            self._collections.append(_CollectionItem(instance, descriptor, depth))

    def _queue_reference(
        self,
        holder: Any,
        reference: ReferenceDescriptor,
        rows: RowSource,
        row: Sequence[Any],
        depth: int,
    ) -> None:
        if not rows.has_column(reference.label):
            return
        raw = rows.value(row, reference.label)
        if raw is None:
            return
        key = self.session.translator.to_attribute(raw, reference.key_type)
        self._references.push(PendingAssociation(holder, key, reference, depth))

    # =========================================================================
    # ResolveSuperclasses
    # =========================================================================

    def _resolve_superclasses(self) -> None:
        while self._superclasses:
            level, restrictions = next(iter(self._superclasses))
            items = self._superclasses.pop((level, restrictions))
            descriptor = self.session.descriptor_of(level)
            permissions = restrictions.permissions_for(level)
            for start in range(0, len(items), self._batch_size):
                self._fill_superclass_batch(descriptor, permissions, items[start : start + self._batch_size])

    def _fill_superclass_batch(
        self,
        descriptor: EntityDescriptor,
        permissions: tuple[str, ...] | None,
        items: list[_SuperclassItem],
    ) -> None:
        to_column = self.session.translator.to_column
        keys = list(dict.fromkeys(item.key for item in items))
        sql = self._builder(descriptor).select(permissions).where_in(descriptor.identity.label, len(keys)).build()

        rows = self._query(sql, [to_column(key) for key in keys])
        self._stats.superclass_queries += 1
        logger.debug("superclass_level_fetched", level=descriptor.name, keys=len(keys), rows=len(rows))

        identity = descriptor.identity
        by_key = {}
        for row in rows:
            by_key[self.session.translator.to_attribute(rows.value(row, identity.label), identity.type)] = row

        for item in items:
            row = by_key.get(item.key)
            if row is None:
                logger.warning("superclass_row_missing", level=descriptor.name, key=item.key)
                continue
            self._fill(item.instance, descriptor, rows, row, item.depth, item.expansion)

    # =========================================================================
    # ResolveReferences
    # =========================================================================

    def _resolve_references(self) -> None:
        while self._references:
            queue, self._references = self._references, AssociationQueue()
            stats = queue.drain(self._open_lookup)
            self._stats.lookup_groups += stats.groups
            self._stats.lookup_executions += stats.executions

    def _open_lookup(self, reference: ReferenceDescriptor) -> Callable[[PendingAssociation], Any] | None:
        objects = self.session.object_settings
        target = reference.target
        if objects.is_class_restricted(target):
            return None

        descriptor = self.session.descriptor_of(target)
        sql = self._builder(descriptor).select(objects.permissions_for(target)).where(descriptor.identity.label).build()
        to_column = self.session.translator.to_column

        def lookup(association: PendingAssociation) -> Any:
            rows = self._query(sql, (to_column(association.key),))
            row = rows.first()
            if row is None:
                return None
            instance = descriptor.new_instance()
            self._fill(instance, descriptor, rows, row, association.depth, self._referenced)
            return instance

        return lookup

    # =========================================================================
    # ResolveCollections
    # =========================================================================

    def _resolve_collections(self) -> None:
        items, self._collections = self._collections, []
        groups: dict[tuple[type, str], list[_CollectionItem]] = {}
        for item in items:
            for collection in item.descriptor.collections:
                groups.setdefault((item.descriptor.entity_type, collection.name), []).append(item)

        lists = self.session.list_settings
        for (holder_type, name), holders in groups.items():
            holder_descriptor = holders[0].descriptor
            collection = next(c for c in holder_descriptor.collections if c.name == name)
            child = collection.element
            if lists.is_class_restricted(child):
                logger.debug("collection_skipped", holder=holder_type.__name__, collection=name)
                continue

            child_descriptor = self.session.descriptor_of(child)
            reverse = lists.restrict_reverse_reference(child, holder_type)
            sql = self._builder(child_descriptor).select(lists.permissions_for(child)).where(reverse.label).build()

            for holder in holders:
                key = holder_descriptor.identity_value(holder.instance)
                rows = self._query(sql, (self.session.translator.to_column(key),))
                self._stats.collection_queries += 1
                children = []
                for row in rows:
                    instance = child_descriptor.new_instance()
                    self._fill(instance, child_descriptor, rows, row, holder.depth + 1, self._child)
                    children.append(instance)
                _assign(holder.instance, name, children)
            logger.debug("collection_resolved", holder=holder_type.__name__, collection=name, holders=len(holders))


def _assign(instance: Any, name: str, value: Any) -> None:
    try:
        setattr(instance, name, value)
    except (AttributeError, TypeError) as e:
        raise MappingError(
            f"Cannot set {type(instance).__name__}.{name}", cause=e
        ).with_context(entity=type(instance).__name__, attribute=name) from e


__all__ = ["GraphEngine", "PassStats", "RowListener"]
