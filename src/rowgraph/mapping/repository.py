"""Entity repository: CRUD for one mapped type over a :class:`Session`.

Reads go through the session's :class:`~rowgraph.mapping.engine.GraphEngine`,
so they resolve references, collections and superclass levels like any
other pass. Writes touch every table of the entity's inheritance chain:

    save     root level first, then each subclass level
    update   every level
    delete   most derived level first, then up to the root

Usage::

    repo = EntityRepository(session, Customer).use_auto_increment()
    customer = Customer(name="Ada")
    repo.save(customer)            # customer.id now holds the generated key
    repo.search(customer.id)
    repo.delete(customer)
"""

from __future__ import annotations

from typing import Any, Generic, TypeVar

from rowgraph.core.errors import MappingError
from rowgraph.core.logging import get_logger
from rowgraph.mapping.engine import GraphEngine
from rowgraph.mapping.session import Session

logger = get_logger(__name__)

T = TypeVar("T")


class EntityRepository(Generic[T]):
    """Data access object for ``entity_type``.

    Parameters:
        session: Session supplying connection, dialect and restrictions.
        entity_type: A type decorated with :func:`~rowgraph.mapping.metadata.entity`.
    """

    def __init__(self, session: Session, entity_type: type[T]) -> None:
        self.session = session
        self.entity_type = entity_type
        self.descriptor = session.descriptor_of(entity_type)
        self.auto_increment = False
        self.sequence: str | None = None

    def use_auto_increment(self, flag: bool = True, sequence: str | None = None) -> EntityRepository[T]:
        """Let the database generate identities on :meth:`save`.

        With ``sequence`` the INSERT renders ``<sequence>.NEXTVAL``; without
        it the identity column is left out and read back from the cursor.
        """
        self.auto_increment = flag
        self.sequence = sequence if flag else None
        return self

    @property
    def engine(self) -> GraphEngine[T]:
        return self.session.engine(self.entity_type)

    # -- reads -------------------------------------------------------------

    def _select(self) -> Any:
        return self.session.statements(self.entity_type).select(self.session.permissions_for(self.entity_type))

    def list(self) -> list[T]:
        """Every row of the entity's table."""
        return self.engine.run_several_rows(self._select().build())

    def search(self, identity: Any) -> T | None:
        """The instance whose identity is ``identity``, or ``None``."""
        sql = self._select().where(self.descriptor.identity.label).build()
        return self.engine.run_single_row(sql, (self.session.translator.to_column(identity),))

    # -- writes ------------------------------------------------------------

    def save(self, instance: T) -> int:
        """INSERT ``instance`` into every table of its chain; return rows affected."""
        chain = self.session.registry.inheritance_chain(self.entity_type)
        affected = 0
        for level, descriptor in enumerate(reversed(chain)):
            root = level == 0
            builder = self.session.statements(descriptor.entity_type, sequence=self.sequence if root else None)
            labels, values = builder.insert_values(instance, auto_increment=self.auto_increment and root)
            cursor = self.session.execute(builder.insert(labels).build(), values)
            affected += _rowcount(cursor)
            if root and self.auto_increment and self.sequence is None:
                key = self.session.generated_key(cursor)
                if key is None:
                    raise MappingError("No generated key returned").with_context(
                        entity=descriptor.name, table=descriptor.table
                    )
                identity = descriptor.identity
                setattr(instance, identity.name, self.session.translator.to_attribute(key, identity.type))
        logger.info("entity_saved", entity=self.descriptor.name, rows=affected)
        return affected

    def update(self, instance: T) -> int:
        """UPDATE every table of ``instance``'s chain by identity."""
        affected = 0
        for descriptor in self.session.registry.inheritance_chain(self.entity_type):
            builder = self.session.statements(descriptor.entity_type)
            labels, values = builder.update_values(instance)
            if not labels:
                continue
            sql = builder.update(labels).where(descriptor.identity.label).build()
            affected += _rowcount(self.session.execute(sql, values))
        logger.info("entity_updated", entity=self.descriptor.name, rows=affected)
        return affected

    def delete(self, instance: T) -> int:
        return self.delete_by_id(self.descriptor.identity_value(instance))

    def delete_by_id(self, identity: Any) -> int:
        """DELETE the rows of ``identity`` from every table of the chain."""
        key = self.session.translator.to_column(identity)
        affected = 0
        for descriptor in self.session.registry.inheritance_chain(self.entity_type):
            sql = self.session.statements(descriptor.entity_type).delete().where(descriptor.identity.label).build()
            affected += _rowcount(self.session.execute(sql, (key,)))
        logger.info("entity_deleted", entity=self.descriptor.name, identity=identity, rows=affected)
        return affected


def _rowcount(cursor: Any) -> int:
    count = getattr(cursor, "rowcount", -1)
    return count if count and count > 0 else 0


__all__ = ["EntityRepository"]
