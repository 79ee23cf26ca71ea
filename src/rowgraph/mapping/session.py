"""Session: one caller's connection, dialect, settings and restrictions.

A session is owned by a single caller and runs one pass at a time. It
creates :class:`~rowgraph.mapping.engine.GraphEngine` instances that share
its :class:`ObjectSettings` and :class:`ListSettings`, so restrictions set
on the session apply to every pass it runs.

Usage::

    from rowgraph.core.sqlite_conn import SqliteConnection
    from rowgraph.mapping.session import Session

    session = Session(SqliteConnection("shop.db"), settings=RowGraphSettings(fill_lists=True))
    session.object_settings.restrict_columns(Customer, "email")
    orders = session.engine(Order).run_several_rows("SELECT * FROM orders")
    session.commit()
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any, TypeVar

from rowgraph.core.dialect import Dialect, get_dialect
from rowgraph.core.errors import ConfigError, DataAccessError
from rowgraph.core.logging import get_logger
from rowgraph.core.protocols import Connection
from rowgraph.core.settings import RowGraphSettings
from rowgraph.mapping.engine import GraphEngine
from rowgraph.mapping.metadata import EntityDescriptor, EntityRegistry, registry as default_registry
from rowgraph.mapping.restrictions import ListSettings, ObjectSettings
from rowgraph.mapping.statements import StatementBuilder
from rowgraph.mapping.translator import TypeTranslator

logger = get_logger(__name__)

T = TypeVar("T")


class Session:
    """Per-caller entry point to the engine.

    Args:
        conn: Any object satisfying :class:`~rowgraph.core.protocols.Connection`.
        dialect: Dialect name or instance; defaults to ``settings.dialect``.
        settings: Defaults for the expansion flags, depth and batching.
        registry: Descriptor registry; defaults to the process-wide one.
    """

    def __init__(
        self,
        conn: Connection,
        dialect: str | Dialect | None = None,
        settings: RowGraphSettings | None = None,
        *,
        registry: EntityRegistry | None = None,
    ) -> None:
        self.conn = conn
        self.settings = settings or RowGraphSettings()
        self.registry = registry if registry is not None else default_registry

        chosen = dialect if dialect is not None else self.settings.dialect
        if isinstance(chosen, str):
            try:
                chosen = get_dialect(chosen)
            except ValueError as e:
                raise ConfigError(str(e), cause=e).with_context(dialect=chosen) from e
        self.dialect: Dialect = chosen

        self.translator = TypeTranslator(strict_enums=self.settings.strict_enums)
        self.object_settings = ObjectSettings(
            fill_objects=self.settings.fill_objects,
            fill_sub_objects=self.settings.fill_sub_objects,
            registry=self.registry,
        )
        self.list_settings = ListSettings(
            fill_lists=self.settings.fill_lists,
            fill_sub_lists=self.settings.fill_sub_lists,
            registry=self.registry,
        )

    # -- engine ------------------------------------------------------------

    def engine(self, entity_type: type[T]) -> GraphEngine[T]:
        return GraphEngine(self, entity_type)

    def statements(self, entity_type: type, *, sequence: str | None = None) -> StatementBuilder:
        """A fresh :class:`StatementBuilder` for ``entity_type``'s table."""
        return StatementBuilder(
            self.descriptor_of(entity_type),
            self.dialect,
            sequence=sequence,
            translator=self.translator,
            registry=self.registry,
        )

    def descriptor_of(self, entity_type: type) -> EntityDescriptor:
        return self.registry.descriptor_of(entity_type)

    def permissions_for(self, entity_type: type) -> tuple[str, ...] | None:
        """Projection of ``entity_type`` for base rows and referenced instances."""
        return self.object_settings.permissions_for(entity_type)

    # -- statements --------------------------------------------------------

    def execute(self, sql: str, params: Sequence[Any] = ()) -> Any:
        """Run a statement outside a pass; driver failures become ``DataAccessError``."""
        try:
            return self.conn.execute(sql, tuple(params))
        except Exception as e:
            raise DataAccessError(f"Statement failed: {e}", cause=e).with_context(sql=sql) from e

    @staticmethod
    def generated_key(cursor: Any) -> Any:
        """Identity generated by the last auto-increment INSERT on ``cursor``."""
        return getattr(cursor, "lastrowid", None)

    # -- transactions ------------------------------------------------------

    def commit(self) -> None:
        self.conn.commit()

    def rollback(self) -> None:
        self.conn.rollback()

    def __repr__(self) -> str:
        return f"Session(dialect={self.dialect.name!r}, {self.object_settings!r}, {self.list_settings!r})"


__all__ = ["Session"]
