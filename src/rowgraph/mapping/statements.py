"""Statement Builder: SQL text and parameter lists from descriptors.

Every statement works on the table of one :class:`EntityDescriptor` and
binds values through positional placeholders taken from a
:class:`~rowgraph.core.dialect.Dialect`, in the order the labels are given::

    builder = StatementBuilder(descriptor, get_dialect("sqlite"))
    builder.select(("id", "name")).where("id").build()
    # SELECT id, name FROM customers WHERE id = ?

    builder.insert(("name", "email")).build()
    # INSERT INTO customers (name, email) VALUES (?, ?)

Builders are single-use: call one of ``select`` / ``insert`` / ``update`` /
``delete``, optionally ``where`` or ``where_in``, then ``build``.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from rowgraph.core.dialect import Dialect
from rowgraph.core.errors import MappingError
from rowgraph.mapping.metadata import EntityDescriptor, EntityRegistry, registry as default_registry
from rowgraph.mapping.translator import TypeTranslator

_SELECT, _INSERT, _UPDATE, _DELETE = "select", "insert", "update", "delete"


class StatementBuilder:
    """Builds one SQL statement for an entity's table.

    Args:
        descriptor: Entity whose table the statement targets.
        dialect: Source of positional placeholders.
        sequence: Name of a database sequence generating the identity; when
            set, an INSERT renders ``<sequence>.NEXTVAL`` for the identity
            column instead of a placeholder.
        translator: Used by :meth:`insert_values` / :meth:`update_values`.
        registry: Resolves the descriptors of referenced instances when
            writing their keys; defaults to the process-wide registry.
    """

    def __init__(
        self,
        descriptor: EntityDescriptor,
        dialect: Dialect,
        *,
        sequence: str | None = None,
        translator: TypeTranslator | None = None,
        registry: EntityRegistry | None = None,
    ) -> None:
        self.descriptor = descriptor
        self.dialect = dialect
        self.sequence = sequence
        self.translator = translator or TypeTranslator()
        self.registry = registry if registry is not None else default_registry
        self._kind: str | None = None
        self._labels: tuple[str, ...] | None = None
        self._where: list[tuple[str, int]] = []

    # -- statement kinds ---------------------------------------------------

    def select(self, columns: Sequence[str] | None = None) -> StatementBuilder:
        """SELECT ``columns``, or ``*`` when ``None``.

        ``columns`` is normally the result of
        :meth:`~rowgraph.mapping.restrictions.Restrictions.permissions_for`;
        the identity label is added when missing.
        """
        self._kind = _SELECT
        if columns is None:
            self._labels = None
        else:
            identity = self.descriptor.identity.label
            labels = tuple(columns)
            self._labels = labels if identity in labels else (identity, *labels)
        return self

    def insert(self, labels: Sequence[str]) -> StatementBuilder:
        self._kind = _INSERT
        self._labels = tuple(labels)
        return self

    def update(self, labels: Sequence[str]) -> StatementBuilder:
        self._kind = _UPDATE
        self._labels = tuple(labels)
        return self

    def delete(self) -> StatementBuilder:
        self._kind = _DELETE
        self._labels = ()
        return self

    # -- conditions --------------------------------------------------------

    def where(self, *labels: str) -> StatementBuilder:
        """Add ``label = ?`` conditions, joined with AND."""
        self._where.extend((label, 1) for label in labels)
        return self

    def where_in(self, label: str, count: int) -> StatementBuilder:
        """Add a ``label IN (?, ...)`` condition with ``count`` placeholders."""
        if count < 1:
            raise ValueError("IN condition needs at least one value")
        self._where.append((label, count))
        return self

    # -- rendering ---------------------------------------------------------

    def build(self) -> str:
        if self._kind is None:
            raise MappingError("No statement kind chosen").with_context(entity=self.descriptor.name)

        table = self.descriptor.table
        labels = self._labels or ()

        if self._kind == _SELECT:
            projection = ", ".join(labels) if self._labels is not None else "*"
            sql = f"SELECT {projection} FROM {table}"
            index = 0
        elif self._kind == _INSERT:
            if not labels:
                raise MappingError("INSERT without columns").with_context(entity=self.descriptor.name, table=table)
            values, index = [], 0
            for label in labels:
                if self.sequence and label == self.descriptor.identity.label:
                    values.append(f"{self.sequence}.NEXTVAL")
                else:
                    values.append(self.dialect.placeholder(index))
                    index += 1
            return f"INSERT INTO {table} ({', '.join(labels)}) VALUES ({', '.join(values)})"
        elif self._kind == _UPDATE:
            if not labels:
                raise MappingError("UPDATE without columns").with_context(entity=self.descriptor.name, table=table)
            assignments = [f"{label} = {self.dialect.placeholder(i)}" for i, label in enumerate(labels)]
            sql = f"UPDATE {table} SET {', '.join(assignments)}"
            index = len(labels)
        else:
            sql = f"DELETE FROM {table}"
            index = 0

        if self._where:
            conditions = []
            for label, count in self._where:
                if count == 1:
                    conditions.append(f"{label} = {self.dialect.placeholder(index)}")
                else:
                    marks = ", ".join(self.dialect.placeholder(index + i) for i in range(count))
                    conditions.append(f"{label} IN ({marks})")
                index += count
            sql += " WHERE " + " AND ".join(conditions)
        return sql

    # -- values ------------------------------------------------------------

    def _reference_key(self, referenced: Any) -> Any:
        return self.registry.descriptor_of(type(referenced)).identity_value(referenced)

    def insert_values(self, instance: Any, *, auto_increment: bool = False) -> tuple[tuple[str, ...], tuple[Any, ...]]:
        """Labels and bind values for inserting ``instance`` into this table.

        ``None`` attributes are left out. The identity is left out when
        ``auto_increment`` is set; with a sequence its label is kept (the
        statement renders ``NEXTVAL``) but no value is bound for it.
        """
        d = self.descriptor
        labels: list[str] = []
        values: list[Any] = []

        if self.sequence:
            labels.append(d.identity.label)
        elif not auto_increment:
            identity = d.identity_value(instance)
            if identity is not None:
                labels.append(d.identity.label)
                values.append(self.translator.to_column(identity))

        for column in d.columns:
            value = d.attribute_value(instance, column.name)
            if value is None:
                continue
            labels.append(column.label)
            values.append(self.translator.to_column(value))

        for reference in d.references:
            referenced = d.attribute_value(instance, reference.name)
            if referenced is None:
                continue
            labels.append(reference.label)
            values.append(self.translator.to_column(self._reference_key(referenced)))

        return tuple(labels), tuple(values)

    def update_values(self, instance: Any) -> tuple[tuple[str, ...], tuple[Any, ...]]:
        """Labels and bind values for ``UPDATE ... WHERE <identity> = ?``.

        Every column and reference is written, ``None`` as NULL; the identity
        value comes last, for the WHERE clause.
        """
        d = self.descriptor
        labels: list[str] = []
        values: list[Any] = []
        for column in d.columns:
            labels.append(column.label)
            values.append(self.translator.to_column(d.attribute_value(instance, column.name)))
        for reference in d.references:
            referenced = d.attribute_value(instance, reference.name)
            labels.append(reference.label)
            values.append(None if referenced is None else self.translator.to_column(self._reference_key(referenced)))
        values.append(self.translator.to_column(d.identity_value(instance)))
        return tuple(labels), tuple(values)


__all__ = ["StatementBuilder"]
