"""
Canonical protocol definitions for rowgraph.

The engine never imports a database driver. It talks to whatever object the
caller hands it through the two structural protocols below, so a raw
``sqlite3.Connection``, the bundled :class:`~rowgraph.core.sqlite_conn.SqliteConnection`
adapter, and a SQLAlchemy session wrapped in
:class:`~rowgraph.core.orm.SAConnectionBridge` are interchangeable.

Architecture:
    ::

        Connection Protocol:
        ┌────────────────────────────────────────────────────────┐
        │ execute(sql, params)   → Cursor                        │
        │ commit()               → Commit transaction            │
        │ rollback()             → Rollback transaction          │
        └────────────────────────────────────────────────────────┘

        Cursor Protocol (DB-API 2.0 subset):
        ┌────────────────────────────────────────────────────────┐
        │ description            → column labels of last SELECT  │
        │ fetchall()             → remaining rows                │
        │ rowcount               → rows touched by last DML      │
        │ lastrowid              → generated key of last INSERT  │
        └────────────────────────────────────────────────────────┘

Guardrails:
    ❌ DON'T: Keep a cursor open across another ``execute`` on the same
       connection; single-cursor adapters share state
    ✅ DO: Consume each result with ``fetchall()`` before the next statement

Tags:
    protocol, connection, cursor, database, rowgraph
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class Cursor(Protocol):
    """The part of a DB-API cursor the engine reads."""

    @property
    def description(self) -> Any:
        """Sequence of column descriptions; item ``[0]`` is the label."""
        ...

    def fetchall(self) -> list:
        """Fetch all remaining rows of the last query."""
        ...


@runtime_checkable
class Connection(Protocol):
    """
    Minimal synchronous connection interface.

    Examples:
        >>> cursor = conn.execute("SELECT * FROM orders WHERE id = ?", (1,))
        >>> rows = cursor.fetchall()
    """

    def execute(self, sql: str, params: tuple = ()) -> Any:
        """Execute SQL statement with positional parameters; return a cursor."""
        ...

    def commit(self) -> None:
        """Commit current transaction."""
        ...

    def rollback(self) -> None:
        """Rollback current transaction."""
        ...


__all__ = ["Connection", "Cursor"]
