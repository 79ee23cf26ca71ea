"""SQLAlchemy engine factory and Connection bridge.

Lets an application that already manages a SQLAlchemy ``Session`` hand it
to rowgraph: :class:`SAConnectionBridge` satisfies
:class:`~rowgraph.core.protocols.Connection` by rewriting positional
``?`` placeholders into named ``text()`` parameters.

This module provides:

* ``create_rowgraph_engine`` -- Create a SA engine with sane defaults.
* ``SAConnectionBridge``     -- Session → ``Connection`` adapter.
* ``SAResultCursor``         -- DB-API style view over a SA ``Result``.

Tags:
    rowgraph, orm, sqlalchemy, session, engine, bridge, connection
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine as _sa_create_engine
from sqlalchemy import text
from sqlalchemy.engine import Engine, Result
from sqlalchemy.orm import Session


def create_rowgraph_engine(url: str = "sqlite://", *, echo: bool = False, **kwargs: Any) -> Engine:
    """Create a SQLAlchemy engine; SQLite engines may be shared across threads."""
    if url.startswith("sqlite"):
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    return _sa_create_engine(url, echo=echo, **kwargs)


def _named_parameters(sql: str, parameters: Sequence[Any]) -> tuple[str, dict[str, Any]]:
    """Rewrite ``?`` placeholders to ``:p0, :p1, ...``.

    Only qmark SQL is understood; a ``?`` inside a quoted literal or
    identifier is left alone.
    """
    rewritten, idx = [], 0
    quote: str | None = None
    for ch in sql:
        if quote is not None:
            if ch == quote:
                quote = None
            rewritten.append(ch)
        elif ch in ("'", '"'):
            quote = ch
            rewritten.append(ch)
        elif ch == "?":
            rewritten.append(f":p{idx}")
            idx += 1
        else:
            rewritten.append(ch)
    return "".join(rewritten), {f"p{i}": v for i, v in enumerate(parameters)}


class SAResultCursor:
    """Cursor-shaped view of a SQLAlchemy ``Result``."""

    def __init__(self, result: Result) -> None:
        self._result = result

    @property
    def description(self) -> list[tuple[Any, ...]] | None:
        if not self._result.returns_rows:
            return None
        # DB-API 2.0 description is list of 7-tuples; only name is used
        return [(k, None, None, None, None, None, None) for k in self._result.keys()]

    def fetchall(self) -> list[tuple[Any, ...]]:
        if not self._result.returns_rows:
            return []
        return [tuple(r) for r in self._result.fetchall()]

    @property
    def rowcount(self) -> int:
        return self._result.rowcount

    @property
    def lastrowid(self) -> Any:
        return getattr(self._result, "lastrowid", None)


class SAConnectionBridge:
    """Adapter that makes a SQLAlchemy ``Session`` look like ``rowgraph.core.protocols.Connection``.

    Statements must use qmark placeholders, so sessions running over the
    bridge use the ``sqlite`` or ``db2`` dialect whatever the database is.
    ``%s`` and ``:1`` markers pass through unconverted.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    def execute(self, sql: str, parameters: Sequence[Any] = ()) -> SAResultCursor:
        if parameters:
            named_sql, mapping = _named_parameters(sql, parameters)
            result = self._session.execute(text(named_sql), mapping)
        else:
            result = self._session.execute(text(sql))
        return SAResultCursor(result)

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()

    @property
    def session(self) -> Session:
        """Access the underlying SA session (e.g., for ORM queries)."""
        return self._session


__all__ = ["create_rowgraph_engine", "SAConnectionBridge", "SAResultCursor"]
