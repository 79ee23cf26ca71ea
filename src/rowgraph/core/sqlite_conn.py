"""SQLite connection adapter.

Wraps a raw :class:`sqlite3.Connection` to satisfy the
:class:`~rowgraph.core.protocols.Connection` protocol, and counts the
statements it runs so callers can observe how many queries a pass issued.

Usage::

    from rowgraph.core.sqlite_conn import SqliteConnection

    conn = SqliteConnection(":memory:")
    conn.execute("CREATE TABLE t (id INTEGER)")
    conn.execute("INSERT INTO t VALUES (?)", (1,))
    rows = conn.execute("SELECT * FROM t").fetchall()
    conn.commit()
    conn.close()
"""

from __future__ import annotations

import sqlite3
from typing import Any


class SqliteConnection:
    """Adapter: ``sqlite3.Connection`` → ``Connection`` protocol.

    ``executed`` records every ``(sql, params)`` pair in order.
    """

    def __init__(self, path: str = ":memory:", *, row_factory: Any = None) -> None:
        self._conn = sqlite3.connect(path, check_same_thread=False)
        if row_factory is not None:
            self._conn.row_factory = row_factory
        self.executed: list[tuple[str, tuple]] = []

    # -- Connection protocol -----------------------------------------------

    def execute(self, sql: str, params: tuple = ()) -> Any:
        self.executed.append((sql, tuple(params)))
        return self._conn.execute(sql, params)

    def executescript(self, script: str) -> None:
        self._conn.executescript(script)

    def commit(self) -> None:
        self._conn.commit()

    def rollback(self) -> None:
        self._conn.rollback()

    def close(self) -> None:
        self._conn.close()

    # -- convenience -------------------------------------------------------

    def statements_like(self, prefix: str) -> list[tuple[str, tuple]]:
        """Executed statements whose SQL starts with ``prefix``."""
        return [entry for entry in self.executed if entry[0].startswith(prefix)]

    def reset_log(self) -> None:
        self.executed.clear()

    @property
    def raw(self) -> sqlite3.Connection:
        """Access the underlying ``sqlite3.Connection`` (e.g. for pragmas)."""
        return self._conn

    def __repr__(self) -> str:
        return f"SqliteConnection({self._conn!r})"
