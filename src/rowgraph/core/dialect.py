"""Positional placeholder dialects.

The only SQL that varies between the supported drivers in rowgraph is the
parameter placeholder, so a ``Dialect`` here is nothing more than that.

    ┌──────────┐ ┌──────────────┐ ┌────────┐ ┌────────┐ ┌──────────┐
    │ SQLite   │ │ PostgreSQL   │ │  DB2   │ │ MySQL  │ │  Oracle  │
    │ ?, ?, ?  │ │ %s, %s, %s   │ │ ?, ?, ?│ │ %s,%s  │ │ :1, :2   │
    └──────────┘ └──────────────┘ └────────┘ └────────┘ └──────────┘

Examples:
    >>> from rowgraph.core.dialect import get_dialect
    >>> get_dialect("oracle").placeholders(3)
    ':1, :2, :3'

Tags:
    dialect, sql, placeholders, rowgraph
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable


@runtime_checkable
class Dialect(Protocol):
    """Placeholder contract."""

    @property
    def name(self) -> str:
        """Human-readable dialect name (e.g. ``'sqlite'``)."""
        ...

    def placeholder(self, index: int) -> str:
        """Single positional placeholder (0-based index).

        ``index`` is ignored by dialects that use anonymous placeholders
        (SQLite ``?``, MySQL ``%s``) but required by numbered styles
        (Oracle ``:1``).
        """
        ...

    def placeholders(self, count: int) -> str:
        """Comma-separated placeholder list."""
        ...


class _AnonymousDialect:
    """Dialect whose placeholders carry no position."""

    _name = ""
    _marker = "?"

    @property
    def name(self) -> str:
        return self._name

    def placeholder(self, index: int) -> str:  # noqa: ARG002
        return self._marker

    def placeholders(self, count: int) -> str:
        return ", ".join(self._marker for _ in range(count))

    def __repr__(self) -> str:
        return f"{type(self).__name__}()"


class SQLiteDialect(_AnonymousDialect):
    """SQLite dialect: ``?`` placeholders."""

    _name = "sqlite"


class PostgreSQLDialect(_AnonymousDialect):
    """PostgreSQL dialect: ``%s`` placeholders (psycopg2 format style)."""

    _name = "postgresql"
    _marker = "%s"


class DB2Dialect(_AnonymousDialect):
    """IBM DB2 dialect: ``?`` (qmark) placeholders."""

    _name = "db2"


class MySQLDialect(_AnonymousDialect):
    """MySQL dialect: ``%s`` placeholders (mysqlclient / PyMySQL)."""

    _name = "mysql"
    _marker = "%s"


class OracleDialect:
    """Oracle dialect: numbered ``:1`` placeholders (oracledb)."""

    @property
    def name(self) -> str:
        return "oracle"

    def placeholder(self, index: int) -> str:
        return f":{index + 1}"

    def placeholders(self, count: int) -> str:
        return ", ".join(self.placeholder(i) for i in range(count))

    def __repr__(self) -> str:
        return "OracleDialect()"


# Pre-instantiated singletons (dialects are stateless)
_DIALECTS: dict[str, Dialect] = {
    "sqlite": SQLiteDialect(),
    "postgresql": PostgreSQLDialect(),
    "postgres": PostgreSQLDialect(),  # alias
    "db2": DB2Dialect(),
    "mysql": MySQLDialect(),
    "oracle": OracleDialect(),
}


def get_dialect(db_type: str) -> Dialect:
    """Get a dialect by database type name.

    Raises:
        ValueError: If ``db_type`` is not recognised.
    """
    key = db_type.lower()
    if key not in _DIALECTS:
        raise ValueError(
            f"Unknown dialect '{db_type}'. "
            f"Supported: {sorted(set(_DIALECTS) - {'postgres'})}"
        )
    return _DIALECTS[key]


def register_dialect(name: str, dialect: Dialect) -> None:
    """Register a custom dialect implementation (third-party drivers, test doubles)."""
    _DIALECTS[name.lower()] = dialect


def available_dialects() -> list[str]:
    """Names accepted by :func:`get_dialect`."""
    return sorted(_DIALECTS)


__all__ = [
    "Dialect",
    "SQLiteDialect",
    "PostgreSQLDialect",
    "DB2Dialect",
    "MySQLDialect",
    "OracleDialect",
    "get_dialect",
    "register_dialect",
    "available_dialects",
]
