"""rowgraph core -- the layer the mapping engine stands on.

Architecture::

    errors.py        Structured error hierarchy (RowGraphError and subclasses)
    logging.py       structlog configuration and context binding
    settings.py      RowGraphSettings (pydantic-settings, ROWGRAPH_ env prefix)
    protocols.py     Connection / Cursor protocols
    dialect.py       Positional placeholder dialects
    sqlite_conn.py   sqlite3 adapter that records executed statements
    orm.py           SQLAlchemy engine factory and Session bridge

``orm`` imports SQLAlchemy and is not re-exported here.
"""

from rowgraph.core.dialect import Dialect, available_dialects, get_dialect, register_dialect
from rowgraph.core.errors import (
    CapacityExceededError,
    ConfigError,
    DataAccessError,
    ErrorCategory,
    ErrorContext,
    MappingError,
    OrderingAmbiguityError,
    RowGraphError,
    TranslationError,
    UnknownMemberError,
    UnsupportedTypeError,
)
from rowgraph.core.logging import LogContext, configure_logging, get_logger
from rowgraph.core.protocols import Connection, Cursor
from rowgraph.core.settings import RowGraphSettings
from rowgraph.core.sqlite_conn import SqliteConnection

__all__ = [
    "Dialect",
    "available_dialects",
    "get_dialect",
    "register_dialect",
    "CapacityExceededError",
    "ConfigError",
    "DataAccessError",
    "ErrorCategory",
    "ErrorContext",
    "MappingError",
    "OrderingAmbiguityError",
    "RowGraphError",
    "TranslationError",
    "UnknownMemberError",
    "UnsupportedTypeError",
    "LogContext",
    "configure_logging",
    "get_logger",
    "Connection",
    "Cursor",
    "RowGraphSettings",
    "SqliteConnection",
]
