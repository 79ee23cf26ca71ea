"""Environment-driven settings for rowgraph.

``RowGraphSettings`` holds the defaults a :class:`~rowgraph.mapping.session.Session`
starts from: the placeholder dialect, the four graph-expansion flags, the
depth bound, the superclass batch size, and enum decoding strictness.
Every field can be overridden with a ``ROWGRAPH_``-prefixed environment
variable or a ``.env`` file.

Examples:
    >>> from rowgraph.core.settings import RowGraphSettings
    >>> s = RowGraphSettings(fill_lists=True)
    >>> s.fill_objects, s.fill_lists
    (True, True)

    $ ROWGRAPH_MAX_DEPTH=2 ROWGRAPH_DIALECT=postgresql python app.py

Tags:
    settings, configuration, pydantic, environment, rowgraph
"""

from __future__ import annotations

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

_LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class RowGraphSettings(BaseSettings):
    """Defaults for sessions and materialization passes.

    Fields
    ──────
    dialect               : Placeholder dialect name (sqlite, postgresql, mysql, db2, oracle)
    fill_objects          : Resolve references of base rows
    fill_sub_objects      : Resolve references of referenced instances
    fill_lists            : Resolve collections of base rows
    fill_sub_lists        : Resolve collections of collection children
    max_depth             : Graph distance from the base rows beyond which nothing is expanded
    superclass_batch_size : Identities per ``IN (...)`` superclass query
    strict_enums          : Raise on unknown enumeration tokens instead of dropping them
    log_level             : Structlog log level, used by ``configure_logging()`` when called without one
    """

    model_config = SettingsConfigDict(
        env_prefix="ROWGRAPH_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ── SQL ──────────────────────────────────────────────────────
    dialect: str = "sqlite"

    # ── Graph expansion ──────────────────────────────────────────
    fill_objects: bool = True
    fill_sub_objects: bool = False
    fill_lists: bool = False
    fill_sub_lists: bool = False
    max_depth: int = Field(default=5, ge=0)
    superclass_batch_size: int = Field(default=500, ge=1)

    # ── Types ────────────────────────────────────────────────────
    strict_enums: bool = False

    # ── Observability ────────────────────────────────────────────
    log_level: str = "INFO"

    @field_validator("dialect")
    @classmethod
    def _known_dialect(cls, value: str) -> str:
        from rowgraph.core.dialect import available_dialects

        if value.lower() not in available_dialects():
            raise ValueError(f"unknown dialect {value!r}")
        return value.lower()

    @field_validator("log_level")
    @classmethod
    def _known_level(cls, value: str) -> str:
        if value.upper() not in _LOG_LEVELS:
            raise ValueError(f"unknown log level {value!r}")
        return value.upper()


__all__ = ["RowGraphSettings"]
