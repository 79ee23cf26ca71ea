"""Tests for placeholder dialects."""

from __future__ import annotations

import pytest

from rowgraph.core.dialect import (
    DB2Dialect,
    Dialect,
    MySQLDialect,
    OracleDialect,
    PostgreSQLDialect,
    SQLiteDialect,
    available_dialects,
    get_dialect,
    register_dialect,
)


class TestPlaceholders:
    @pytest.mark.parametrize(
        "dialect,one,three",
        [
            (SQLiteDialect(), "?", "?, ?, ?"),
            (PostgreSQLDialect(), "%s", "%s, %s, %s"),
            (DB2Dialect(), "?", "?, ?, ?"),
            (MySQLDialect(), "%s", "%s, %s, %s"),
            (OracleDialect(), ":1", ":1, :2, :3"),
        ],
    )
    def test_markers(self, dialect: Dialect, one: str, three: str) -> None:
        assert dialect.placeholder(0) == one
        assert dialect.placeholders(3) == three

    def test_oracle_is_numbered_by_position(self) -> None:
        assert OracleDialect().placeholder(4) == ":5"

    def test_zero_placeholders(self) -> None:
        assert SQLiteDialect().placeholders(0) == ""

    def test_protocol(self) -> None:
        assert isinstance(OracleDialect(), Dialect)
        assert isinstance(SQLiteDialect(), Dialect)


class TestRegistry:
    def test_get_by_name(self) -> None:
        assert get_dialect("sqlite").name == "sqlite"
        assert get_dialect("PostgreSQL").name == "postgresql"

    def test_postgres_alias(self) -> None:
        assert get_dialect("postgres").name == "postgresql"

    def test_unknown(self) -> None:
        with pytest.raises(ValueError, match="Unknown dialect"):
            get_dialect("informix")

    def test_register(self) -> None:
        class Named(OracleDialect):
            @property
            def name(self) -> str:
                return "custom"

        register_dialect("Custom", Named())
        assert get_dialect("custom").name == "custom"
        assert "custom" in available_dialects()
