"""
Shared pytest fixtures for rowgraph tests.

This module provides:
- An in-memory SQLite connection with the schema of the test entities
- A seeded variant with customers, orders, order lines, vehicles and employees
- Session factories over those connections

Usage:
    Fixtures are auto-discovered by pytest; request them as arguments.

    def test_something(seeded, session_factory):
        session = session_factory(fill_lists=True)
"""

from __future__ import annotations

import sys
from collections.abc import Callable, Iterator
from pathlib import Path
from typing import Any

import pytest

# Ensure rowgraph package is importable without installation
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from rowgraph.core.settings import RowGraphSettings
from rowgraph.core.sqlite_conn import SqliteConnection
from rowgraph.mapping.session import Session
from tests._support.schema import SCHEMA, SEED


@pytest.fixture
def conn() -> Iterator[SqliteConnection]:
    """In-memory SQLite connection with the entity schema, no rows."""
    c = SqliteConnection(":memory:")
    c.executescript(SCHEMA)
    yield c
    c.close()


@pytest.fixture
def seeded(conn: SqliteConnection) -> SqliteConnection:
    """Schema plus seed rows; the statement log starts empty."""
    conn.executescript(SEED)
    conn.commit()
    conn.reset_log()
    return conn


@pytest.fixture
def session_factory(seeded: SqliteConnection) -> Callable[..., Session]:
    """Build sessions over the seeded connection with settings overrides."""

    def factory(**overrides: Any) -> Session:
        return Session(seeded, settings=RowGraphSettings(**overrides))

    return factory


@pytest.fixture
def session(session_factory: Callable[..., Session]) -> Session:
    return session_factory()
