"""Tests for the SQLAlchemy bridge: the engine runs unchanged over an ORM session."""

from __future__ import annotations

from collections.abc import Iterator

import pytest
from sqlalchemy.orm import Session as SASession

from rowgraph.core.orm import SAConnectionBridge, _named_parameters, create_rowgraph_engine
from rowgraph.core.protocols import Connection
from rowgraph.mapping.repository import EntityRepository
from rowgraph.mapping.session import Session
from tests._support.schema import SCHEMA, SEED


@pytest.fixture
def bridge() -> Iterator[SAConnectionBridge]:
    engine = create_rowgraph_engine("sqlite://")
    with SASession(engine) as sa_session:
        b = SAConnectionBridge(sa_session)
        for statement in (SCHEMA + SEED).split(";"):
            if statement.strip():
                b.execute(statement)
        yield b
    engine.dispose()


class TestNamedParameters:
    def test_rewrites_positional_marks(self) -> None:
        sql, params = _named_parameters("SELECT * FROM t WHERE a = ? AND b IN (?, ?)", (1, 2, 3))
        assert sql == "SELECT * FROM t WHERE a = :p0 AND b IN (:p1, :p2)"
        assert params == {"p0": 1, "p1": 2, "p2": 3}

    def test_quoted_marks_are_left_alone(self) -> None:
        sql, params = _named_parameters("""SELECT '?' AS q, "a?" FROM t WHERE b = ? AND c = 'it''s?'""", (5,))
        assert sql == """SELECT '?' AS q, "a?" FROM t WHERE b = :p0 AND c = 'it''s?'"""
        assert params == {"p0": 5}

    def test_literal_mark_through_bridge(self, bridge: SAConnectionBridge) -> None:
        cursor = bridge.execute("SELECT '?' AS mark, name FROM customers WHERE id = ?", (3,))
        assert cursor.fetchall() == [("?", "Bea")]


class TestBridge:
    def test_satisfies_protocol(self, bridge: SAConnectionBridge) -> None:
        assert isinstance(bridge, Connection)

    def test_cursor_shape(self, bridge: SAConnectionBridge) -> None:
        cursor = bridge.execute("SELECT id, name FROM customers WHERE id = ?", (7,))
        assert [d[0] for d in cursor.description] == ["id", "name"]
        assert cursor.fetchall() == [(7, "Ada")]

    def test_dml_has_no_description(self, bridge: SAConnectionBridge) -> None:
        cursor = bridge.execute("UPDATE customers SET name = ? WHERE id = ?", ("Ada L.", 7))
        assert cursor.description is None
        assert cursor.fetchall() == []
        assert cursor.rowcount == 1

    def test_session_property(self, bridge: SAConnectionBridge) -> None:
        assert isinstance(bridge.session, SASession)


class TestEngineOverBridge:
    def test_references_resolve(self, bridge: SAConnectionBridge) -> None:
        from tests._support.models import Order

        orders = Session(bridge).engine(Order).run_several_rows("SELECT * FROM orders ORDER BY id")
        assert [o.customer.name for o in orders] == ["Ada", "Bea", "Ada"]
        assert orders[0].customer is orders[2].customer

    def test_inheritance_resolves(self, bridge: SAConnectionBridge) -> None:
        from tests._support.models import SportsCar

        car = Session(bridge).engine(SportsCar).run_single_row("SELECT * FROM sports_cars WHERE car_id = ?", (1,))
        assert (car.make, car.doors, car.top_speed) == ("Ferrari", 2, 320)

    def test_repository_save(self, bridge: SAConnectionBridge) -> None:
        from tests._support.models import Customer

        customers = EntityRepository(Session(bridge), Customer).use_auto_increment()
        customer = Customer(name="Cy")
        assert customers.save(customer) == 1
        assert customers.search(customer.id).name == "Cy"
