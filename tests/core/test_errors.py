"""Tests for the rowgraph error hierarchy."""

from __future__ import annotations

import sqlite3

import pytest

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
from tests._support.models import Status


class TestErrorContext:
    def test_empty(self) -> None:
        assert ErrorContext().to_dict() == {}

    def test_typed_fields_and_metadata(self) -> None:
        ctx = ErrorContext(entity="Order", label="customer_id", metadata={"attribute": "customer"})
        assert ctx.to_dict() == {"entity": "Order", "label": "customer_id", "attribute": "customer"}


class TestRowGraphError:
    def test_default_category(self) -> None:
        assert RowGraphError("boom").category == ErrorCategory.INTERNAL

    def test_explicit_category(self) -> None:
        assert RowGraphError("boom", category=ErrorCategory.CONFIG).category == ErrorCategory.CONFIG

    def test_with_context_sets_typed_fields(self) -> None:
        error = MappingError("No identity").with_context(entity="Order", table="orders")
        assert error.context.entity == "Order"
        assert error.context.table == "orders"

    def test_with_context_puts_unknown_keys_in_metadata(self) -> None:
        error = MappingError("bad").with_context(attribute="customer")
        assert error.context.metadata == {"attribute": "customer"}

    def test_cause_is_chained(self) -> None:
        cause = sqlite3.OperationalError("no such table: orders")
        error = DataAccessError("Query failed", cause=cause)
        assert error.cause is cause
        assert error.__cause__ is cause

    def test_to_dict(self) -> None:
        cause = ValueError("bad int")
        error = TranslationError("Cannot convert", cause=cause).with_context(label="quantity")
        assert error.to_dict() == {
            "error_type": "TranslationError",
            "message": "Cannot convert",
            "category": "TYPE",
            "context": {"label": "quantity"},
            "cause": "bad int",
        }

    def test_repr(self) -> None:
        assert repr(MappingError("x")) == "MappingError('x', category=MAPPING)"


class TestSubclasses:
    @pytest.mark.parametrize(
        "error,category",
        [
            (MappingError("x"), ErrorCategory.MAPPING),
            (TranslationError("x"), ErrorCategory.TYPE),
            (UnsupportedTypeError(list), ErrorCategory.TYPE),
            (UnknownMemberError(Status, "lost"), ErrorCategory.TYPE),
            (CapacityExceededError(64), ErrorCategory.CAPACITY),
            (DataAccessError("x"), ErrorCategory.DATABASE),
            (OrderingAmbiguityError(1, "1"), ErrorCategory.ORDERING),
            (ConfigError("x"), ErrorCategory.CONFIG),
        ],
    )
    def test_categories(self, error: RowGraphError, category: ErrorCategory) -> None:
        assert error.category == category
        assert isinstance(error, RowGraphError)

    def test_translation_family(self) -> None:
        assert issubclass(UnsupportedTypeError, TranslationError)
        assert issubclass(UnknownMemberError, TranslationError)

    def test_unsupported_type_message(self) -> None:
        error = UnsupportedTypeError(list)
        assert error.target is list
        assert str(error) == "Type list is not supported"

    def test_capacity_message(self) -> None:
        assert str(CapacityExceededError(64)) == "Maximum set size of 64 members exceeded"

    def test_ordering_message_names_both_types(self) -> None:
        message = str(OrderingAmbiguityError(7, "7"))
        assert "int" in message
        assert "str" in message
