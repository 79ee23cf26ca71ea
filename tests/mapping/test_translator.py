"""Tests for the type translator."""

from __future__ import annotations

import datetime as dt
from decimal import Decimal
from uuid import UUID

import pytest

from rowgraph.core.errors import TranslationError, UnknownMemberError, UnsupportedTypeError
from rowgraph.mapping.translator import TypeTranslator
from rowgraph.mapping.types import EnumSet
from tests._support.models import Flag, Status


@pytest.fixture
def translator() -> TypeTranslator:
    return TypeTranslator()


class TestPrimitives:
    def test_null_is_none_for_every_target(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute(None, int) is None
        assert translator.to_attribute(None, EnumSet[Flag]) is None

    def test_int_from_text(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("42", int) == 42

    def test_float(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute(3, float) == 3.0

    @pytest.mark.parametrize("raw,expected", [(1, True), (0, False), ("true", True), ("0", False)])
    def test_bool(self, translator: TypeTranslator, raw: object, expected: bool) -> None:
        assert translator.to_attribute(raw, bool) is expected

    def test_decimal_from_text(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("12.50", Decimal) == Decimal("12.50")

    def test_decimal_from_float_keeps_repr(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute(0.1, Decimal) == Decimal("0.1")

    def test_str_from_bytes(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute(b"abc", str) == "abc"

    def test_bad_number_raises_translation_error(self, translator: TypeTranslator) -> None:
        with pytest.raises(TranslationError, match="int"):
            translator.to_attribute("abc", int)


class TestWellKnown:
    def test_date_from_iso_text(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("2024-03-01", dt.date) == dt.date(2024, 3, 1)

    def test_date_from_timestamp_text(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("2024-03-01 10:30:00", dt.date) == dt.date(2024, 3, 1)

    def test_datetime(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("2024-03-01T10:30:00", dt.datetime) == dt.datetime(2024, 3, 1, 10, 30)

    def test_datetime_from_date(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute(dt.date(2024, 3, 1), dt.datetime) == dt.datetime(2024, 3, 1)

    def test_time(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("08:15:00", dt.time) == dt.time(8, 15)

    def test_timedelta_from_seconds(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute(90, dt.timedelta) == dt.timedelta(seconds=90)

    def test_bytes(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute(memoryview(b"\x00\x01"), bytes) == b"\x00\x01"

    def test_uuid(self, translator: TypeTranslator) -> None:
        value = UUID("12345678-1234-5678-1234-567812345678")
        assert translator.to_attribute(str(value), UUID) == value
        assert translator.to_attribute(value.bytes, UUID) == value


class TestEnumerations:
    def test_single_value_by_member_value(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("shipped", Status) is Status.SHIPPED

    def test_unknown_single_value_is_none_when_lenient(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("lost", Status) is None

    def test_unknown_single_value_raises_when_strict(self) -> None:
        with pytest.raises(UnknownMemberError):
            TypeTranslator(strict_enums=True).to_attribute("lost", Status)

    def test_set_drops_duplicates(self, translator: TypeTranslator) -> None:
        flags = translator.to_attribute("A,B,B,C", EnumSet[Flag])
        assert flags == {Flag.A, Flag.B, Flag.C}
        assert translator.to_column(flags) == "A,B,C"

    def test_set_drops_unknown_tokens_when_lenient(self, translator: TypeTranslator) -> None:
        assert translator.to_attribute("A,Z", EnumSet[Flag]) == {Flag.A}

    def test_set_raises_on_unknown_tokens_when_strict(self) -> None:
        with pytest.raises(UnknownMemberError, match="'Z'"):
            TypeTranslator(strict_enums=True).to_attribute("A,Z", EnumSet[Flag])

    def test_empty_set(self, translator: TypeTranslator) -> None:
        flags = translator.to_attribute("", EnumSet[Flag])
        assert isinstance(flags, EnumSet)
        assert len(flags) == 0


class TestUnsupported:
    def test_unknown_target(self, translator: TypeTranslator) -> None:
        with pytest.raises(UnsupportedTypeError):
            translator.to_attribute("x", list[int])

    def test_supports(self, translator: TypeTranslator) -> None:
        assert translator.supports(Decimal)
        assert translator.supports(Status)
        assert translator.supports(EnumSet[Flag])
        assert not translator.supports(list[int])
        assert not translator.supports(object)


class TestToColumn:
    @pytest.mark.parametrize(
        "value,expected",
        [
            (None, None),
            (True, 1),
            (0, 0),
            ("x", "x"),
            (Decimal("1.5"), Decimal("1.5")),
            (Status.OPEN, "open"),
            (dt.date(2024, 3, 1), "2024-03-01"),
            (dt.timedelta(minutes=1), 60.0),
            (UUID(int=1), "00000000-0000-0000-0000-000000000001"),
        ],
    )
    def test_values(self, translator: TypeTranslator, value: object, expected: object) -> None:
        assert translator.to_column(value) == expected

    def test_set_in_declaration_order(self, translator: TypeTranslator) -> None:
        assert translator.to_column(EnumSet(Flag, [Flag.C, Flag.A])) == "A,C"

    def test_unsupported_value(self, translator: TypeTranslator) -> None:
        with pytest.raises(UnsupportedTypeError):
            translator.to_column(object())
