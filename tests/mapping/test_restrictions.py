"""Tests for column and class restrictions."""

from __future__ import annotations

import pytest

from rowgraph.core.errors import MappingError
from rowgraph.mapping.metadata import EntityRegistry
from rowgraph.mapping.restrictions import ListSettings, ObjectSettings, Restrictions
from tests._support.models import Customer, Order, OrderLine


@pytest.fixture
def restrictions() -> Restrictions:
    return Restrictions()


class TestPermissions:
    def test_no_restriction_is_none(self, restrictions: Restrictions) -> None:
        assert restrictions.permissions_for(Customer) is None
        assert restrictions.has_restrictions(Customer) is False

    def test_restricted_columns_excluded(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(Customer, "email")
        assert restrictions.permissions_for(Customer) == ("id", "name")

    def test_everything_but_identity(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(Customer, "name", "email")
        assert restrictions.permissions_for(Customer) == ("id",)

    def test_identity_cannot_be_excluded(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(Customer, "id", "NAME")
        assert restrictions.permissions_for(Customer) == ("id", "email")

    def test_empty_restriction_projects_every_label(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(Order)
        assert restrictions.permissions_for(Order) == ("id", "placed_on", "status", "flags", "customer_id")

    def test_restricting_again_replaces(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(Customer, "name")
        restrictions.restrict_columns(Customer, "email")
        assert restrictions.permissions_for(Customer) == ("id", "name")

    def test_restrict_attributes(self, restrictions: Restrictions) -> None:
        restrictions.restrict_attributes(Order, "placed", "customer")
        assert restrictions.permissions_for(Order) == ("id", "status", "flags")

    def test_restrict_unknown_attribute(self, restrictions: Restrictions) -> None:
        with pytest.raises(MappingError, match="nickname"):
            restrictions.restrict_attributes(Customer, "nickname")

    def test_empty_private_registry_is_used(self) -> None:
        registry = EntityRegistry()
        Restrictions(registry=registry).restrict_attributes(Order, "placed")
        assert Order in registry


class TestReverseReference:
    def test_returns_reverse_reference(self, restrictions: Restrictions) -> None:
        reverse = restrictions.restrict_reverse_reference(OrderLine, Order)
        assert reverse.label == "order_id"
        assert restrictions.permissions_for(OrderLine) == ("id", "product", "quantity", "price")

    def test_adds_to_existing(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(OrderLine, "price")
        restrictions.restrict_reverse_reference(OrderLine, Order)
        assert restrictions.permissions_for(OrderLine) == ("id", "product", "quantity")

    def test_idempotent(self, restrictions: Restrictions) -> None:
        restrictions.restrict_reverse_reference(OrderLine, Order)
        restrictions.restrict_reverse_reference(OrderLine, Order)
        assert restrictions.permissions_for(OrderLine) == ("id", "product", "quantity", "price")

    def test_missing_reverse_reference(self, restrictions: Restrictions) -> None:
        with pytest.raises(MappingError, match="no reference to OrderLine"):
            restrictions.restrict_reverse_reference(Customer, OrderLine)


class TestClassRestrictions:
    def test_restrict_and_remove(self, restrictions: Restrictions) -> None:
        restrictions.restrict_class(Customer)
        assert restrictions.is_class_restricted(Customer)
        restrictions.remove_class_restriction(Customer)
        assert not restrictions.is_class_restricted(Customer)

    def test_class_and_column_restrictions_are_independent(self, restrictions: Restrictions) -> None:
        restrictions.restrict_class(Customer)
        assert restrictions.permissions_for(Customer) is None


class TestReset:
    def test_reset_one_type(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(Customer, "name")
        restrictions.restrict_columns(Order, "status")
        restrictions.reset_restrictions_of(Customer)
        assert restrictions.permissions_for(Customer) is None
        assert restrictions.has_restrictions(Order)

    def test_reset_restrictions_keeps_class_restrictions(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(Customer, "name")
        restrictions.restrict_class(Order)
        restrictions.reset_restrictions()
        assert restrictions.permissions_for(Customer) is None
        assert restrictions.is_class_restricted(Order)

    def test_reset_class_restrictions(self, restrictions: Restrictions) -> None:
        restrictions.restrict_class(Order)
        restrictions.reset_class_restrictions()
        assert not restrictions.is_class_restricted(Order)

    def test_reset_all(self, restrictions: Restrictions) -> None:
        restrictions.restrict_columns(Customer, "name")
        restrictions.restrict_class(Order)
        restrictions.reset_all()
        assert restrictions.permissions_for(Customer) is None
        assert not restrictions.is_class_restricted(Order)


class TestSettingsFlags:
    def test_object_defaults(self) -> None:
        settings = ObjectSettings()
        assert settings.fill_objects is True
        assert settings.fill_sub_objects is False

    def test_list_defaults(self) -> None:
        settings = ListSettings()
        assert settings.fill_lists is False
        assert settings.fill_sub_lists is False

    def test_separate_restriction_sets(self) -> None:
        objects, lists = ObjectSettings(), ListSettings()
        lists.restrict_columns(Customer, "email")
        assert objects.permissions_for(Customer) is None
        assert lists.permissions_for(Customer) == ("id", "name")
