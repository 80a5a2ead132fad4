"""Tests for the Entity base class and the LineItem entity."""

from __future__ import annotations

import pytest

from domain_kernel.core.errors import DomainRuleViolation
from domain_kernel.domain.entity import Entity
from domain_kernel.domain.identity import IdentityValue
from domain_kernel.domain.value_object import Money
from domain_kernel.ordering.identifiers import LineItemId, ProductId
from domain_kernel.ordering.line_item import LineItem


class Account(Entity):
    def __init__(self, entity_id: IdentityValue, owner: str, balance: int = 0) -> None:
        super().__init__(entity_id)
        self._owner = owner
        self._balance = balance

    @property
    def owner(self) -> str:
        return self._owner

    @property
    def balance(self) -> int:
        return self._balance

    def withdraw(self, amount: int) -> None:
        with self._transaction():
            self._balance -= amount
            self._owner = self._owner.upper()
            if self._balance < 0:
                raise DomainRuleViolation("account.no_overdraft", "overdrawn", self._id)


class TestIdentityEquality:
    def test_same_identity_different_attributes_are_equal(self):
        a = Account(IdentityValue.create("acc-1"), "ann", 10)
        b = Account(IdentityValue.create("acc-1"), "bob", 99)
        assert a == b
        assert hash(a) == hash(b)

    def test_different_identity_same_attributes_are_not_equal(self):
        a = Account(IdentityValue.create("acc-1"), "ann", 10)
        b = Account(IdentityValue.create("acc-2"), "ann", 10)
        assert a != b

    def test_different_entity_types_are_not_equal(self):
        account = Account(IdentityValue.create("x-1"), "ann")
        line = LineItem.create(
            ProductId.create("p1"), 1, Money.create(5), line_id=LineItemId.create("x-1")
        )
        assert account != line
        assert line != account
        assert len({account, line}) == 2

    def test_subclass_is_a_different_type(self):
        class SavingsAccount(Account):
            pass

        assert Account(IdentityValue.create("acc-1"), "ann") != SavingsAccount(
            IdentityValue.create("acc-1"), "ann"
        )

    def test_not_equal_to_non_entities(self):
        assert Account(IdentityValue.create("acc-1"), "ann") != "acc-1"

    def test_identity_is_read_only(self):
        a = Account(IdentityValue.create("acc-1"), "ann")
        with pytest.raises(AttributeError):
            a.id = IdentityValue.create("acc-2")  # type: ignore[misc]

    def test_identity_must_be_identity_value(self):
        with pytest.raises(TypeError):
            Account("acc-1", "ann")  # type: ignore[arg-type]

    def test_repr(self):
        assert repr(Account(IdentityValue.create("acc-1"), "ann")) == "Account(id='acc-1')"


class TestTransaction:
    def test_success_applies_every_change(self):
        a = Account(IdentityValue.create("acc-1"), "ann", 10)
        a.withdraw(4)
        assert a.balance == 6
        assert a.owner == "ANN"

    def test_failure_leaves_state_unchanged(self):
        a = Account(IdentityValue.create("acc-1"), "ann", 10)
        with pytest.raises(DomainRuleViolation):
            a.withdraw(11)
        assert a.balance == 10
        assert a.owner == "ann"


class TestLineItem:
    def _item(self, quantity: int = 2) -> LineItem:
        return LineItem.create(ProductId.create("p1"), quantity, Money.create(50))

    def test_create_assigns_identity(self):
        item = self._item()
        assert isinstance(item.id, LineItemId)

    def test_create_accepts_identity(self):
        item = LineItem.create(
            ProductId.create("p1"), 1, Money.create(5), line_id=LineItemId.create("l-1")
        )
        assert item.id == LineItemId.create("l-1")

    def test_subtotal(self):
        assert self._item(3).subtotal == Money.create(150)

    @pytest.mark.parametrize("quantity", [0, -1, 1.5, True, "2"])
    def test_rejects_bad_quantity(self, quantity):
        with pytest.raises(DomainRuleViolation) as exc_info:
            self._item(quantity)
        assert exc_info.value.rule == "line_item.quantity_positive"

    def test_change_quantity(self):
        item = self._item()
        item.change_quantity(5)
        assert item.quantity == 5

    def test_failed_change_keeps_quantity(self):
        item = self._item()
        with pytest.raises(DomainRuleViolation):
            item.change_quantity(0)
        assert item.quantity == 2
