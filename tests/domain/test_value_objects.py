"""Unit tests for domain value objects."""

from datetime import datetime, timezone
from decimal import Decimal

import pytest

from foodcoop.domain.exceptions import ValidationError
from foodcoop.domain.model.value_objects import CatalogPrice, Money, SettlementSnapshot

AT = datetime(2024, 3, 4, 9, 0, tzinfo=timezone.utc)


# ── Money ────────────────────────────────────────────────────────────────────


class TestMoney:

    def test_creation(self):
        m = Money(Decimal("10.50"))
        assert m.amount == Decimal("10.50")
        assert m.currency == "USD"

    def test_of_factory_from_string(self):
        assert Money.of("25.99").amount == Decimal("25.99")

    def test_of_factory_rejects_garbage(self):
        with pytest.raises(ValidationError, match="Invalid money amount"):
            Money.of("ten")

    def test_float_amount_rejected(self):
        with pytest.raises(ValidationError, match="must be a Decimal"):
            Money(10.5)

    def test_negative_amounts_allowed(self):
        debit = -Money.of("12.30")
        assert debit.amount == Decimal("-12.30")
        assert str(debit) == "-$12.30"

    def test_subtraction_may_go_negative(self):
        assert Money.of("5") - Money.of("10") == Money.of("-5")

    def test_multiplication_by_int_and_decimal(self):
        assert Money.of("7.50") * 3 == Money.of("22.50")
        assert 2 * Money.of("1.25") == Money.of("2.50")
        assert Money.of("10") * Decimal("1.07") == Money.of("10.70")

    def test_multiplication_by_bool_rejected(self):
        with pytest.raises(TypeError):
            Money.of("1") * True

    def test_currency_mismatch_rejected(self):
        with pytest.raises(ValidationError, match="Cannot combine"):
            Money(Decimal("10"), "USD") + Money(Decimal("5"), "EUR")

    def test_rounded_half_up(self):
        assert Money.of("2.345").rounded() == Money.of("2.35")
        assert Money.of("-2.345").rounded() == Money.of("-2.35")

    def test_comparison_operators(self):
        assert Money.of("-1") < Money.zero()
        assert Money.of("10") >= Money.of("10")
        assert Money.zero().is_zero


# ── CatalogPrice ─────────────────────────────────────────────────────────────


class TestCatalogPrice:

    def test_negative_net_price_rejected(self):
        with pytest.raises(ValidationError, match="cannot be negative"):
            CatalogPrice("1", "Oats", Money.of("-1"))

    def test_unit_quantity_must_be_positive(self):
        with pytest.raises(ValidationError, match="Unit quantity"):
            CatalogPrice("1", "Oats", Money.of("1"), unit_quantity=0)


# ── SettlementSnapshot ───────────────────────────────────────────────────────


class TestSettlementSnapshot:

    def _snapshot(self, markup: str = "10") -> SettlementSnapshot:
        price = CatalogPrice(
            article_id="1",
            article_name="Oats",
            net_price=Money.of("2.00"),
            tax=Decimal("7"),
            deposit=Money.of("0.50"),
            unit_quantity=6,
        )
        return SettlementSnapshot.freeze(price, Decimal(markup), AT)

    def test_freeze_copies_catalog_values(self):
        snapshot = self._snapshot()
        assert snapshot.article_id == "1"
        assert snapshot.unit_quantity == 6
        assert snapshot.frozen_at == AT

    def test_gross_price_includes_deposit_and_tax(self):
        # (2.00 + 0.50) * 1.07
        assert self._snapshot().gross_price == Money.of("2.675")

    def test_fc_price_adds_markup(self):
        assert self._snapshot().fc_price == Money.of("2.9425")

    def test_markup_free_price_is_gross(self):
        snapshot = self._snapshot()
        assert snapshot.markup_free_price == snapshot.gross_price

    def test_negative_markup_rejected(self):
        with pytest.raises(ValidationError, match="markup"):
            self._snapshot(markup="-1")

    def test_snapshot_is_immutable(self):
        snapshot = self._snapshot()
        with pytest.raises(AttributeError):
            snapshot.net_price = Money.of("99")
