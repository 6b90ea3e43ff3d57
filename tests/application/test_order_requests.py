"""Integration tests for member requests, confirmed units and invoices."""

import pytest

from foodcoop.application.attach_invoice import AttachInvoiceHandler
from foodcoop.application.confirm_units import ConfirmUnitsHandler
from foodcoop.application.create_order import CreateOrderHandler
from foodcoop.application.place_request import PlaceRequestHandler
from foodcoop.application.show_balance import ShowBalanceHandler
from foodcoop.application.show_order import ShowOrderHandler
from foodcoop.domain.exceptions import EntityNotFoundError, ValidationError
from foodcoop.domain.model.value_objects import CatalogPrice, Money
from tests.fakes import FakePriceStore, FakeUnitOfWork, FixedClock


def _setup():
    clock = FixedClock()
    prices = FakePriceStore([CatalogPrice("1", "Oats", Money.of("2.00"), unit_quantity=6)])
    uow = FakeUnitOfWork()
    dto = CreateOrderHandler(uow, prices, clock=clock).handle(7, "Bio Farm", ["1"])
    return uow, clock, dto.id


class TestPlaceRequest:

    def test_request_shows_up_in_order(self):
        uow, clock, order_id = _setup()
        PlaceRequestHandler(uow, clock).handle(order_id, "g1", "1", 4, 2, actor="ann")

        dto = ShowOrderHandler(uow).handle(order_id)

        assert dto.lines[0].quantity == 4
        assert dto.lines[0].tolerance == 2
        assert dto.subgroups[0].subgroup_id == "g1"
        assert dto.subgroups[0].results == {"1": None}

    def test_request_for_unknown_order(self):
        uow, clock, _ = _setup()
        with pytest.raises(EntityNotFoundError):
            PlaceRequestHandler(uow, clock).handle(42, "g1", "1", 1)

    def test_invalid_request_not_saved(self):
        uow, clock, order_id = _setup()
        with pytest.raises(ValidationError):
            PlaceRequestHandler(uow, clock).handle(order_id, "g1", "1", -3)
        assert uow.orders.get_by_id(order_id).subgroup_orders == []


class TestConfirmUnits:

    def test_confirmed_units_stored(self):
        uow, clock, order_id = _setup()
        ConfirmUnitsHandler(uow).handle(order_id, {"1": 3})
        assert uow.orders.get_by_id(order_id).line_for("1").units_confirmed == 3

    def test_none_clears_confirmation(self):
        uow, clock, order_id = _setup()
        handler = ConfirmUnitsHandler(uow)
        handler.handle(order_id, {"1": 3})
        handler.handle(order_id, {"1": None})
        assert uow.orders.get_by_id(order_id).line_for("1").units_confirmed is None

    def test_unknown_article_rejected(self):
        uow, clock, order_id = _setup()
        with pytest.raises(ValidationError, match="not part of order"):
            ConfirmUnitsHandler(uow).handle(order_id, {"7": 1})


class TestInvoice:

    def test_attach_invoice(self):
        uow, clock, order_id = _setup()
        AttachInvoiceHandler(uow).handle(order_id, "41.70", number="R-2024-11")

        order = uow.orders.get_by_id(order_id)
        assert order.invoice.net_amount == Money.of("41.70")
        assert order.invoice.number == "R-2024-11"
        assert ShowOrderHandler(uow).handle(order_id).invoice_amount == "$41.70"

    def test_invalid_amount_rejected(self):
        uow, clock, order_id = _setup()
        with pytest.raises(ValidationError, match="Invalid money amount"):
            AttachInvoiceHandler(uow).handle(order_id, "lots")


class TestShowBalance:

    def test_unknown_subgroup_has_zero_balance(self):
        uow, clock, _ = _setup()
        assert ShowBalanceHandler(uow).handle("nobody") == Money.zero()
