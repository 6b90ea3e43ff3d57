"""Application service: Attach Invoice use case."""

from __future__ import annotations

from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.domain.exceptions import EntityNotFoundError
from foodcoop.domain.model.order import Invoice
from foodcoop.domain.model.value_objects import Money


class AttachInvoiceHandler:

    def __init__(self, uow: AbstractUnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int, net_amount: str, number: str | None = None) -> None:
        """Attach the supplier invoice; profit becomes available from now on."""
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            order.attach_invoice(Invoice(net_amount=Money.of(net_amount), number=number))
            self._uow.orders.save(order)
            self._uow.commit()
