"""Application service: Confirm Units use case.

Records how many units the supplier (or, for stock orders, the stock)
can actually deliver for an article before the order is closed.
"""

from __future__ import annotations

from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.domain.exceptions import EntityNotFoundError


class ConfirmUnitsHandler:

    def __init__(self, uow: AbstractUnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int, units: dict[str, int | None]) -> None:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            for article_id, count in units.items():
                order.confirm_units(article_id, count)
            self._uow.orders.save(order)
            self._uow.commit()
