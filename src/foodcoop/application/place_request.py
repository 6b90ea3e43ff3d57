"""Application service: Place Request use case.

A subgroup asks for (or changes, or withdraws) a quantity of one article
in an open order.
"""

from __future__ import annotations

from foodcoop.application.clock import Clock, SystemClock
from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.domain.exceptions import EntityNotFoundError


class PlaceRequestHandler:

    def __init__(self, uow: AbstractUnitOfWork, clock: Clock | None = None) -> None:
        self._uow = uow
        self._clock = clock or SystemClock()

    def handle(
        self,
        order_id: int,
        subgroup_id: str,
        article_id: str,
        quantity: int,
        tolerance: int = 0,
        actor: str | None = None,
    ) -> None:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")
            order.place_request(
                subgroup_id, article_id, quantity, tolerance, self._clock.now(), actor
            )
            self._uow.orders.save(order)
            self._uow.commit()
