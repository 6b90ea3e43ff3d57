"""Application service: Create Order use case.

Resolves the selected articles against the price catalog, fills in a
default order window and lets the Order aggregate validate the rest.
"""

from __future__ import annotations

from datetime import datetime

from foodcoop.application.clock import Clock, SystemClock
from foodcoop.application.dto import OrderDTO
from foodcoop.application.show_order import to_dto
from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.domain.exceptions import EntityNotFoundError
from foodcoop.domain.model.order import STOCK_SUPPLIER_ID, Order
from foodcoop.domain.port.pricing import PriceSnapshotStore
from foodcoop.domain.port.schedule import ScheduleDefaults


class CreateOrderHandler:

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        prices: PriceSnapshotStore,
        schedule: ScheduleDefaults | None = None,
        clock: Clock | None = None,
        stock_order_name: str = "Stock",
    ) -> None:
        self._uow = uow
        self._prices = prices
        self._schedule = schedule
        self._clock = clock or SystemClock()
        self._stock_order_name = stock_order_name

    def handle(
        self,
        supplier_id: int,
        supplier_name: str | None,
        article_ids: list[str],
        actor: str | None = None,
        starts: datetime | None = None,
        ends: datetime | None = None,
    ) -> OrderDTO:
        """Create a new order in the Opened state.

        Steps:
        1. Resolve each article id to its catalog name (fail if unknown).
        2. Take missing dates from the configured schedule.
        3. Let the Order aggregate validate all business rules.
        4. Persist and return a DTO.
        """
        articles: dict[str, str] = {}
        for article_id in article_ids:
            price = self._prices.current_price(article_id)
            if price is None:
                raise EntityNotFoundError(f"Article not found: '{article_id}'")
            articles[article_id] = price.article_name

        if starts is None:
            now = self._clock.now()
            if self._schedule is not None:
                starts, suggested_ends = self._schedule.suggest_window(now)
                ends = ends or suggested_ends
            else:
                starts = now

        if supplier_id == STOCK_SUPPLIER_ID:
            supplier_name = self._stock_order_name

        order = Order.create(
            supplier_id=supplier_id,
            supplier_name=supplier_name or "",
            articles=articles,
            starts=starts,
            ends=ends,
            created_by=actor,
        )
        with self._uow:
            self._uow.orders.save(order)
            self._uow.commit()
        return to_dto(order)
