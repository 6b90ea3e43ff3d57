"""Application service: Update Order use case.

Edits the window and article selection of an open order.  Line
membership is reconciled only after validation passed, so a rejected
edit leaves the stored order untouched.
"""

from __future__ import annotations

from datetime import datetime

from foodcoop.application.dto import OrderDTO
from foodcoop.application.show_order import to_dto
from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.domain.exceptions import EntityNotFoundError
from foodcoop.domain.port.pricing import PriceSnapshotStore


class UpdateOrderHandler:

    def __init__(self, uow: AbstractUnitOfWork, prices: PriceSnapshotStore) -> None:
        self._uow = uow
        self._prices = prices

    def handle(
        self,
        order_id: int,
        actor: str | None = None,
        article_ids: list[str] | None = None,
        starts: datetime | None = None,
        ends: datetime | None = None,
        ignore_warnings: bool = False,
    ) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
            if order is None:
                raise EntityNotFoundError(f"Order #{order_id} not found")

            order.update(
                article_ids=set(article_ids) if article_ids is not None else None,
                starts=starts,
                ends=ends,
                actor=actor,
            )
            order.validate(ignore_warnings=ignore_warnings)

            existing = {line.article_id for line in order.lines}
            names: dict[str, str] = {}
            for article_id in order.selected_article_ids - existing:
                price = self._prices.current_price(article_id)
                if price is None:
                    raise EntityNotFoundError(f"Article not found: '{article_id}'")
                names[article_id] = price.article_name
            order.reconcile_lines(names)

            self._uow.orders.save(order)
            self._uow.commit()
        return to_dto(order)
