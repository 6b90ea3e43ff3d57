"""Application service: Show Order use case (query)."""

from __future__ import annotations

from foodcoop.application.dto import OrderDTO, OrderLineDTO, SubgroupOrderDTO
from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.domain.exceptions import EntityNotFoundError
from foodcoop.domain.model.order import Order

_DATE_FORMAT = "%Y-%m-%d %H:%M UTC"


class ShowOrderHandler:

    def __init__(self, uow: AbstractUnitOfWork) -> None:
        self._uow = uow

    def handle(self, order_id: int) -> OrderDTO:
        with self._uow:
            order = self._uow.orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return to_dto(order)


def to_dto(order: Order) -> OrderDTO:
    return OrderDTO(
        id=order.id,  # type: ignore[arg-type]
        name=order.name,
        state=order.state.value,
        starts=order.starts.strftime(_DATE_FORMAT),
        ends=order.ends.strftime(_DATE_FORMAT) if order.ends else None,
        lines=[
            OrderLineDTO(
                article_id=line.article_id,
                article_name=line.article_name,
                quantity=order.quantity_for(line.article_id),
                tolerance=order.tolerance_for(line.article_id),
                units=line.units,
                fc_price=str(line.price.fc_price) if line.price else None,
            )
            for line in order.lines
        ],
        subgroups=[
            SubgroupOrderDTO(
                subgroup_id=go.subgroup_id,
                price=str(go.price),
                results={line.article_id: line.result for line in go.lines},
            )
            for go in order.subgroup_orders
        ],
        invoice_amount=str(order.invoice.net_amount) if order.invoice else None,
        foodcoop_result=(
            str(order.foodcoop_result) if order.foodcoop_result is not None else None
        ),
        comments=[
            f"{c.created_at.strftime(_DATE_FORMAT)} {c.user or '-'}: {c.text}"
            for c in order.comments
        ],
    )
