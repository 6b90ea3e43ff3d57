"""JSON-file-backed implementation of OrderRepository.

The repository works on the ``orders`` section of the store document handed
to ``load()``; the unit of work writes ``dump()`` back on commit.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from foodcoop.domain.model.order import (
    Invoice,
    Order,
    OrderComment,
    OrderLine,
    OrderState,
)
from foodcoop.domain.model.subgroup_order import SubgroupOrder, SubgroupOrderLine
from foodcoop.domain.model.value_objects import Money, SettlementSnapshot
from foodcoop.domain.repository.order_repository import OrderRepository


class JsonOrderRepository(OrderRepository):

    def __init__(self) -> None:
        self._orders: list[dict] = []

    # --- Staging --------------------------------------------------------------

    def load(self, orders: list[dict]) -> None:
        self._orders = orders

    def dump(self) -> list[dict]:
        return self._orders

    # --- OrderRepository interface --------------------------------------------

    def next_id(self) -> int:
        if not self._orders:
            return 1
        return max(o["id"] for o in self._orders) + 1

    def get_by_id(self, order_id: int) -> Order | None:
        for raw in self._orders:
            if raw["id"] == order_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[Order]:
        orders = [self._to_domain(raw) for raw in self._orders]
        return sorted(orders, key=lambda o: o.starts, reverse=True)

    def save(self, order: Order) -> None:
        if order.id is None:
            order.id = self.next_id()

        # Upsert: replace if exists, otherwise append
        for i, raw in enumerate(self._orders):
            if raw["id"] == order.id:
                self._orders[i] = self._to_raw(order)
                return
        self._orders.append(self._to_raw(order))

    # --- Serialization --------------------------------------------------------

    @classmethod
    def _to_raw(cls, order: Order) -> dict:
        return {
            "id": order.id,
            "supplier_id": order.supplier_id,
            "supplier_name": order.supplier_name,
            "state": order.state.value,
            "starts": order.starts.isoformat(),
            "ends": order.ends.isoformat() if order.ends else None,
            "selected_article_ids": sorted(order.selected_article_ids),
            "lines": [
                {
                    "article_id": line.article_id,
                    "article_name": line.article_name,
                    "units_to_order": line.units_to_order,
                    "units_confirmed": line.units_confirmed,
                    "price": cls._snapshot_to_raw(line.price),
                }
                for line in order.lines
            ],
            "subgroup_orders": [
                {
                    "subgroup_id": go.subgroup_id,
                    "price": str(go.price.amount),
                    "price_without_markup": str(go.price_without_markup.amount),
                    "updated_by": go.updated_by,
                    "lines": [
                        {
                            "article_id": line.article_id,
                            "quantity": line.quantity,
                            "tolerance": line.tolerance,
                            "requested_at": line.requested_at.isoformat(),
                            "result": line.result,
                            "price": cls._snapshot_to_raw(line.price),
                        }
                        for line in go.lines
                    ],
                }
                for go in order.subgroup_orders
            ],
            "invoice": (
                {
                    "net_amount": str(order.invoice.net_amount.amount),
                    "number": order.invoice.number,
                }
                if order.invoice
                else None
            ),
            "foodcoop_result": (
                str(order.foodcoop_result.amount)
                if order.foodcoop_result is not None
                else None
            ),
            "comments": [
                {
                    "user": c.user,
                    "text": c.text,
                    "created_at": c.created_at.isoformat(),
                }
                for c in order.comments
            ],
            "created_by": order.created_by,
            "updated_by": order.updated_by,
            "created_at": order.created_at.isoformat(),
        }

    @classmethod
    def _to_domain(cls, raw: dict) -> Order:
        lines = [
            OrderLine(
                article_id=item["article_id"],
                article_name=item["article_name"],
                price=cls._snapshot_to_domain(item["price"]),
                units_to_order=item["units_to_order"],
                units_confirmed=item.get("units_confirmed"),
            )
            for item in raw["lines"]
        ]
        subgroup_orders = [
            SubgroupOrder(
                subgroup_id=go["subgroup_id"],
                lines=[
                    SubgroupOrderLine(
                        article_id=item["article_id"],
                        quantity=item["quantity"],
                        tolerance=item["tolerance"],
                        requested_at=datetime.fromisoformat(item["requested_at"]),
                        result=item.get("result"),
                        price=cls._snapshot_to_domain(item.get("price")),
                    )
                    for item in go["lines"]
                ],
                price=Money(Decimal(go["price"])),
                price_without_markup=Money(Decimal(go["price_without_markup"])),
                updated_by=go.get("updated_by"),
            )
            for go in raw["subgroup_orders"]
        ]
        invoice = raw.get("invoice")
        result = raw.get("foodcoop_result")
        return Order(
            id=raw["id"],
            supplier_id=raw["supplier_id"],
            supplier_name=raw["supplier_name"],
            starts=datetime.fromisoformat(raw["starts"]),
            ends=datetime.fromisoformat(raw["ends"]) if raw.get("ends") else None,
            state=OrderState(raw["state"]),
            selected_article_ids=set(raw["selected_article_ids"]),
            lines=lines,
            subgroup_orders=subgroup_orders,
            invoice=(
                Invoice(
                    net_amount=Money(Decimal(invoice["net_amount"])),
                    number=invoice.get("number"),
                )
                if invoice
                else None
            ),
            foodcoop_result=Money(Decimal(result)) if result is not None else None,
            comments=[
                OrderComment(
                    user=c.get("user"),
                    text=c["text"],
                    created_at=datetime.fromisoformat(c["created_at"]),
                )
                for c in raw.get("comments", [])
            ],
            created_by=raw.get("created_by"),
            updated_by=raw.get("updated_by"),
            created_at=datetime.fromisoformat(raw["created_at"]),
        )

    @staticmethod
    def _snapshot_to_raw(snapshot: SettlementSnapshot | None) -> dict | None:
        if snapshot is None:
            return None
        return {
            "article_id": snapshot.article_id,
            "net_price": str(snapshot.net_price.amount),
            "tax": str(snapshot.tax),
            "deposit": str(snapshot.deposit.amount),
            "unit_quantity": snapshot.unit_quantity,
            "markup": str(snapshot.markup),
            "frozen_at": snapshot.frozen_at.isoformat(),
        }

    @staticmethod
    def _snapshot_to_domain(raw: dict | None) -> SettlementSnapshot | None:
        if raw is None:
            return None
        return SettlementSnapshot(
            article_id=raw["article_id"],
            net_price=Money(Decimal(raw["net_price"])),
            tax=Decimal(raw["tax"]),
            deposit=Money(Decimal(raw["deposit"])),
            unit_quantity=raw["unit_quantity"],
            markup=Decimal(raw["markup"]),
            frozen_at=datetime.fromisoformat(raw["frozen_at"]),
        )
