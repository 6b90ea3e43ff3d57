"""Domain service: Order state transitions.

Each transition is planned as a pure step: it takes the current order,
works on a private copy and returns a ``TransitionOutcome`` holding the
new order together with every side effect the transition demands
(ledger postings, stock changes, statistics to refresh, notifications).
Nothing is applied here; the application layer executes the outcome
inside one unit of work, so a failure anywhere leaves the stored order
exactly as it was.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal

from foodcoop.domain.exceptions import SettlementError
from foodcoop.domain.model.order import (
    Order,
    OrderLine,
    OrderState,
    calculate_units_to_order,
)
from foodcoop.domain.model.stock_change import StockChange
from foodcoop.domain.model.value_objects import Money, SettlementSnapshot
from foodcoop.domain.port.pricing import PriceSnapshotStore
from foodcoop.domain.service.result_allocator import (
    AllocationPolicy,
    AllocationRequest,
    allocate,
)

CLOSED_EVENT = "closed_order"
FINISH_DIRECT_MESSAGE = "Order closed without delivery reconciliation"


@dataclass(frozen=True)
class LedgerPosting:
    subgroup_id: str
    amount: Money
    note: str
    actor: str | None


@dataclass(frozen=True)
class TransitionOutcome:
    order: Order
    previous_state: OrderState
    postings: tuple[LedgerPosting, ...] = ()
    stock_changes: tuple[StockChange, ...] = ()
    stats_refresh: tuple[str, ...] = ()
    notifications: tuple[str, ...] = ()

    @property
    def state(self) -> OrderState:
        return self.order.state


def transaction_note(order: Order) -> str:
    ends = order.ends.strftime("%Y-%m-%d") if order.ends else "-"
    return f"Order {order.name}, closed {ends}"


# --- Close --------------------------------------------------------------------


def plan_close(
    order: Order,
    *,
    actor: str | None,
    now: datetime,
    prices: PriceSnapshotStore,
    markup: Decimal,
    policy: AllocationPolicy | None = None,
    ignore_warnings: bool = False,
    article_ids: set[str] | None = None,
) -> TransitionOutcome:
    """OPENED -> CLOSED: freeze prices and settle every subgroup's result.

    Steps:
    1. Apply the new selection *article_ids*, if given, and validate the
       order; with *ignore_warnings* deselected articles are dropped even
       if members asked for them.
    2. Lock the window (``ends = now``) and record *actor*.
    3. Freeze the current price of every requested article.
    4. Settle units and allocate results per article.
    5. Recompute each subgroup order's price.
    """
    order.ensure_state(OrderState.OPENED, "close")
    work = copy.deepcopy(order)

    if article_ids is not None:
        work.update(article_ids=article_ids, actor=actor)
    work.validate(ignore_warnings=ignore_warnings)
    work.reconcile_lines(_names_for_new_articles(work, prices))
    work.mark_closed(now, actor)

    for line in work.lines:
        price = prices.current_price(line.article_id)
        if price is None:
            if work.has_requests_for(line.article_id):
                raise SettlementError(
                    f"No current price for ordered article '{line.article_id}'"
                )
            continue
        line.freeze_price(SettlementSnapshot.freeze(price, markup, now))

    for line in work.lines:
        _settle_units(work, line)
        requests = work.requests_for(line.article_id)
        results = allocate(
            [
                AllocationRequest(
                    subgroup_id=subgroup_id,
                    quantity=request.quantity,
                    tolerance=request.tolerance,
                    requested_at=request.requested_at,
                )
                for subgroup_id, request in requests
            ],
            work.allocation_total(line),
            policy,
        )
        for subgroup_id, request in requests:
            request.record_result(results[subgroup_id], line.price)

    for subgroup_order in work.subgroup_orders:
        subgroup_order.update_price()

    return TransitionOutcome(
        order=work,
        previous_state=order.state,
        stats_refresh=tuple(sorted(go.subgroup_id for go in work.subgroup_orders)),
        notifications=(CLOSED_EVENT,),
    )


def _names_for_new_articles(order: Order, prices: PriceSnapshotStore) -> dict[str, str]:
    existing = {line.article_id for line in order.lines}
    names = {}
    for article_id in order.selected_article_ids - existing:
        price = prices.current_price(article_id)
        if price is None:
            raise SettlementError(f"No current price for article '{article_id}'")
        names[article_id] = price.article_name
    return names


def _settle_units(order: Order, line: OrderLine) -> None:
    if line.units_confirmed is not None:
        line.units_to_order = line.units_confirmed
        return
    quantity = order.quantity_for(line.article_id)
    if order.is_stock_order:
        line.units_to_order = quantity
    elif line.price is None:
        line.units_to_order = 0
    else:
        line.units_to_order = calculate_units_to_order(
            quantity, order.tolerance_for(line.article_id), line.price.unit_quantity
        )


# --- Finish -------------------------------------------------------------------


def plan_finish(order: Order, *, actor: str | None, now: datetime) -> TransitionOutcome:
    """CLOSED -> FINISHED: charge every subgroup and settle the stock.

    Subgroup prices are recomputed from the snapshots frozen at close, so
    the charged amounts equal what ``sum(GROUPS)`` reports.  Stock orders
    decrement the stock by what was actually allotted.
    """
    order.ensure_state(OrderState.CLOSED, "finish")
    work = copy.deepcopy(order)
    note = transaction_note(work)

    postings = []
    for subgroup_order in work.subgroup_orders:
        subgroup_order.update_price()
        postings.append(
            LedgerPosting(
                subgroup_id=subgroup_order.subgroup_id,
                amount=-subgroup_order.price,
                note=note,
                actor=actor,
            )
        )

    stock_changes = []
    if work.is_stock_order:
        for line in work.lines:
            line.units_to_order = sum(
                request.result or 0 for _, request in work.requests_for(line.article_id)
            )
            line.units_confirmed = None
            stock_changes.append(
                StockChange(
                    order_id=work.id,
                    stock_article_id=line.article_id,
                    delta=-line.units_to_order,
                    created_at=now,
                )
            )

    work.mark_finished(actor)
    work.foodcoop_result = work.profit()

    return TransitionOutcome(
        order=work,
        previous_state=order.state,
        postings=tuple(postings),
        stock_changes=tuple(stock_changes),
    )


def plan_finish_direct(
    order: Order, *, actor: str | None, now: datetime
) -> TransitionOutcome:
    """CLOSED -> FINISHED without charging subgroups or touching the stock."""
    order.ensure_state(OrderState.CLOSED, "finish")
    work = copy.deepcopy(order)
    work.mark_finished(actor)
    work.add_comment(FINISH_DIRECT_MESSAGE, actor, now)
    return TransitionOutcome(order=work, previous_state=order.state)
