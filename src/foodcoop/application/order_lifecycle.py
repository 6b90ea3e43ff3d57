"""Application service: Order Lifecycle.

The only component allowed to advance an order's state.  Each transition
is planned by the domain (``plan_close``/``plan_finish``/...) and the
resulting outcome is applied inside one unit of work:

    lock order -> load -> plan -> refresh stats / post ledger / adjust stock
    -> save order -> commit -> notify (best effort)

Any failure before the commit rolls back the order, the ledger and the
stock together; the order keeps its previous state and can be retried.
The stats updater must stage its writes in the same unit of work
(``JsonUnitOfWork.stats``) for a failed close to leave it untouched.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from datetime import datetime
from decimal import Decimal

from foodcoop.application.clock import Clock, SystemClock
from foodcoop.application.order_locks import OrderLocks
from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.domain.exceptions import (
    EntityNotFoundError,
    LedgerPostingFailed,
    StockAdjustmentFailed,
)
from foodcoop.domain.model.order import Order, SumKind
from foodcoop.domain.model.value_objects import Money, SettlementSnapshot
from foodcoop.domain.port.notifications import NotificationDispatcher, SubgroupStatsUpdater
from foodcoop.domain.port.pricing import PriceSnapshotStore
from foodcoop.domain.service.order_transitions import (
    TransitionOutcome,
    plan_close,
    plan_finish,
    plan_finish_direct,
)
from foodcoop.domain.service.result_allocator import AllocationPolicy

logger = logging.getLogger(__name__)

Planner = Callable[[Order, datetime], TransitionOutcome]


class OrderLifecycle:

    def __init__(
        self,
        uow: AbstractUnitOfWork,
        prices: PriceSnapshotStore,
        notifier: NotificationDispatcher,
        stats: SubgroupStatsUpdater,
        *,
        markup: Decimal = Decimal("0"),
        policy: AllocationPolicy | None = None,
        clock: Clock | None = None,
        locks: OrderLocks | None = None,
    ) -> None:
        self._uow = uow
        self._prices = prices
        self._notifier = notifier
        self._stats = stats
        self._markup = markup
        self._policy = policy
        self._clock = clock or SystemClock()
        self._locks = locks or OrderLocks()

    # --- Transitions ----------------------------------------------------------

    def close(
        self,
        order_id: int,
        actor: str | None,
        ignore_warnings: bool = False,
        article_ids: list[str] | None = None,
    ) -> TransitionOutcome:
        """Opened -> Closed.  Freezes prices and settles every subgroup's result.

        *article_ids* replaces the selection as part of the close; requests
        for deselected articles are dropped only with *ignore_warnings*.
        """

        def plan(order: Order, now: datetime) -> TransitionOutcome:
            return plan_close(
                order,
                actor=actor,
                now=now,
                prices=self._prices,
                markup=self._markup,
                policy=self._policy,
                ignore_warnings=ignore_warnings,
                article_ids=set(article_ids) if article_ids is not None else None,
            )

        return self._transition(order_id, "close", actor, plan)

    def finish(self, order_id: int, actor: str | None) -> TransitionOutcome:
        """Closed -> Finished.  Debits subgroup accounts and settles the stock."""
        return self._transition(
            order_id,
            "finish",
            actor,
            lambda order, now: plan_finish(order, actor=actor, now=now),
        )

    def finish_direct(self, order_id: int, actor: str | None) -> TransitionOutcome:
        """Closed -> Finished without any account or stock movement."""
        return self._transition(
            order_id,
            "finish directly",
            actor,
            lambda order, now: plan_finish_direct(order, actor=actor, now=now),
        )

    # --- Queries --------------------------------------------------------------

    def sum(self, order_id: int, kind: SumKind = SumKind.GROSS) -> Money:
        with self._uow:
            order = self._load(order_id)
        live_prices = self._live_prices(order) if order.is_open else None
        return order.sum(kind, live_prices)

    def profit(self, order_id: int, exclude_markup: bool = False) -> Money | None:
        """Foodcoop result of the order; ``None`` while no invoice is attached."""
        with self._uow:
            order = self._load(order_id)
        return order.profit(exclude_markup)

    # --- Internal helpers -----------------------------------------------------

    def _transition(
        self, order_id: int, action: str, actor: str | None, plan: Planner
    ) -> TransitionOutcome:
        with self._locks.hold(order_id):
            with self._uow:
                order = self._load(order_id)
                outcome = plan(order, self._clock.now())
                try:
                    self._apply(outcome)
                    self._uow.orders.save(outcome.order)
                    self._uow.commit()
                except Exception:
                    logger.exception("Rolled back %s of order #%s", action, order_id)
                    raise

        logger.info(
            "Order #%s: %s -> %s by %s",
            order_id,
            outcome.previous_state.value,
            outcome.state.value,
            actor or "-",
        )
        self._dispatch(outcome)
        return outcome

    def _apply(self, outcome: TransitionOutcome) -> None:
        for subgroup_id in outcome.stats_refresh:
            self._stats.refresh(subgroup_id)

        for posting in outcome.postings:
            try:
                self._uow.ledger.post(
                    posting.subgroup_id, posting.amount, posting.note, posting.actor
                )
            except LedgerPostingFailed:
                raise
            except Exception as exc:
                raise LedgerPostingFailed(
                    f"Could not post {posting.amount} to subgroup '{posting.subgroup_id}'"
                ) from exc

        for change in outcome.stock_changes:
            try:
                self._uow.stock.adjust(
                    change.stock_article_id, change.delta, change.order_id
                )
            except StockAdjustmentFailed:
                raise
            except Exception as exc:
                raise StockAdjustmentFailed(
                    f"Could not adjust stock of article '{change.stock_article_id}'"
                ) from exc

    def _dispatch(self, outcome: TransitionOutcome) -> None:
        for event_kind in outcome.notifications:
            try:
                self._notifier.enqueue(event_kind, outcome.order.id)
            except Exception:
                logger.warning(
                    "Could not enqueue %s notification for order #%s",
                    event_kind,
                    outcome.order.id,
                    exc_info=True,
                )

    def _load(self, order_id: int) -> Order:
        order = self._uow.orders.get_by_id(order_id)
        if order is None:
            raise EntityNotFoundError(f"Order #{order_id} not found")
        return order

    def _live_prices(self, order: Order) -> dict[str, SettlementSnapshot]:
        now = self._clock.now()
        live = {}
        for line in order.lines:
            if line.price is not None:
                continue
            price = self._prices.current_price(line.article_id)
            if price is not None:
                live[line.article_id] = SettlementSnapshot.freeze(price, self._markup, now)
        return live

