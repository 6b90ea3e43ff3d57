"""Order aggregate — the core of the domain.

The Order is an aggregate root that owns its order lines and the
per-subgroup orders.  All business invariants are enforced here; the
multi-step transitions are planned in ``foodcoop.domain.service.order_transitions``.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum

from foodcoop.domain.exceptions import (
    DateRangeInvalid,
    EntityNotFoundError,
    InvalidTransition,
    NoArticlesSelected,
    OrderedArticlesWouldBeDropped,
    SettlementError,
    ValidationError,
)
from foodcoop.domain.model.subgroup_order import SubgroupOrder, SubgroupOrderLine
from foodcoop.domain.model.value_objects import Money, SettlementSnapshot

# Orders against the shared stock carry this supplier id instead of a real one.
STOCK_SUPPLIER_ID = 0


class OrderState(Enum):
    OPENED = "opened"
    CLOSED = "closed"
    FINISHED = "finished"


class SumKind(Enum):
    NET = "net"
    GROSS = "gross"
    FC = "fc"
    GROUPS = "groups"
    GROUPS_WITHOUT_MARKUP = "groups_without_markup"


_LINE_KINDS = (SumKind.NET, SumKind.GROSS, SumKind.FC)


@dataclass(frozen=True)
class Invoice:
    """Supplier invoice attached to an order.  Only the net amount matters here."""

    net_amount: Money
    number: str | None = None


@dataclass(frozen=True)
class OrderComment:
    user: str | None
    text: str
    created_at: datetime


def calculate_units_to_order(quantity: int, tolerance: int, unit_quantity: int) -> int:
    """Number of whole packs to order from the supplier.

    A partially filled pack is ordered only if the tolerances can fill it.
    """
    units, remainder = divmod(quantity, unit_quantity)
    if remainder > 0 and remainder + tolerance >= unit_quantity:
        units += 1
    return units


@dataclass
class OrderLine:
    """One article of an order.

    ``price`` is the settlement snapshot written at close; ``units_to_order``
    is settled at close (and, for stock orders, again at finish).
    ``units_confirmed`` is an optional supplier-confirmed unit count that
    takes precedence over the computed one.
    """

    article_id: str
    article_name: str
    price: SettlementSnapshot | None = None
    units_to_order: int = 0
    units_confirmed: int | None = None

    @property
    def units(self) -> int:
        if self.units_confirmed is not None:
            return self.units_confirmed
        return self.units_to_order

    def freeze_price(self, snapshot: SettlementSnapshot) -> None:
        if self.price is not None:
            raise SettlementError(
                f"Price of article '{self.article_id}' is already frozen"
            )
        if snapshot.article_id != self.article_id:
            raise SettlementError(
                f"Snapshot for article '{snapshot.article_id}' does not belong "
                f"to line '{self.article_id}'"
            )
        self.price = snapshot


@dataclass
class Order:
    """Aggregate root for a purchasing round.

    Use the ``Order.create()`` factory for new orders; it enforces all
    business rules.  The ``__init__`` is intentionally simple so the
    repository can reconstitute persisted orders without re-validating.
    """

    id: int | None
    supplier_id: int
    supplier_name: str
    starts: datetime
    ends: datetime | None = None
    state: OrderState = OrderState.OPENED
    selected_article_ids: set[str] = field(default_factory=set)
    lines: list[OrderLine] = field(default_factory=list)
    subgroup_orders: list[SubgroupOrder] = field(default_factory=list)
    invoice: Invoice | None = None
    foodcoop_result: Money | None = None
    comments: list[OrderComment] = field(default_factory=list)
    created_by: str | None = None
    updated_by: str | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    # --- Factory (used for NEW orders only) -----------------------------------

    @staticmethod
    def create(
        supplier_id: int,
        supplier_name: str,
        articles: Mapping[str, str],
        starts: datetime,
        ends: datetime | None = None,
        created_by: str | None = None,
    ) -> Order:
        """Create a new order for *articles* (article id -> name)."""
        if not supplier_name or not supplier_name.strip():
            raise ValidationError("Supplier name is required", field="supplier")

        order = Order(
            id=None,
            supplier_id=supplier_id,
            supplier_name=supplier_name.strip(),
            starts=starts,
            ends=ends,
            selected_article_ids=set(articles),
            created_by=created_by,
            updated_by=created_by,
        )
        order.validate()
        order.reconcile_lines(articles)
        return order

    # --- Queries --------------------------------------------------------------

    @property
    def is_stock_order(self) -> bool:
        return self.supplier_id == STOCK_SUPPLIER_ID

    @property
    def is_open(self) -> bool:
        return self.state == OrderState.OPENED

    @property
    def name(self) -> str:
        return self.supplier_name

    def is_expired(self, now: datetime) -> bool:
        return self.ends is not None and self.ends < now

    def line_for(self, article_id: str) -> OrderLine:
        for line in self.lines:
            if line.article_id == article_id:
                return line
        raise ValidationError(
            f"Article '{article_id}' is not part of order #{self.id}",
            field="articles",
        )

    def subgroup_order(self, subgroup_id: str) -> SubgroupOrder | None:
        for subgroup_order in self.subgroup_orders:
            if subgroup_order.subgroup_id == subgroup_id:
                return subgroup_order
        return None

    def requests_for(self, article_id: str) -> list[tuple[str, SubgroupOrderLine]]:
        """(subgroup id, line) for every subgroup that asked for *article_id*."""
        found = []
        for subgroup_order in self.subgroup_orders:
            line = subgroup_order.line_for(article_id)
            if line is not None:
                found.append((subgroup_order.subgroup_id, line))
        return found

    def quantity_for(self, article_id: str) -> int:
        return sum(line.quantity for _, line in self.requests_for(article_id))

    def tolerance_for(self, article_id: str) -> int:
        return sum(line.tolerance for _, line in self.requests_for(article_id))

    def has_requests_for(self, article_id: str) -> bool:
        return any(line.has_request for _, line in self.requests_for(article_id))

    # --- Validation -----------------------------------------------------------

    def erroneous_article_ids(self) -> set[str]:
        """Deselected articles that members have already asked for."""
        return {
            line.article_id
            for line in self.lines
            if line.article_id not in self.selected_article_ids
            and self.has_requests_for(line.article_id)
        }

    def validation_errors(self, ignore_warnings: bool = False) -> list[ValidationError]:
        """Every rule the order currently breaks, for UI highlighting."""
        errors: list[ValidationError] = []
        if self.ends is not None and self.ends < self.starts:
            errors.append(DateRangeInvalid())
        if not self.selected_article_ids:
            errors.append(NoArticlesSelected())
        dropped = self.erroneous_article_ids()
        if dropped and not ignore_warnings:
            errors.append(OrderedArticlesWouldBeDropped(dropped))
        return errors

    def validate(self, ignore_warnings: bool = False) -> None:
        errors = self.validation_errors(ignore_warnings)
        if errors:
            raise errors[0]

    # --- Editing (Opened only) ------------------------------------------------

    def update(
        self,
        *,
        article_ids: set[str] | None = None,
        starts: datetime | None = None,
        ends: datetime | None = None,
        actor: str | None = None,
    ) -> None:
        """Change the window and/or selection.  Validation is up to the caller."""
        self.ensure_state(OrderState.OPENED, "edit")
        if article_ids is not None:
            self.selected_article_ids = set(article_ids)
        if starts is not None:
            self.starts = starts
        if ends is not None:
            self.ends = ends
        self.updated_by = actor or self.updated_by

    def reconcile_lines(self, article_names: Mapping[str, str]) -> None:
        """Make the order lines match the selected article ids.

        Lines for deselected articles are destroyed together with every
        subgroup request for them.  *article_names* must name each newly
        selected article.
        """
        dropped = {
            line.article_id
            for line in self.lines
            if line.article_id not in self.selected_article_ids
        }
        if dropped:
            self.lines = [line for line in self.lines if line.article_id not in dropped]
            for subgroup_order in self.subgroup_orders:
                subgroup_order.discard(dropped)

        existing = {line.article_id for line in self.lines}
        for article_id in sorted(self.selected_article_ids - existing):
            name = article_names.get(article_id)
            if name is None:
                raise EntityNotFoundError(f"Article '{article_id}' not found")
            self.lines.append(OrderLine(article_id=article_id, article_name=name))

    def place_request(
        self,
        subgroup_id: str,
        article_id: str,
        quantity: int,
        tolerance: int,
        at: datetime,
        actor: str | None = None,
    ) -> None:
        self.ensure_state(OrderState.OPENED, "change requests of")
        self.line_for(article_id)
        subgroup_order = self.subgroup_order(subgroup_id)
        if subgroup_order is None:
            subgroup_order = SubgroupOrder(subgroup_id=subgroup_id)
            self.subgroup_orders.append(subgroup_order)
        subgroup_order.request(article_id, quantity, tolerance, at, actor)
        if not subgroup_order.lines:
            self.subgroup_orders.remove(subgroup_order)

    def confirm_units(self, article_id: str, units: int | None) -> None:
        """Record the unit count the supplier (or the stock) can deliver."""
        self.ensure_state(OrderState.OPENED, "confirm units of")
        if units is not None and units < 0:
            raise ValidationError("Confirmed units cannot be negative", field="units")
        self.line_for(article_id).units_confirmed = units

    def attach_invoice(self, invoice: Invoice) -> None:
        self.invoice = invoice
        if self.state == OrderState.FINISHED:
            self.foodcoop_result = self.profit()

    def add_comment(self, text: str, user: str | None, at: datetime) -> None:
        self.comments.append(OrderComment(user=user, text=text, created_at=at))

    # --- State transitions ----------------------------------------------------

    def ensure_state(self, expected: OrderState, action: str) -> None:
        if self.state != expected:
            raise InvalidTransition(self.id, self.state.value, action)

    def mark_closed(self, at: datetime, actor: str | None) -> None:
        """Transition OPENED -> CLOSED, locking the order window at *at*."""
        self.ensure_state(OrderState.OPENED, "close")
        if at < self.starts:
            raise DateRangeInvalid("Order cannot be closed before it starts")
        self.ends = at
        self.updated_by = actor or self.updated_by
        self.state = OrderState.CLOSED

    def mark_finished(self, actor: str | None, action: str = "finish") -> None:
        """Transition CLOSED -> FINISHED."""
        self.ensure_state(OrderState.CLOSED, action)
        self.updated_by = actor or self.updated_by
        self.state = OrderState.FINISHED

    # --- Settlement arithmetic ------------------------------------------------

    def units_for(self, line: OrderLine, unit_quantity: int) -> int:
        """Units the line currently stands for.

        Settled lines report their stored units; open lines derive them
        from the member requests.
        """
        if self.state != OrderState.OPENED or line.units_confirmed is not None:
            return line.units
        quantity = self.quantity_for(line.article_id)
        if self.is_stock_order:
            return quantity
        return calculate_units_to_order(
            quantity, self.tolerance_for(line.article_id), unit_quantity
        )

    def allocation_total(self, line: OrderLine) -> int:
        """Quantity available for distribution among the subgroups.

        Stock lines hand out what ``confirm_units`` recorded as on hand.  The
        stock journal holds no receipts, so without a confirmation the
        requested quantity is taken as available.
        """
        if self.is_stock_order:
            if line.units_confirmed is not None:
                return line.units_confirmed
            return self.quantity_for(line.article_id)
        if line.price is None:
            return 0
        return line.units * line.price.unit_quantity

    def sum(
        self,
        kind: SumKind = SumKind.GROSS,
        live_prices: Mapping[str, SettlementSnapshot] | None = None,
    ) -> Money:
        """Aggregate value of the order.

        ``NET``/``GROSS``/``FC`` value the order lines by units; ``GROUPS``
        and ``GROUPS_WITHOUT_MARKUP`` add up what subgroups were allotted.
        *live_prices* values unfrozen lines and is honoured only while the
        order is open; afterwards only the frozen snapshots count.
        """
        total = Money.zero()
        if kind in _LINE_KINDS:
            for line in self.lines:
                price = self._settlement_price(line, live_prices)
                if price is None:
                    continue
                quantity = self.units_for(line, price.unit_quantity) * price.unit_quantity
                if kind == SumKind.NET:
                    total = total + price.net_price * quantity
                elif kind == SumKind.GROSS:
                    total = total + price.gross_price * quantity
                else:
                    total = total + price.fc_price * quantity
        else:
            for subgroup_order in self.subgroup_orders:
                for line in subgroup_order.lines:
                    if kind == SumKind.GROUPS:
                        total = total + line.total_price
                    else:
                        total = total + line.total_price_without_markup
        return total

    def profit(self, exclude_markup: bool = False) -> Money | None:
        """Deficit/benefit for the foodcoop; ``None`` until an invoice exists."""
        if self.invoice is None:
            return None
        kind = SumKind.GROUPS_WITHOUT_MARKUP if exclude_markup else SumKind.GROUPS
        return self.sum(kind) - self.invoice.net_amount

    # --- Internal helpers -----------------------------------------------------

    def _settlement_price(
        self,
        line: OrderLine,
        live_prices: Mapping[str, SettlementSnapshot] | None,
    ) -> SettlementSnapshot | None:
        if line.price is not None:
            return line.price
        if self.state == OrderState.OPENED:
            if live_prices is not None and line.article_id in live_prices:
                return live_prices[line.article_id]
            if self.has_requests_for(line.article_id):
                raise SettlementError(
                    f"No price available for article '{line.article_id}'"
                )
            return None
        if line.units > 0:
            raise SettlementError(
                f"Settled article '{line.article_id}' has no frozen price"
            )
        return None
