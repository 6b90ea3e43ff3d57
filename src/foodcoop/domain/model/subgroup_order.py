"""SubgroupOrder — one purchasing subgroup's participation in an Order.

Owned exclusively by the Order aggregate; never loaded or saved on its own.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from foodcoop.domain.exceptions import SettlementError, ValidationError
from foodcoop.domain.model.value_objects import Money, SettlementSnapshot


@dataclass
class SubgroupOrderLine:
    """A subgroup's request for one article.

    ``result`` and ``price`` stay ``None`` until the order is closed and
    are written exactly once by ``record_result()``.
    """

    article_id: str
    quantity: int
    tolerance: int
    requested_at: datetime
    result: int | None = None
    price: SettlementSnapshot | None = None  # frozen at close

    def __post_init__(self) -> None:
        _check_amount("Quantity", self.quantity)
        _check_amount("Tolerance", self.tolerance)

    @property
    def has_request(self) -> bool:
        return self.quantity > 0 or self.tolerance > 0

    @property
    def is_settled(self) -> bool:
        return self.result is not None

    @property
    def total_price(self) -> Money:
        if self.result is None or self.price is None:
            return Money.zero()
        return self.price.fc_price * self.result

    @property
    def total_price_without_markup(self) -> Money:
        if self.result is None or self.price is None:
            return Money.zero()
        return self.price.markup_free_price * self.result

    def change(self, quantity: int, tolerance: int, at: datetime) -> None:
        """Replace the request.  Only an increase moves it back in the queue."""
        if self.is_settled:
            raise ValidationError(
                f"Request for article '{self.article_id}' is already settled"
            )
        _check_amount("Quantity", quantity)
        _check_amount("Tolerance", tolerance)
        if quantity > self.quantity or tolerance > self.tolerance:
            self.requested_at = at
        self.quantity = quantity
        self.tolerance = tolerance

    def record_result(self, result: int, price: SettlementSnapshot | None) -> None:
        if self.is_settled:
            raise SettlementError(
                f"Result for article '{self.article_id}' was already settled"
            )
        if result < 0 or result > self.quantity + self.tolerance:
            raise SettlementError(
                f"Result {result} for article '{self.article_id}' exceeds "
                f"request {self.quantity}+{self.tolerance}"
            )
        if result > 0 and price is None:
            raise SettlementError(
                f"No frozen price for settled article '{self.article_id}'"
            )
        self.result = result
        self.price = price


@dataclass
class SubgroupOrder:
    subgroup_id: str
    lines: list[SubgroupOrderLine] = field(default_factory=list)
    price: Money = field(default_factory=Money.zero)
    price_without_markup: Money = field(default_factory=Money.zero)
    updated_by: str | None = None

    def line_for(self, article_id: str) -> SubgroupOrderLine | None:
        for line in self.lines:
            if line.article_id == article_id:
                return line
        return None

    def request(
        self,
        article_id: str,
        quantity: int,
        tolerance: int,
        at: datetime,
        actor: str | None = None,
    ) -> None:
        """Upsert the request for *article_id*; zero/zero withdraws it."""
        line = self.line_for(article_id)
        if quantity == 0 and tolerance == 0:
            if line is not None:
                self.lines.remove(line)
        elif line is None:
            self.lines.append(
                SubgroupOrderLine(
                    article_id=article_id,
                    quantity=quantity,
                    tolerance=tolerance,
                    requested_at=at,
                )
            )
        else:
            line.change(quantity, tolerance, at)
        self.updated_by = actor or self.updated_by

    def discard(self, article_ids: set[str]) -> None:
        self.lines = [line for line in self.lines if line.article_id not in article_ids]

    def update_price(self) -> None:
        """Recompute both valuations from the settled lines."""
        price = Money.zero()
        without_markup = Money.zero()
        for line in self.lines:
            price = price + line.total_price
            without_markup = without_markup + line.total_price_without_markup
        self.price = price
        self.price_without_markup = without_markup


def _check_amount(label: str, value: int) -> None:
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValidationError(f"{label} must be an integer, got {type(value).__name__}")
    if value < 0:
        raise ValidationError(f"{label} cannot be negative")
