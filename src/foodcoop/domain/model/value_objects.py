"""Money and price values used in settlement.

``CatalogPrice`` is what the catalog says today; ``SettlementSnapshot``
is what an order agreed on when it was closed.  Both are immutable.
"""

from __future__ import annotations

import functools
from dataclasses import dataclass
from datetime import datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation

from foodcoop.domain.exceptions import ValidationError

_CENT = Decimal("0.01")
_HUNDRED = Decimal("100")


@functools.total_ordering
@dataclass(frozen=True)
class Money:
    """Signed Decimal amount in one currency.

    Account debits and a foodcoop deficit are negative amounts.  Amounts
    keep full precision; ``rounded()`` is for presentation only.
    """

    amount: Decimal
    currency: str = "USD"

    def __post_init__(self) -> None:
        if not isinstance(self.amount, Decimal):
            raise ValidationError(
                f"Money amount must be a Decimal, got {type(self.amount).__name__}"
            )

    def __add__(self, other: Money) -> Money:
        return Money(self.amount + self._same_currency(other).amount, self.currency)

    def __sub__(self, other: Money) -> Money:
        return Money(self.amount - self._same_currency(other).amount, self.currency)

    def __neg__(self) -> Money:
        return Money(-self.amount, self.currency)

    def __mul__(self, factor: int | Decimal) -> Money:
        if isinstance(factor, bool) or not isinstance(factor, (int, Decimal)):
            raise TypeError(
                f"Can only multiply Money by int or Decimal, got {type(factor).__name__}"
            )
        return Money(self.amount * factor, self.currency)

    __rmul__ = __mul__

    def __lt__(self, other: Money) -> bool:
        return self.amount < self._same_currency(other).amount

    @property
    def is_zero(self) -> bool:
        return self.amount == 0

    def rounded(self) -> Money:
        """Round half-up to whole cents."""
        return Money(self.amount.quantize(_CENT, rounding=ROUND_HALF_UP), self.currency)

    def __str__(self) -> str:
        sign = "-" if self.amount < 0 else ""
        return f"{sign}${abs(self.amount):.2f}"

    def _same_currency(self, other: Money) -> Money:
        if other.currency != self.currency:
            raise ValidationError(
                f"Cannot combine {self.currency} with {other.currency}"
            )
        return other

    @classmethod
    def of(cls, amount: str | int | Decimal) -> Money:
        """Parse user or file input such as ``"12.50"``."""
        try:
            return cls(Decimal(str(amount).strip()))
        except InvalidOperation as exc:
            raise ValidationError(f"Invalid money amount: {amount!r}") from exc

    @classmethod
    def zero(cls) -> Money:
        return cls(Decimal("0"))


@dataclass(frozen=True)
class CatalogPrice:
    """The currently effective catalog price of an article.

    This is live data: it may change at any time until an order freezes
    it into a ``SettlementSnapshot``.
    """

    article_id: str
    article_name: str
    net_price: Money
    tax: Decimal = Decimal("0")  # percent
    deposit: Money = Money(Decimal("0"))
    unit_quantity: int = 1

    def __post_init__(self) -> None:
        if self.net_price.amount < 0:
            raise ValidationError("Article price cannot be negative")
        if self.tax < 0:
            raise ValidationError("Tax cannot be negative")
        if not isinstance(self.unit_quantity, int) or self.unit_quantity <= 0:
            raise ValidationError("Unit quantity must be a positive integer")


@dataclass(frozen=True)
class SettlementSnapshot:
    """Price of one article frozen when its order was closed.

    Every settlement figure of the order is derived from this object, never
    from the live catalog.  The markup is captured together with the price
    so a later configuration change cannot alter settled amounts.
    """

    article_id: str
    net_price: Money
    tax: Decimal
    deposit: Money
    unit_quantity: int
    markup: Decimal  # percent
    frozen_at: datetime

    @classmethod
    def freeze(
        cls, price: CatalogPrice, markup: Decimal, at: datetime
    ) -> SettlementSnapshot:
        if markup < 0:
            raise ValidationError("Price markup cannot be negative")
        return cls(
            article_id=price.article_id,
            net_price=price.net_price,
            tax=price.tax,
            deposit=price.deposit,
            unit_quantity=price.unit_quantity,
            markup=markup,
            frozen_at=at,
        )

    @property
    def gross_price(self) -> Money:
        """Net price plus deposit, taxed.  What the supplier bills."""
        return (self.net_price + self.deposit) * (1 + self.tax / _HUNDRED)

    @property
    def fc_price(self) -> Money:
        """Gross price plus the foodcoop markup.  What members pay."""
        return self.gross_price * (1 + self.markup / _HUNDRED)

    @property
    def markup_free_price(self) -> Money:
        return self.gross_price

