"""StockChange — append-only record of a quantity delta on a stock article."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class StockChange:
    """Created only when a stock order is finished.

    ``delta`` is negative for goods leaving the shared stock.
    """

    order_id: int | None
    stock_article_id: str
    delta: int
    created_at: datetime
