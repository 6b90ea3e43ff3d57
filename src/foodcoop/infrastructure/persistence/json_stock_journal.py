"""JSON-file-backed stock journal (append-only)."""

from __future__ import annotations

from datetime import datetime

from foodcoop.application.clock import Clock, SystemClock
from foodcoop.domain.exceptions import StockAdjustmentFailed
from foodcoop.domain.model.stock_change import StockChange
from foodcoop.domain.port.stock import StockAdjuster


class JsonStockJournal(StockAdjuster):

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._changes: list[dict] = []

    def load(self, changes: list[dict]) -> None:
        self._changes = changes

    def dump(self) -> list[dict]:
        return self._changes

    def adjust(self, stock_article_id: str, delta: int, order_id: int | None = None) -> None:
        if not stock_article_id:
            raise StockAdjustmentFailed("Stock change needs an article id")
        self._changes.append(
            {
                "order_id": order_id,
                "stock_article_id": stock_article_id,
                "delta": delta,
                "created_at": self._clock.now().isoformat(),
            }
        )

    def changes_for(self, stock_article_id: str) -> list[StockChange]:
        return [
            StockChange(
                order_id=raw["order_id"],
                stock_article_id=raw["stock_article_id"],
                delta=raw["delta"],
                created_at=datetime.fromisoformat(raw["created_at"]),
            )
            for raw in self._changes
            if raw["stock_article_id"] == stock_article_id
        ]
