"""Collaborator: stock journal."""

from __future__ import annotations

from abc import ABC, abstractmethod

from foodcoop.domain.model.stock_change import StockChange


class StockAdjuster(ABC):

    @abstractmethod
    def adjust(self, stock_article_id: str, delta: int, order_id: int | None = None) -> None:
        """Record a quantity delta against a stock article.

        Raises StockAdjustmentFailed if the change cannot be recorded.
        """

    @abstractmethod
    def changes_for(self, stock_article_id: str) -> list[StockChange]:
        """Every change recorded for a stock article, oldest first."""
