"""Unit of Work — the atomic boundary of every use case.

Orders, ledger postings and stock adjustments made inside one
``with uow:`` block become visible together on ``commit()``.  Leaving the
block without committing discards all of them.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from foodcoop.domain.port.ledger import LedgerPoster
from foodcoop.domain.port.stock import StockAdjuster
from foodcoop.domain.repository.order_repository import OrderRepository


class AbstractUnitOfWork(ABC):
    orders: OrderRepository
    ledger: LedgerPoster
    stock: StockAdjuster

    def __enter__(self) -> AbstractUnitOfWork:
        self._begin()
        return self

    def __exit__(self, *args) -> None:
        self.rollback()

    @abstractmethod
    def _begin(self) -> None:
        """Start staging changes."""

    @abstractmethod
    def commit(self) -> None:
        """Make every staged change durable."""

    @abstractmethod
    def rollback(self) -> None:
        """Discard staged changes.  A no-op after ``commit()``."""
