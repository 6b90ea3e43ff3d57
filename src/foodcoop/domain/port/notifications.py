"""Collaborators notified after a transition."""

from __future__ import annotations

from abc import ABC, abstractmethod


class NotificationDispatcher(ABC):
    """Best-effort delivery of order events (e-mail etc.)."""

    @abstractmethod
    def enqueue(self, event_kind: str, order_id: int) -> None:
        """Queue *event_kind* for *order_id*.  May fail; callers must not care."""


class SubgroupStatsUpdater(ABC):

    @abstractmethod
    def refresh(self, subgroup_id: str) -> None:
        """Recompute usage/order-count statistics of a subgroup."""
