"""Collaborator: source of currently effective article prices."""

from __future__ import annotations

from abc import ABC, abstractmethod

from foodcoop.domain.model.value_objects import CatalogPrice


class PriceSnapshotStore(ABC):

    @abstractmethod
    def current_price(self, article_id: str) -> CatalogPrice | None:
        """Return the price effective right now, or None if the article is unknown."""
