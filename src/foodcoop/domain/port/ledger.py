"""Collaborator: subgroup account ledger."""

from __future__ import annotations

from abc import ABC, abstractmethod

from foodcoop.domain.model.value_objects import Money


class LedgerPoster(ABC):

    @abstractmethod
    def post(self, subgroup_id: str, amount: Money, note: str, actor: str | None) -> None:
        """Add a signed financial transaction to the subgroup's balance.

        Raises LedgerPostingFailed if the posting cannot be made.
        """

    @abstractmethod
    def balance(self, subgroup_id: str) -> Money:
        """Current balance of the subgroup's account."""
