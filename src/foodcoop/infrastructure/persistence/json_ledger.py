"""JSON-file-backed subgroup ledger.

Accounts live in the ``ledger`` section of the store document as a
balance plus the list of financial transactions that produced it.
"""

from __future__ import annotations

import logging
from decimal import Decimal

from foodcoop.application.clock import Clock, SystemClock
from foodcoop.domain.exceptions import LedgerPostingFailed
from foodcoop.domain.model.value_objects import Money
from foodcoop.domain.port.ledger import LedgerPoster

logger = logging.getLogger(__name__)


class JsonLedger(LedgerPoster):

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._accounts: dict[str, dict] = {}

    def load(self, accounts: dict[str, dict]) -> None:
        self._accounts = accounts

    def dump(self) -> dict[str, dict]:
        return self._accounts

    def post(self, subgroup_id: str, amount: Money, note: str, actor: str | None) -> None:
        if not subgroup_id:
            raise LedgerPostingFailed("Cannot post to an account without subgroup id")
        account = self._accounts.setdefault(
            subgroup_id, {"balance": "0", "transactions": []}
        )
        account["balance"] = str(Decimal(account["balance"]) + amount.amount)
        account["transactions"].append(
            {
                "amount": str(amount.amount),
                "note": note,
                "user": actor,
                "created_at": self._clock.now().isoformat(),
            }
        )
        logger.debug("Staged %s on account of subgroup %s", amount, subgroup_id)

    def balance(self, subgroup_id: str) -> Money:
        account = self._accounts.get(subgroup_id)
        if account is None:
            return Money.zero()
        return Money(Decimal(account["balance"]))

    def transactions(self, subgroup_id: str) -> list[dict]:
        return list(self._accounts.get(subgroup_id, {}).get("transactions", []))
