"""Application service: Show Balance use case (query)."""

from __future__ import annotations

from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.domain.model.value_objects import Money


class ShowBalanceHandler:

    def __init__(self, uow: AbstractUnitOfWork) -> None:
        self._uow = uow

    def handle(self, subgroup_id: str) -> Money:
        with self._uow:
            return self._uow.ledger.balance(subgroup_id)
