"""JSON-file-backed price catalog.

Reads ``articles.json`` on every lookup, so catalog edits made by other
tools take effect immediately for open orders.
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path

from foodcoop.domain.model.value_objects import CatalogPrice, Money
from foodcoop.domain.port.pricing import PriceSnapshotStore
from foodcoop.infrastructure.persistence.json_file import read_json


class JsonPriceCatalog(PriceSnapshotStore):

    def __init__(self, file_path: Path) -> None:
        self._file_path = file_path

    def current_price(self, article_id: str) -> CatalogPrice | None:
        for raw in read_json(self._file_path, []):
            if str(raw["id"]) == article_id:
                return self._to_domain(raw)
        return None

    def list_all(self) -> list[CatalogPrice]:
        return [self._to_domain(raw) for raw in read_json(self._file_path, [])]

    @staticmethod
    def _to_domain(raw: dict) -> CatalogPrice:
        return CatalogPrice(
            article_id=str(raw["id"]),
            article_name=raw["name"],
            net_price=Money(Decimal(str(raw["price"]))),
            tax=Decimal(str(raw.get("tax", "0"))),
            deposit=Money(Decimal(str(raw.get("deposit", "0")))),
            unit_quantity=int(raw.get("unit_quantity", 1)),
        )
