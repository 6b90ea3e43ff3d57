"""Data Transfer Objects — plain containers that cross layer boundaries.

DTOs carry data between the CLI and application layers without
exposing domain internals to the outside world.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class OrderLineDTO:
    """A single order line as displayed to the user."""

    article_id: str
    article_name: str
    quantity: int
    tolerance: int
    units: int
    fc_price: str | None  # formatted, e.g. "$2.14"; None until frozen


@dataclass(frozen=True)
class SubgroupOrderDTO:
    subgroup_id: str
    price: str
    results: dict[str, int | None]


@dataclass(frozen=True)
class OrderDTO:
    """A complete order as displayed to the user."""

    id: int
    name: str
    state: str
    starts: str
    ends: str | None
    lines: list[OrderLineDTO]
    subgroups: list[SubgroupOrderDTO]
    invoice_amount: str | None
    foodcoop_result: str | None
    comments: list[str]
