"""Domain service: Result Allocation.

Distributes the quantity available for one article among the subgroups
that asked for it.  Firm quantities are honoured first; whatever is left
goes to tolerances.  Allocation is a pure function of its inputs: the
same requests and total always yield the same results.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass
from datetime import datetime

from foodcoop.domain.exceptions import SettlementError


@dataclass(frozen=True)
class AllocationRequest:
    subgroup_id: str
    quantity: int
    tolerance: int
    requested_at: datetime

    @property
    def cap(self) -> int:
        return self.quantity + self.tolerance


def _queue(requests: Sequence[AllocationRequest]) -> list[AllocationRequest]:
    """Requests in service order: earliest first, subgroup id breaks ties."""
    return sorted(requests, key=lambda r: (r.requested_at, r.subgroup_id))


def _serve_quantities(
    queue: list[AllocationRequest], total: int, granted: dict[str, int]
) -> int:
    """First-come pass over firm quantities.  Returns what is left."""
    left = total
    for request in queue:
        if left <= 0:
            break
        take = min(request.quantity, left)
        granted[request.subgroup_id] += take
        left -= take
    return left


class AllocationPolicy(ABC):
    name: str

    @abstractmethod
    def allocate(
        self, requests: Sequence[AllocationRequest], total: int
    ) -> dict[str, int]:
        """Return the result per subgroup id."""


class FirstComeFirstServed(AllocationPolicy):
    """Historical policy: quantities by request time, then tolerances by request time."""

    name = "first_come"

    def allocate(
        self, requests: Sequence[AllocationRequest], total: int
    ) -> dict[str, int]:
        granted = {r.subgroup_id: 0 for r in requests}
        queue = _queue(requests)
        left = _serve_quantities(queue, total, granted)
        for request in queue:
            if left <= 0:
                break
            take = min(request.tolerance, left)
            granted[request.subgroup_id] += take
            left -= take
        return granted


class ProportionalSurplus(AllocationPolicy):
    """Quantities first-come; the surplus is shared in proportion to tolerance.

    Shares are floored and the leftover units go to the largest fractional
    parts, earlier requests first on equal fractions.
    """

    name = "proportional"

    def allocate(
        self, requests: Sequence[AllocationRequest], total: int
    ) -> dict[str, int]:
        granted = {r.subgroup_id: 0 for r in requests}
        queue = _queue(requests)
        surplus = _serve_quantities(queue, total, granted)
        claims = sum(r.tolerance for r in queue)
        if surplus <= 0 or claims == 0:
            return granted
        if surplus >= claims:
            for request in queue:
                granted[request.subgroup_id] += request.tolerance
            return granted

        remainders = []
        handed_out = 0
        for position, request in enumerate(queue):
            share, remainder = divmod(request.tolerance * surplus, claims)
            granted[request.subgroup_id] += share
            handed_out += share
            remainders.append((-remainder, position, request.subgroup_id))
        for _, _, subgroup_id in sorted(remainders)[: surplus - handed_out]:
            granted[subgroup_id] += 1
        return granted


POLICIES: dict[str, type[AllocationPolicy]] = {
    FirstComeFirstServed.name: FirstComeFirstServed,
    ProportionalSurplus.name: ProportionalSurplus,
}


def policy_named(name: str) -> AllocationPolicy:
    try:
        return POLICIES[name]()
    except KeyError:
        raise SettlementError(f"Unknown allocation policy '{name}'") from None


def allocate(
    requests: Sequence[AllocationRequest],
    total: int,
    policy: AllocationPolicy | None = None,
) -> dict[str, int]:
    """Compute each subgroup's result for one article.

    Guarantees that the results add up to at most *total* and that no
    subgroup gets more than quantity + tolerance, whatever the policy.
    """
    if total < 0:
        raise SettlementError(f"Available total cannot be negative, got {total}")
    seen: set[str] = set()
    for request in requests:
        if request.quantity < 0 or request.tolerance < 0:
            raise SettlementError(
                f"Negative request from subgroup '{request.subgroup_id}'"
            )
        if request.subgroup_id in seen:
            raise SettlementError(
                f"Subgroup '{request.subgroup_id}' requested the same article twice"
            )
        seen.add(request.subgroup_id)

    results = (policy or FirstComeFirstServed()).allocate(requests, total)

    if sum(results.values()) > total:
        raise SettlementError(
            f"Allocation of {sum(results.values())} exceeds available {total}"
        )
    for request in requests:
        if not 0 <= results.get(request.subgroup_id, 0) <= request.cap:
            raise SettlementError(
                f"Allocation for subgroup '{request.subgroup_id}' exceeds its request"
            )
    return {r.subgroup_id: results.get(r.subgroup_id, 0) for r in requests}
