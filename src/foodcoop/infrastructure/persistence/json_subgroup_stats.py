"""Per-subgroup order counts, kept in the ``subgroup_stats`` section of
the store document and written together with the orders."""

from __future__ import annotations

from foodcoop.application.clock import Clock, SystemClock
from foodcoop.domain.port.notifications import SubgroupStatsUpdater


class JsonSubgroupStats(SubgroupStatsUpdater):

    def __init__(self, clock: Clock | None = None) -> None:
        self._clock = clock or SystemClock()
        self._stats: dict[str, dict] = {}

    def load(self, stats: dict[str, dict]) -> None:
        self._stats = stats

    def dump(self) -> dict[str, dict]:
        return self._stats

    def refresh(self, subgroup_id: str) -> None:
        entry = self._stats.setdefault(subgroup_id, {"closed_orders": 0})
        entry["closed_orders"] += 1
        entry["last_refreshed"] = self._clock.now().isoformat()

    def closed_orders(self, subgroup_id: str) -> int:
        return self._stats.get(subgroup_id, {}).get("closed_orders", 0)
