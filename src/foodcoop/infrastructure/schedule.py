"""Configured weekly order schedule."""

from __future__ import annotations

from datetime import datetime, timedelta

from foodcoop.domain.port.schedule import ScheduleDefaults
from foodcoop.infrastructure.config import OrderScheduleConfig


class WeeklySchedule(ScheduleDefaults):
    """Orders start on the reference day and end on the next scheduled weekday.

    With ``interval_weeks > 1`` only every n-th week counted from
    ``initial`` (or from the reference day) is an ordering week.
    """

    def __init__(self, config: OrderScheduleConfig) -> None:
        self._config = config

    def suggest_window(self, reference_day: datetime) -> tuple[datetime, datetime | None]:
        starts = reference_day
        return starts, self._next_end(starts)

    def _next_end(self, after: datetime) -> datetime:
        cfg = self._config
        candidate = datetime.combine(after.date(), cfg.ends_time, tzinfo=after.tzinfo)
        candidate += timedelta(days=(cfg.ends_weekday - candidate.weekday()) % 7)
        if candidate <= after:
            candidate += timedelta(weeks=1)

        anchor = cfg.initial or after
        while (candidate.date() - anchor.date()).days // 7 % cfg.interval_weeks:
            candidate += timedelta(weeks=1)
        return candidate
