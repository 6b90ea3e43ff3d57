"""Collaborator: default order windows."""

from __future__ import annotations

from abc import ABC, abstractmethod
from datetime import datetime


class ScheduleDefaults(ABC):

    @abstractmethod
    def suggest_window(self, reference_day: datetime) -> tuple[datetime, datetime | None]:
        """Best-guess (starts, ends) for an order created on *reference_day*."""
