"""Injected time source, so transitions can be tested at fixed instants."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Default clock (UTC, timezone-aware)."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)
