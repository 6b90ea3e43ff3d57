"""Notification outbox written after a transition has been committed.

``notifications.json`` is drained by a separate mailer.
"""

from __future__ import annotations

import logging
import threading
from pathlib import Path

from foodcoop.application.clock import Clock, SystemClock
from foodcoop.domain.port.notifications import NotificationDispatcher
from foodcoop.infrastructure.persistence.json_file import read_json, write_json

logger = logging.getLogger(__name__)


class OutboxNotificationDispatcher(NotificationDispatcher):

    def __init__(self, file_path: Path, clock: Clock | None = None) -> None:
        self._file_path = file_path
        self._clock = clock or SystemClock()
        self._lock = threading.Lock()

    def enqueue(self, event_kind: str, order_id: int) -> None:
        with self._lock:
            outbox = read_json(self._file_path, [])
            outbox.append(
                {
                    "event": event_kind,
                    "order_id": order_id,
                    "enqueued_at": self._clock.now().isoformat(),
                }
            )
            write_json(self._file_path, outbox)
        logger.info("Queued %s notification for order #%s", event_kind, order_id)
