"""Per-order serialization of state transitions.

Different orders never wait for each other; two transitions of the same
order run one after the other, and the second one sees the state the
first one left behind.
"""

from __future__ import annotations

import threading
from collections.abc import Iterator
from contextlib import contextmanager


class OrderLocks:

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._locks: dict[int, threading.Lock] = {}

    @contextmanager
    def hold(self, order_id: int) -> Iterator[None]:
        with self._guard:
            lock = self._locks.setdefault(order_id, threading.Lock())
        with lock:
            yield
