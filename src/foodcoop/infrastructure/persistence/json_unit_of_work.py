"""JSON-file implementation of the Unit of Work.

Orders, ledger accounts, the stock journal and subgroup stats share one
document, ``store.json``.  Every section is loaded when the block starts
and ``commit()`` writes the whole document with a single ``os.replace``:
either all of a transition's changes land or none do.

The block holds an exclusive lock on ``.lock`` in the data directory, so
units of work in other processes (every CLI call is one) wait for it and
then load what it committed.  A process-wide lock does the same for
threads.
"""

from __future__ import annotations

import threading
from pathlib import Path
from typing import IO

from foodcoop.application.clock import Clock
from foodcoop.application.unit_of_work import AbstractUnitOfWork
from foodcoop.infrastructure.persistence.json_file import (
    acquire_file_lock,
    read_json,
    release_file_lock,
    write_json,
)
from foodcoop.infrastructure.persistence.json_ledger import JsonLedger
from foodcoop.infrastructure.persistence.json_order_repository import (
    JsonOrderRepository,
)
from foodcoop.infrastructure.persistence.json_stock_journal import JsonStockJournal
from foodcoop.infrastructure.persistence.json_subgroup_stats import JsonSubgroupStats

STORE_FILE = "store.json"
LOCK_FILE = ".lock"

_LOCK = threading.Lock()


class JsonUnitOfWork(AbstractUnitOfWork):

    def __init__(self, data_dir: Path, clock: Clock | None = None) -> None:
        self._store_path = data_dir / STORE_FILE
        self._lock_path = data_dir / LOCK_FILE
        self.orders = JsonOrderRepository()
        self.ledger = JsonLedger(clock)
        self.stock = JsonStockJournal(clock)
        self.stats = JsonSubgroupStats(clock)
        self._lock_handle: IO[str] | None = None
        self._active = False

    def _begin(self) -> None:
        _LOCK.acquire()
        self._active = True
        try:
            self._lock_handle = acquire_file_lock(self._lock_path)
            document = read_json(self._store_path, {})
            self.orders.load(document.get("orders", []))
            self.ledger.load(document.get("ledger", {}))
            self.stock.load(document.get("stock_changes", []))
            self.stats.load(document.get("subgroup_stats", {}))
        except Exception:
            self.rollback()
            raise

    def commit(self) -> None:
        write_json(
            self._store_path,
            {
                "orders": self.orders.dump(),
                "ledger": self.ledger.dump(),
                "stock_changes": self.stock.dump(),
                "subgroup_stats": self.stats.dump(),
            },
        )

    def rollback(self) -> None:
        # Staged data is reloaded on the next _begin(); just let go.
        if not self._active:
            return
        self._active = False
        try:
            if self._lock_handle is not None:
                release_file_lock(self._lock_handle)
                self._lock_handle = None
        finally:
            _LOCK.release()
