"""Integration tests for the JSON-file stores and their unit of work."""

import fcntl
import json
import os
import subprocess
import sys
from decimal import Decimal
from pathlib import Path

import pytest

from foodcoop.application.create_order import CreateOrderHandler
from foodcoop.application.order_lifecycle import OrderLifecycle
from foodcoop.application.place_request import PlaceRequestHandler
from foodcoop.domain.exceptions import LedgerPostingFailed, SettlementError
from foodcoop.domain.model.order import OrderState
from foodcoop.domain.model.value_objects import Money
from foodcoop.infrastructure.notifications import OutboxNotificationDispatcher
from foodcoop.infrastructure.persistence.json_price_catalog import JsonPriceCatalog
from foodcoop.infrastructure.persistence.json_unit_of_work import (
    LOCK_FILE,
    STORE_FILE,
    JsonUnitOfWork,
)
from tests.fakes import FakeNotifier, FixedClock

SRC_DIR = Path(__file__).resolve().parents[2] / "src"

ARTICLES = [
    {"id": 1, "name": "Oats", "price": "2.00", "tax": "7", "unit_quantity": 6},
    {"id": 2, "name": "Honey", "price": 5, "deposit": "0.50"},
]


@pytest.fixture
def data_dir(tmp_path):
    (tmp_path / "articles.json").write_text(json.dumps(ARTICLES), encoding="utf-8")
    return tmp_path


def _setup(data_dir):
    clock = FixedClock()
    uow = JsonUnitOfWork(data_dir, clock)
    prices = JsonPriceCatalog(data_dir / "articles.json")
    lifecycle = OrderLifecycle(
        uow, prices, FakeNotifier(), uow.stats, markup=Decimal("10"), clock=clock
    )
    dto = CreateOrderHandler(uow, prices, clock=clock).handle(7, "Bio Farm", ["1", "2"])
    requests = PlaceRequestHandler(uow, clock)
    clock.advance(minutes=1)
    requests.handle(dto.id, "g1", "1", 3, 1, actor="ann")
    clock.advance(minutes=1)
    requests.handle(dto.id, "g2", "1", 2)
    requests.handle(dto.id, "g2", "2", 1)
    return uow, clock, lifecycle, dto.id


class TestPriceCatalog:

    def test_reads_catalog_entries(self, data_dir):
        catalog = JsonPriceCatalog(data_dir / "articles.json")
        oats = catalog.current_price("1")
        assert oats.article_name == "Oats"
        assert oats.tax == Decimal("7")
        assert oats.unit_quantity == 6
        assert catalog.current_price("2").deposit == Money.of("0.50")
        assert catalog.current_price("99") is None
        assert [p.article_id for p in catalog.list_all()] == ["1", "2"]

    def test_missing_catalog_is_empty(self, tmp_path):
        assert JsonPriceCatalog(tmp_path / "articles.json").list_all() == []


class TestOrderRoundTrip:

    def test_closed_order_survives_reload(self, data_dir):
        uow, clock, lifecycle, order_id = _setup(data_dir)
        outcome = lifecycle.close(order_id, "ann")

        with JsonUnitOfWork(data_dir) as fresh:
            loaded = fresh.orders.get_by_id(order_id)

        assert loaded == outcome.order
        assert loaded.line_for("1").price.frozen_at == clock.now()
        assert loaded.subgroup_order("g1").line_for("1").result == 4

    def test_finished_order_and_ledger_persisted(self, data_dir):
        uow, clock, lifecycle, order_id = _setup(data_dir)
        lifecycle.close(order_id, "ann")
        lifecycle.finish(order_id, "bob")

        with JsonUnitOfWork(data_dir) as fresh:
            assert fresh.orders.get_by_id(order_id).state == OrderState.FINISHED
            balance = fresh.ledger.balance("g1")
            transactions = fresh.ledger.transactions("g1")

        # 4 oats at 2.00 * 1.07 * 1.10
        assert balance == Money.of("-9.416")
        assert transactions[0]["note"].startswith("Order Bio Farm, closed ")
        assert transactions[0]["user"] == "bob"

    def test_list_all_newest_first(self, data_dir):
        uow, clock, lifecycle, first_id = _setup(data_dir)
        clock.advance(days=1)
        CreateOrderHandler(uow, JsonPriceCatalog(data_dir / "articles.json"), clock=clock).handle(
            8, "Dairy", ["2"]
        )
        with uow:
            assert [o.supplier_name for o in uow.orders.list_all()] == ["Dairy", "Bio Farm"]


class TestUnitOfWork:

    def test_uncommitted_changes_are_discarded(self, data_dir):
        uow = JsonUnitOfWork(data_dir, FixedClock())
        with uow:
            uow.ledger.post("g1", Money.of("-3"), "test", None)
            uow.stock.adjust("S1", -2, 1)

        with uow:
            assert uow.ledger.balance("g1") == Money.zero()
            assert uow.stock.changes_for("S1") == []
        assert not (data_dir / STORE_FILE).exists()

    def test_committed_changes_are_visible(self, data_dir):
        clock = FixedClock()
        uow = JsonUnitOfWork(data_dir, clock)
        with uow:
            uow.ledger.post("g1", Money.of("-3"), "test", None)
            uow.stock.adjust("S1", -2, 1)
            uow.commit()

        with JsonUnitOfWork(data_dir) as fresh:
            assert fresh.ledger.balance("g1") == Money.of("-3")
            [change] = fresh.stock.changes_for("S1")
        assert change.delta == -2
        assert change.order_id == 1
        assert change.created_at == clock.now()

    def test_failed_transition_leaves_files_untouched(self, data_dir):
        uow, clock, lifecycle, order_id = _setup(data_dir)
        before = (data_dir / STORE_FILE).read_text(encoding="utf-8")

        prices = JsonPriceCatalog(data_dir / "articles.json")
        (data_dir / "articles.json").write_text(json.dumps(ARTICLES[1:]), encoding="utf-8")
        assert prices.current_price("1") is None

        with pytest.raises(SettlementError, match="No current price"):
            lifecycle.close(order_id, "ann")
        assert (data_dir / STORE_FILE).read_text(encoding="utf-8") == before

    def test_posting_without_subgroup_rejected(self, data_dir):
        uow = JsonUnitOfWork(data_dir)
        with uow:
            with pytest.raises(LedgerPostingFailed):
                uow.ledger.post("", Money.of("1"), "test", None)

    def test_stats_staged_until_commit(self, data_dir):
        uow = JsonUnitOfWork(data_dir, FixedClock())
        with uow:
            uow.stats.refresh("g1")

        with uow:
            assert uow.stats.closed_orders("g1") == 0
            uow.stats.refresh("g1")
            uow.stats.refresh("g1")
            uow.stats.refresh("g2")
            uow.commit()

        with JsonUnitOfWork(data_dir) as fresh:
            assert fresh.stats.closed_orders("g1") == 2
            assert fresh.stats.closed_orders("g3") == 0


class TestFailedCommit:

    def _block_store_write(self, data_dir):
        blocker = data_dir / (STORE_FILE + ".tmp")
        blocker.mkdir()
        return blocker

    def test_failed_finish_write_keeps_order_closed(self, data_dir):
        uow, clock, lifecycle, order_id = _setup(data_dir)
        lifecycle.close(order_id, "ann")
        blocker = self._block_store_write(data_dir)

        with pytest.raises(OSError):
            lifecycle.finish(order_id, "bob")

        with JsonUnitOfWork(data_dir) as fresh:
            assert fresh.orders.get_by_id(order_id).state == OrderState.CLOSED
            assert fresh.ledger.balance("g1") == Money.zero()
            assert fresh.ledger.transactions("g2") == []

        blocker.rmdir()
        lifecycle.finish(order_id, "bob")

        with JsonUnitOfWork(data_dir) as fresh:
            assert fresh.orders.get_by_id(order_id).state == OrderState.FINISHED
            assert fresh.ledger.balance("g1") == Money.of("-9.416")

    def test_failed_close_write_leaves_stats_untouched(self, data_dir):
        uow, clock, lifecycle, order_id = _setup(data_dir)
        blocker = self._block_store_write(data_dir)

        with pytest.raises(OSError):
            lifecycle.close(order_id, "ann")

        with JsonUnitOfWork(data_dir) as fresh:
            assert fresh.orders.get_by_id(order_id).state == OrderState.OPENED
            assert fresh.stats.closed_orders("g1") == 0

        blocker.rmdir()
        lifecycle.close(order_id, "ann")

        with JsonUnitOfWork(data_dir) as fresh:
            assert fresh.stats.closed_orders("g1") == 1
            assert fresh.stats.closed_orders("g2") == 1


class TestProcessLocking:

    def test_open_block_holds_data_dir_lock(self, data_dir):
        with JsonUnitOfWork(data_dir):
            with open(data_dir / LOCK_FILE, "a") as other:
                with pytest.raises(BlockingIOError):
                    fcntl.flock(other, fcntl.LOCK_EX | fcntl.LOCK_NB)

        with open(data_dir / LOCK_FILE, "a") as other:
            fcntl.flock(other, fcntl.LOCK_EX | fcntl.LOCK_NB)
            fcntl.flock(other, fcntl.LOCK_UN)

    def test_concurrent_cli_finishes_charge_once(self, data_dir):
        uow, clock, lifecycle, order_id = _setup(data_dir)
        lifecycle.close(order_id, "ann")
        config = data_dir / "foodcoop.yaml"
        config.write_text(
            f"data_dir: {data_dir}\nprice_markup: 10\nlog_level: WARNING\n", encoding="utf-8"
        )
        env = dict(os.environ)
        env["PYTHONPATH"] = os.pathsep.join(
            filter(None, [str(SRC_DIR), env.get("PYTHONPATH")])
        )
        command = [
            sys.executable,
            "-c",
            "from foodcoop.infrastructure.cli.main import cli; cli()",
            "--config", str(config),
            "order", "finish", "--id", str(order_id), "--user", "bob",
        ]

        runs = [
            subprocess.Popen(
                command,
                env=env,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
            )
            for _ in range(2)
        ]
        outputs = [run.communicate(timeout=60) for run in runs]

        assert sorted(run.returncode for run in runs) == [0, 1]
        assert any("current state is finished" in err for _, err in outputs)
        with JsonUnitOfWork(data_dir) as fresh:
            assert len(fresh.ledger.transactions("g1")) == 1
            assert fresh.ledger.balance("g1") == Money.of("-9.416")


class TestNotificationFiles:

    def test_outbox_appends_events(self, tmp_path):
        clock = FixedClock()
        outbox = OutboxNotificationDispatcher(tmp_path / "notifications.json", clock)
        outbox.enqueue("closed_order", 1)
        outbox.enqueue("closed_order", 2)

        events = json.loads((tmp_path / "notifications.json").read_text(encoding="utf-8"))
        assert [e["order_id"] for e in events] == [1, 2]
        assert events[0]["enqueued_at"] == clock.now().isoformat()

