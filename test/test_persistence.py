import json
import logging
import sqlite3
from datetime import timezone
from pathlib import Path

import pytest
from conftest import SteppingClock, add_product

from retail_pos.application.container import build_container
from retail_pos.domain.errors import StorageError
from retail_pos.domain.models import Payment
from retail_pos.repositories.codec import parse_timestamp
from retail_pos.repositories.kv_store import MemoryKeyValueStore, SqliteKeyValueStore
from retail_pos.repositories.state_repo import StateRepository


class FailingStore(MemoryKeyValueStore):
    def set(self, key: str, value: str) -> None:
        raise StorageError(f"disk full while writing {key}")


def test_state_survives_reopen(tmp_path: Path):
    db = tmp_path / "pos.db"
    c = build_container(db, clock=SteppingClock())
    p = add_product(c.catalog, "R-A", count=5)
    customer = c.customers.add("Ada")
    c.cart.add(p)
    c.cart.select_customer(customer)
    inv = c.sales.checkout(c.cart, [Payment("upi", 11)])
    note = c.returns.process_return(inv.id, {p.id: 1}, "Too small")
    c.adjustments.adjust(p.id, -1, "Damaged")

    reopened = build_container(db)

    assert reopened.state == c.state
    loaded = reopened.sales.get_invoice(inv.id)
    assert loaded.date == inv.date
    assert loaded.date.tzinfo is not None
    assert loaded.line_for(p.id).returned_quantity == 1
    assert reopened.returns.list_credit_notes()[0].id == note.id
    assert reopened.catalog.get(p.id).count == 4


def test_migrations_are_recorded_once(tmp_path: Path):
    db = tmp_path / "pos.db"
    SqliteKeyValueStore(db).init_db()
    SqliteKeyValueStore(db).init_db()

    conn = sqlite3.connect(db)
    versions = conn.execute("SELECT version FROM schema_migrations").fetchall()
    conn.close()

    assert versions == [(1,)]
    assert SqliteKeyValueStore(db).integrity_check() == "ok"


def test_failing_store_is_logged_not_raised(caplog):
    c = build_container(store=FailingStore())

    with caplog.at_level(logging.ERROR, logger="retail_pos.storage"):
        p = add_product(c.catalog, "R-A", count=5)

    assert c.catalog.get(p.id) == p
    assert "state_save_failed" in caplog.text
    assert c.repo.save(c.state) is False


def test_corrupt_record_set_falls_back_to_empty(caplog):
    store = MemoryKeyValueStore({
        "products": "{not json",
        "customers": json.dumps([{"id": 1, "name": "Ada", "phone": None, "email": None}]),
        "theme": json.dumps("neon"),
    })

    with caplog.at_level(logging.WARNING, logger="retail_pos.storage"):
        state = StateRepository(store).load()

    assert state.products == []
    assert [c.name for c in state.customers] == ["Ada"]
    assert state.theme == "system"
    assert "state_load_failed key=products" in caplog.text


def test_theme_round_trip():
    store = MemoryKeyValueStore()
    c = build_container(store=store)
    c.state.theme = "dark"
    assert c.repo.save(c.state) is True

    assert build_container(store=store).state.theme == "dark"


def test_failed_operation_rolls_back_and_is_not_persisted():
    store = MemoryKeyValueStore()
    c = build_container(store=store)
    p = add_product(c.catalog, "R-A", count=5)
    before = store.data["products"]

    with pytest.raises(RuntimeError):
        with c.sales.uow_factory():
            c.catalog.adjust_count(p.id, -3)
            raise RuntimeError("boom")

    assert c.catalog.get(p.id).count == 5
    assert store.data["products"] == before
    assert c.state.tx_depth == 0


def test_timestamps_parse_to_aware_datetimes():
    assert parse_timestamp("2024-03-01T10:00:00Z").tzinfo == timezone.utc
    assert parse_timestamp("2024-03-01T10:00:00").tzinfo == timezone.utc
    assert parse_timestamp("2024-03-01T10:00:00.123+00:00").microsecond == 123000
