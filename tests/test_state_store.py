"""Tests for the persisted run state and the processed product tracker."""

import pytest

from autocart.db import Database, create_database
from autocart.state.models import RunState
from autocart.state.store import ProcessedTracker, RunStateStore


def test_fresh_state_has_defaults(store):
    state = store.get()
    assert state == RunState()
    assert state.is_running is False
    assert state.search_term == ""


def test_update_merges_and_persists(store, database):
    store.update(is_running=True, search_term="女裝")
    store.update(cart_count=4)

    reopened = RunStateStore(Database(database.db_path))
    state = reopened.get()
    assert state.is_running is True
    assert state.search_term == "女裝"
    assert state.cart_count == 4
    assert state.current_product_index == 0


def test_update_rejects_unknown_fields(store):
    with pytest.raises(ValueError):
        store.update(not_a_field=1)
    assert store.get() == RunState()


def test_unknown_stored_keys_are_ignored(store, database):
    database.execute_update("INSERT INTO run_state (key, value) VALUES (?, ?)", ("legacy_flag", "true"))
    assert store.get() == RunState()


def test_mark_processed_first_write_wins(tracker):
    assert tracker.mark_processed("1_2") is True
    assert tracker.mark_processed("1_2") is False
    assert tracker.is_processed("1_2") is True
    assert tracker.is_processed("3_4") is False
    assert len(tracker) == 1


def test_processed_ids_keep_insertion_order(tracker):
    for product_id in ("9_9", "1_1", "5_5"):
        tracker.mark_processed(product_id)
    assert tracker.processed_ids() == ["9_9", "1_1", "5_5"]


def test_clear_returns_removed_count(tracker):
    tracker.mark_processed("1_1")
    tracker.mark_processed("2_2")
    assert tracker.clear() == 2
    assert len(tracker) == 0
    assert tracker.clear() == 0


def test_processed_set_survives_reopen(tmp_path):
    db_path = tmp_path / "nested" / "state.db"
    create_database(db_path)
    ProcessedTracker(Database(db_path)).mark_processed("7_8")

    create_database(db_path)
    assert ProcessedTracker(Database(db_path)).is_processed("7_8") is True


def test_default_database_follows_configuration(tmp_path, monkeypatch):
    db_path = tmp_path / "configured" / "autocart.db"
    monkeypatch.setenv("AUTOCART_DATABASE_PATH", str(db_path))

    assert create_database() == db_path
    assert Database().db_path == db_path
    assert db_path.exists()
