"""Behavioural tests shared by both document store backends."""

from __future__ import annotations

import sqlite3
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path

import pytest

from storefront.backend.app.services.document_store import (
    Document,
    InMemoryDocumentStore,
    SQLiteDocumentStore,
    StorageError,
)


@pytest.fixture(params=["memory", "sqlite"])
def store(request: pytest.FixtureRequest, tmp_path: Path):
    if request.param == "memory":
        return InMemoryDocumentStore()
    return SQLiteDocumentStore(tmp_path / "documents.db")


def test_insert_assigns_identifier_and_find_filters_by_equality(store) -> None:
    generated = store.insert_one("items", {"title": "Red Shoes", "category": "shoes"})
    store.insert_one("items", {"_id": "p2", "title": "Blue Shirt", "category": "clothing"})

    assert isinstance(generated, str) and generated
    assert [doc["title"] for doc in store.find("items", {"category": "shoes"})] == ["Red Shoes"]
    assert len(store.find("items")) == 2
    assert store.find("carts") == []
    assert store.find_one("items", {"_id": "p2"})["title"] == "Blue Shirt"
    assert store.find_one("items", {"_id": "missing"}) is None


def test_find_by_ids_skips_unknown_identifiers(store) -> None:
    store.insert_one("items", {"_id": "p1", "title": "Red Shoes"})
    store.insert_one("items", {"_id": "p2", "title": "Blue Shirt"})

    found = store.find_by_ids("items", ["p1", "gone", "p1"])

    assert list(found) == ["p1"]
    assert store.find_by_ids("items", []) == {}


def test_duplicate_identifiers_are_rejected(store) -> None:
    store.insert_one("items", {"_id": "p1", "title": "Red Shoes"})

    with pytest.raises(StorageError):
        store.insert_one("items", {"_id": "p1", "title": "Duplicate"})


def test_returned_documents_are_copies(store) -> None:
    store.insert_one("carts", {"_id": "c1", "items": [{"itemId": "p1", "quantity": 1}]})

    fetched = store.find_one("carts", {"_id": "c1"})
    fetched["items"].append({"itemId": "p2", "quantity": 1})

    assert len(store.find_one("carts", {"_id": "c1"})["items"]) == 1


def test_modify_creates_updates_and_skips(store) -> None:
    def create_or_bump(current: Document | None) -> Document:
        cart = current or {"userId": "u1", "count": 0}
        cart["count"] += 1
        return cart

    created = store.modify("carts", {"userId": "u1"}, create_or_bump)
    updated = store.modify("carts", {"userId": "u1"}, create_or_bump)

    assert created["_id"] == updated["_id"]
    assert updated["count"] == 2
    assert store.modify("carts", {"userId": "nobody"}, lambda current: None) is None
    assert len(store.find("carts")) == 1


def test_modify_keeps_the_original_identifier(store) -> None:
    store.insert_one("carts", {"_id": "c1", "userId": "u1"})

    result = store.modify("carts", {"userId": "u1"}, lambda current: {**current, "_id": "other"})

    assert result["_id"] == "c1"
    assert store.find_one("carts", {"_id": "other"}) is None


def test_concurrent_modifications_do_not_lose_updates(store) -> None:
    def increment(_: int) -> None:
        def bump(current: Document | None) -> Document:
            cart = current or {"userId": "u1", "quantity": 0}
            cart["quantity"] += 1
            return cart

        store.modify("carts", {"userId": "u1"}, bump)

    with ThreadPoolExecutor(max_workers=4) as executor:
        list(executor.map(increment, range(20)))

    assert store.find_one("carts", {"userId": "u1"})["quantity"] == 20


def test_sqlite_store_persists_between_instances(tmp_path: Path) -> None:
    path = tmp_path / "documents.db"
    SQLiteDocumentStore(path).insert_one("items", {"_id": "p1", "title": "Κόκκινα Παπούτσια"})

    reopened = SQLiteDocumentStore(path)

    assert reopened.find_one("items", {"_id": "p1"})["title"] == "Κόκκινα Παπούτσια"


def test_sqlite_store_wraps_engine_failures(tmp_path: Path) -> None:
    with pytest.raises(StorageError):
        SQLiteDocumentStore(tmp_path / "missing-dir" / "documents.db")


def test_sqlite_modify_rolls_back_when_mutation_fails(tmp_path: Path) -> None:
    store = SQLiteDocumentStore(tmp_path / "documents.db")
    store.insert_one("carts", {"_id": "c1", "userId": "u1", "count": 1})

    def explode(current: Document | None) -> Document:
        raise RuntimeError("boom")

    with pytest.raises(RuntimeError):
        store.modify("carts", {"userId": "u1"}, explode)

    assert store.find_one("carts", {"userId": "u1"})["count"] == 1


class _BrokenConnection:
    def __init__(self) -> None:
        self.closed = False

    def execute(self, *args):
        raise sqlite3.OperationalError("disk I/O error")

    def close(self) -> None:
        self.closed = True


def test_sqlite_connection_is_closed_when_setup_fails(
    tmp_path: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    connection = _BrokenConnection()
    monkeypatch.setattr(sqlite3, "connect", lambda *args, **kwargs: connection)

    with pytest.raises(StorageError):
        SQLiteDocumentStore(tmp_path / "documents.db")

    assert connection.closed


def test_sqlite_cart_lookups_use_the_owner_index(tmp_path: Path) -> None:
    path = tmp_path / "documents.db"
    store = SQLiteDocumentStore(path)
    for number in range(20):
        store.insert_one("carts", {"userId": f"u{number}", "items": []})
    store.insert_one("orders", {"userId": "u7"})

    assert store.find_one("carts", {"userId": "u7"})["userId"] == "u7"
    assert store.find("carts", {"userId": "u7", "items": ["x"]}) == []
    assert store.find("carts", {"userId": "missing"}) == []

    connection = sqlite3.connect(path)
    try:
        plan = connection.execute(
            "EXPLAIN QUERY PLAN SELECT body FROM documents "
            "WHERE collection = ? AND json_extract(body, '$.userId') = ? ORDER BY rowid",
            ("carts", "u7"),
        ).fetchall()
    finally:
        connection.close()
    assert any("documents_user_id" in row[-1] for row in plan)
