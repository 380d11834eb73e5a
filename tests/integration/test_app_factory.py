"""Tests for application wiring driven by settings."""

from __future__ import annotations

from pathlib import Path

import pytest

from storefront.backend.app import build_document_store, create_app
from storefront.backend.app.context import get_context
from storefront.backend.app.services.document_store import (
    InMemoryDocumentStore,
    SQLiteDocumentStore,
)
from storefront.backend.config.seed import DEMO_CATALOG_FILE, SeedError
from storefront.backend.config.settings import Settings


def _settings(**overrides) -> Settings:
    values = {
        "allowed_origins": frozenset({"https://shop.test"}),
        "secret_key": "factory-secret",
    }
    values.update(overrides)
    return Settings(**values)


def test_sqlite_store_is_built_from_settings(tmp_path: Path) -> None:
    store = build_document_store(_settings(database_path=tmp_path / "shop.db"))

    assert isinstance(store, SQLiteDocumentStore)


def test_in_memory_store_is_the_fallback() -> None:
    with pytest.warns(UserWarning, match="STOREFRONT_DB"):
        store = build_document_store(_settings())

    assert isinstance(store, InMemoryDocumentStore)


def test_seed_file_populates_empty_store(tmp_path: Path) -> None:
    settings = _settings(database_path=tmp_path / "shop.db", seed_file=DEMO_CATALOG_FILE)

    app = create_app(settings=settings)
    client = app.test_client()

    response = client.get("/api/items?search=shoes", headers={"Accept-Language": "el"})
    assert [item["title"] for item in response.get_json()["items"]] == ["Κόκκινα Παπούτσια"]

    # A second start against the same database must not duplicate products.
    create_app(settings=settings)
    assert len(get_context(app).store.find("items")) == 4


def test_context_exposes_injected_store() -> None:
    store = InMemoryDocumentStore()
    app = create_app(store=store, settings=_settings())

    context = get_context(app)
    assert context.store is store
    assert context.settings.secret_key == "factory-secret"
    assert app.config["SECRET_KEY"] == "factory-secret"


def test_restart_keeps_translations_edited_after_seeding(tmp_path: Path) -> None:
    settings = _settings(database_path=tmp_path / "shop.db", seed_file=DEMO_CATALOG_FILE)
    store = get_context(create_app(settings=settings)).store

    def rename(current):
        return {**current, "fr": "Souliers Rouges"}

    store.modify("translations", {"title": "Red Shoes"}, rename)

    app = create_app(settings=settings)

    entry = get_context(app).store.find_one("translations", {"title": "Red Shoes"})
    assert entry["fr"] == "Souliers Rouges"
    response = app.test_client().get("/api/items?search=red&lang=fr")
    assert [item["title"] for item in response.get_json()["items"]] == ["Souliers Rouges"]


def test_seed_file_is_ignored_when_store_has_a_catalogue() -> None:
    store = InMemoryDocumentStore()
    store.insert_one("items", {"_id": "own-1", "title": "House Blend", "price": 3})

    create_app(store=store, settings=_settings(seed_file=DEMO_CATALOG_FILE))

    assert [item["_id"] for item in store.find("items")] == ["own-1"]
    assert store.find("translations") == []


def test_invalid_seed_file_aborts_startup(tmp_path: Path) -> None:
    seed_file = tmp_path / "seed.yaml"
    seed_file.write_text(
        "products:\n"
        "  - id: p1\n    title: Red Shoes\n    price: 0\n"
        "translations:\n"
        "  - title: Purple Gloves\n    fr: Gants Violets\n",
        encoding="utf-8",
    )
    store = InMemoryDocumentStore()

    with pytest.raises(SeedError, match="price must be positive"):
        create_app(store=store, settings=_settings(seed_file=seed_file))

    assert store.find("items") == []
