"""Test configuration utilities and shared fixtures."""

import sys
from pathlib import Path
from typing import Callable

# Ensure the ``src`` directory is importable when tests are executed without an
# editable install. This keeps developer experience smooth for first-time
# contributors running ``pytest`` directly in VS Code.
ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"
if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

import pytest  # noqa: E402
from flask import Flask  # noqa: E402
from flask.testing import FlaskClient  # noqa: E402

from storefront.backend.app import create_app  # noqa: E402
from storefront.backend.app.auth import issue_access_token  # noqa: E402
from storefront.backend.app.services.document_store import (  # noqa: E402
    InMemoryDocumentStore,
)
from storefront.backend.config.settings import Settings  # noqa: E402

ALLOWED_ORIGIN = "https://shop.test"

PRODUCTS = [
    {"_id": "p1", "title": "Red Shoes", "price": 10, "category": "shoes"},
    {"_id": "p2", "title": "Blue Shirt", "price": 5, "category": "clothing"},
    {"_id": "p3", "title": "Green Hat", "price": 7.5, "category": "accessories"},
    {"_id": "p4", "title": "Red Scarf", "price": 12, "category": "accessories"},
]

TRANSLATIONS = [
    {"title": "Red Shoes", "fr": "Chaussures Rouges", "de": "Rote Schuhe"},
    # Older entries keyed by ``en`` instead of ``title``.
    {"en": "Blue Shirt", "fr": "Chemise Bleue", "de": ""},
]


@pytest.fixture()
def settings() -> Settings:
    """Return deterministic settings that never touch the environment."""

    return Settings(
        allowed_origins=frozenset({ALLOWED_ORIGIN}),
        secret_key="test-secret",
        translation_ttl_seconds=None,
    )


@pytest.fixture()
def store() -> InMemoryDocumentStore:
    """Provide an in-memory store holding a small catalogue."""

    documents = InMemoryDocumentStore()
    for product in PRODUCTS:
        documents.insert_one("items", product)
    for entry in TRANSLATIONS:
        documents.insert_one("translations", entry)
    return documents


@pytest.fixture()
def app(store: InMemoryDocumentStore, settings: Settings) -> Flask:
    """Return a configured Flask application for integration tests."""

    application = create_app(store=store, settings=settings)
    application.config.update(TESTING=True)
    return application


@pytest.fixture()
def client(app: Flask) -> FlaskClient:
    """Provide a test client bound to the configured Flask app."""

    return app.test_client()


@pytest.fixture()
def auth_headers(app: Flask) -> Callable[..., dict[str, str]]:
    """Build ``Authorization`` headers for an arbitrary user id."""

    def build(user_id: str = "user-1", **extra: str) -> dict[str, str]:
        token = issue_access_token(user_id, app=app)
        return {"Authorization": f"Bearer {token}", **extra}

    return build
