"""Read side of the product catalogue."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from storefront.backend.app.localization import TranslationCatalogue, localize_product

from .document_store import DocumentStore

PRODUCTS_COLLECTION = "items"


def _title_contains(product: Mapping[str, Any], needle: str) -> bool:
    title = product.get("title")
    return isinstance(title, str) and needle in title.casefold()


def list_products(
    store: DocumentStore,
    catalogue: TranslationCatalogue,
    language: str,
    *,
    search: str | None = None,
    category: str | None = None,
) -> list[dict[str, Any]]:
    """Return catalogue products rendered for ``language``.

    ``search`` is a case-insensitive substring match against the canonical
    title and ``category`` an exact match. Filtering always happens on the
    stored English titles, never on the translated ones.
    """

    filter = {"category": category} if category else None
    products = store.find(PRODUCTS_COLLECTION, filter)

    if search:
        needle = search.casefold()
        products = [product for product in products if _title_contains(product, needle)]

    index = catalogue.index()
    return [localize_product(product, language, index) for product in products]


__all__ = ["PRODUCTS_COLLECTION", "list_products"]
