"""Cart queries and mutations.

Carts are stored one document per user::

    {"_id": "...", "userId": "u-1", "items": [{"itemId": "p1", "quantity": 2}]}

Every mutation goes through :meth:`DocumentStore.modify` so that the read of
the current lines and the write of the new ones happen atomically.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from storefront.backend.app.localization import TranslationCatalogue, localize_product
from storefront.backend.app.models import CartEntry, CartLine, CartView

from .catalog_service import PRODUCTS_COLLECTION
from .document_store import Document, DocumentStore

CARTS_COLLECTION = "carts"

LineChange = Callable[[list[CartLine]], list[CartLine]]

_LOGGER = logging.getLogger(__name__)


def _read_lines(cart: Mapping[str, Any] | None) -> list[CartLine]:
    if not cart:
        return []

    raw_items = cart.get("items")
    if not isinstance(raw_items, list):
        return []

    lines: list[CartLine] = []
    for raw in raw_items:
        line = CartLine.from_document(raw) if isinstance(raw, Mapping) else None
        if line is None:
            _LOGGER.warning("Ignoring malformed line item in cart %s: %r", cart.get("_id"), raw)
            continue
        lines.append(line)
    return lines


def _merge_lines(lines: Iterable[CartLine]) -> list[CartLine]:
    """Collapse repeated item ids so each product appears on one line."""

    quantities: dict[str, int] = {}
    for line in lines:
        quantities[line.item_id] = quantities.get(line.item_id, 0) + line.quantity
    return [CartLine(item_id=item_id, quantity=qty) for item_id, qty in quantities.items()]


def _mutate_cart(
    store: DocumentStore,
    user_id: str,
    change: LineChange,
    *,
    create: bool,
) -> Document | None:
    def mutation(current: Document | None) -> Document | None:
        if current is None and not create:
            return None

        cart = current or {"userId": user_id}
        lines = _merge_lines(change(_read_lines(cart)))
        cart["items"] = [line.as_document() for line in lines if line.quantity >= 1]
        return cart

    return store.modify(CARTS_COLLECTION, {"userId": user_id}, mutation)


def add_item(store: DocumentStore, user_id: str, item_id: str, quantity: int = 1) -> None:
    """Append ``item_id`` to the user's cart or increase its quantity.

    The cart is created on first use.
    """

    if quantity < 1:
        raise ValueError("quantity must be at least 1")

    def change(lines: list[CartLine]) -> list[CartLine]:
        return [*lines, CartLine(item_id=item_id, quantity=quantity)]

    _mutate_cart(store, user_id, change, create=True)
    _LOGGER.debug("Added %d x %s to cart of %s", quantity, item_id, user_id)


def update_item_quantity(store: DocumentStore, user_id: str, item_id: str, quantity: int) -> None:
    """Set the quantity of an existing line; ``quantity <= 0`` removes it.

    Updating a product that is not in the cart leaves the cart unchanged.
    """

    if quantity <= 0:
        remove_item(store, user_id, item_id)
        return

    def change(lines: list[CartLine]) -> list[CartLine]:
        return [
            CartLine(item_id=line.item_id, quantity=quantity) if line.item_id == item_id else line
            for line in lines
        ]

    _mutate_cart(store, user_id, change, create=False)
    _LOGGER.debug("Set %s to %d in cart of %s", item_id, quantity, user_id)


def remove_item(store: DocumentStore, user_id: str, item_id: str) -> None:
    """Remove ``item_id`` from the user's cart; absent items are ignored."""

    def change(lines: list[CartLine]) -> list[CartLine]:
        return [line for line in lines if line.item_id != item_id]

    _mutate_cart(store, user_id, change, create=False)
    _LOGGER.debug("Removed %s from cart of %s", item_id, user_id)


def get_cart_view(
    store: DocumentStore,
    catalogue: TranslationCatalogue,
    user_id: str,
    language: str,
) -> CartView:
    """Render the user's cart with localized product titles and a fresh total.

    Lines whose product no longer exists are left out of ``items`` and their
    ids reported in ``unavailable``; the stored cart itself is not modified.
    """

    cart = store.find_one(CARTS_COLLECTION, {"userId": user_id})
    lines = _read_lines(cart)
    if not lines:
        return CartView(language=language)

    products = store.find_by_ids(PRODUCTS_COLLECTION, (line.item_id for line in lines))
    index = catalogue.index()

    entries: list[CartEntry] = []
    unavailable: list[str] = []
    for line in lines:
        product = products.get(line.item_id)
        if product is None:
            unavailable.append(line.item_id)
            continue
        entries.append(
            CartEntry(quantity=line.quantity, product=localize_product(product, language, index))
        )

    if unavailable:
        _LOGGER.info("Cart of %s references missing products: %s", user_id, unavailable)

    return CartView(language=language, items=tuple(entries), unavailable=tuple(unavailable))


__all__ = [
    "CARTS_COLLECTION",
    "add_item",
    "get_cart_view",
    "remove_item",
    "update_item_quantity",
]
