"""Request models and the read-side cart representation.

Incoming bodies are validated with the Pydantic models from :mod:`.api`; the
cart read path assembles lightweight frozen dataclasses so that totals are
always derived from the current product prices rather than stored.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any

from .api import (
    AddCartItemRequest,
    CartItemReference,
    CatalogQuery,
    RemoveCartItemRequest,
    UpdateCartItemRequest,
    format_validation_error,
)

__all__ = [
    "AddCartItemRequest",
    "CartEntry",
    "CartItemReference",
    "CartLine",
    "CartView",
    "CatalogQuery",
    "RemoveCartItemRequest",
    "UpdateCartItemRequest",
    "format_validation_error",
    "round_currency",
]


def round_currency(value: float) -> float:
    """Round monetary amounts to two decimals."""

    return round(value, 2)


@dataclass(frozen=True)
class CartLine:
    """A stored ``{itemId, quantity}`` pair."""

    item_id: str
    quantity: int

    @classmethod
    def from_document(cls, raw: Mapping[str, Any]) -> "CartLine | None":
        item_id = raw.get("itemId")
        quantity = raw.get("quantity")
        if item_id in (None, "") or not isinstance(quantity, int) or quantity < 1:
            return None
        return cls(item_id=str(item_id), quantity=quantity)

    def as_document(self) -> dict[str, Any]:
        return {"itemId": self.item_id, "quantity": self.quantity}


@dataclass(frozen=True)
class CartEntry:
    """A cart line joined with its (localized) product record."""

    quantity: int
    product: Mapping[str, Any]

    @property
    def unit_price(self) -> float:
        price = self.product.get("price", 0)
        return price if isinstance(price, (int, float)) and not isinstance(price, bool) else 0

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity

    def as_dict(self) -> dict[str, Any]:
        return {"quantity": self.quantity, "product": dict(self.product)}


@dataclass(frozen=True)
class CartView:
    """Rendered cart returned by ``GET /api/cart``."""

    language: str
    items: tuple[CartEntry, ...] = ()
    unavailable: tuple[str, ...] = ()

    @property
    def total(self) -> float:
        return round_currency(sum(entry.subtotal for entry in self.items))

    def as_dict(self) -> dict[str, Any]:
        return {
            "items": [entry.as_dict() for entry in self.items],
            "total": self.total,
            "unavailable": list(self.unavailable),
            "language": self.language,
        }
