"""Pydantic models describing the public API surface."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

__all__ = [
    "CartItemReference",
    "AddCartItemRequest",
    "UpdateCartItemRequest",
    "RemoveCartItemRequest",
    "CatalogQuery",
    "format_validation_error",
]


class CartItemReference(BaseModel):
    """Body shared by every cart mutation: the product being changed.

    Unknown fields are ignored so that older clients still sending ``userId``
    keep working; the acting user never comes from the body.
    """

    model_config = ConfigDict(extra="ignore", populate_by_name=True, frozen=True)

    item_id: str = Field(alias="itemId", min_length=1)

    @field_validator("item_id", mode="before")
    @classmethod
    def _coerce_item_id(cls, value: Any) -> Any:
        if isinstance(value, bool):
            return value
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str):
            return value.strip()
        return value


class AddCartItemRequest(CartItemReference):
    """Add ``quantity`` units of a product, one unit when omitted."""

    quantity: int = Field(default=1, ge=1)

    @field_validator("quantity", mode="before")
    @classmethod
    def _default_falsy_quantity(cls, value: Any) -> Any:
        if not value:
            return 1
        return value


class UpdateCartItemRequest(CartItemReference):
    """Set an explicit quantity; zero or less removes the line."""

    quantity: int


class RemoveCartItemRequest(CartItemReference):
    """Drop a product from the cart."""


class CatalogQuery(BaseModel):
    """Optional filters accepted by the catalogue listing."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    search: str | None = None
    category: str | None = None

    @field_validator("search", "category", mode="before")
    @classmethod
    def _blank_to_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value


def format_validation_error(error: ValidationError, *, subject: str = "request") -> str:
    """Return a concise human-readable description of validation issues."""

    messages: list[str] = []
    for issue in error.errors():
        location = ".".join(str(part) for part in issue.get("loc", ()))
        message = issue.get("msg", "Invalid value")
        if issue.get("type") == "missing" and location:
            messages.append(f"{location} is required")
        elif location:
            messages.append(f"{location}: {message}")
        else:
            messages.append(message)

    details = "; ".join(messages) if messages else str(error)
    return f"Invalid {subject}: {details}"
