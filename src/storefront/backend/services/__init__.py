"""Service-layer helpers for the storefront backend."""

from storefront.backend.app.services.cart_service import (
    add_item,
    get_cart_view,
    remove_item,
    update_item_quantity,
)
from storefront.backend.app.services.catalog_service import list_products

from .request_parser import parse_json_object, parse_model, resolve_request_language
from .response_builder import build_json_response, build_message_response

__all__ = [
    "add_item",
    "build_json_response",
    "build_message_response",
    "get_cart_view",
    "list_products",
    "parse_json_object",
    "parse_model",
    "remove_item",
    "resolve_request_language",
    "update_item_quantity",
]
