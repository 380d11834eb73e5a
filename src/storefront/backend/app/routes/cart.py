"""REST endpoints for the signed-in user's shopping cart."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from storefront.backend.app.auth import current_user_id
from storefront.backend.app.context import get_context
from storefront.backend.app.models import (
    AddCartItemRequest,
    RemoveCartItemRequest,
    UpdateCartItemRequest,
)
from storefront.backend.services import (
    add_item,
    build_json_response,
    build_message_response,
    get_cart_view,
    parse_json_object,
    parse_model,
    remove_item,
    resolve_request_language,
    update_item_quantity,
)

blueprint = Blueprint("cart", __name__, url_prefix="/api/cart")


@blueprint.get("")
def get_cart() -> tuple[Any, int]:
    """Return the cart with localized titles and a freshly computed total."""

    user_id = current_user_id()
    context = get_context()
    view = get_cart_view(
        context.store,
        context.translations,
        user_id,
        resolve_request_language(request),
    )
    return build_json_response(view.as_dict())


@blueprint.post("/add")
def add_to_cart() -> tuple[Any, int]:
    user_id = current_user_id()
    body = parse_model(AddCartItemRequest, parse_json_object(request), subject="cart item")

    add_item(get_context().store, user_id, body.item_id, body.quantity)
    return build_message_response("Item added successfully")


@blueprint.post("/update")
def update_cart_item() -> tuple[Any, int]:
    user_id = current_user_id()
    body = parse_model(UpdateCartItemRequest, parse_json_object(request), subject="cart item")

    update_item_quantity(get_context().store, user_id, body.item_id, body.quantity)
    return build_message_response("Quantity updated")


@blueprint.post("/remove")
def remove_from_cart() -> tuple[Any, int]:
    user_id = current_user_id()
    body = parse_model(RemoveCartItemRequest, parse_json_object(request), subject="cart item")

    remove_item(get_context().store, user_id, body.item_id)
    return build_message_response("Item removed")
