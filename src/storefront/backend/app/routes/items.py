"""Public product catalogue listing."""

from __future__ import annotations

from typing import Any

from flask import Blueprint, request

from storefront.backend.app.context import get_context
from storefront.backend.app.models import CatalogQuery
from storefront.backend.services import (
    build_json_response,
    list_products,
    parse_model,
    resolve_request_language,
)

blueprint = Blueprint("items", __name__, url_prefix="/api/items")


@blueprint.get("")
def list_items() -> tuple[Any, int]:
    """List products, optionally filtered by ``search`` and ``category``."""

    query = parse_model(CatalogQuery, request.args.to_dict(), subject="catalogue query")
    language = resolve_request_language(request)
    context = get_context()

    items = list_products(
        context.store,
        context.translations,
        language,
        search=query.search,
        category=query.category,
    )
    return build_json_response({"items": items, "language": language})
