"""Helpers for normalising incoming requests."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, TypeVar

from flask import Request
from pydantic import BaseModel, ValidationError
from werkzeug.exceptions import BadRequest

from storefront.backend.app.http import RequestValidationError
from storefront.backend.app.localization import resolve_language
from storefront.backend.app.models import format_validation_error

ModelT = TypeVar("ModelT", bound=BaseModel)


def resolve_request_language(req: Request) -> str:
    """Pick the display language from ``?lang=`` or ``Accept-Language``."""

    explicit = req.args.get("lang")
    if explicit and explicit.strip():
        return resolve_language(explicit)
    return resolve_language(req.headers.get("Accept-Language"))


def parse_json_object(req: Request) -> dict[str, Any]:
    """Return the JSON object body of ``req``; an empty body yields ``{}``."""

    data = req.get_json(silent=True)
    if data is None:
        if req.get_data(cache=True):
            raise BadRequest("Request body must be valid JSON")
        return {}
    if not isinstance(data, Mapping):
        raise BadRequest("Request JSON must be an object")
    return dict(data)


def parse_model(model: type[ModelT], data: Mapping[str, Any], *, subject: str) -> ModelT:
    """Validate ``data`` against ``model``, raising ``RequestValidationError``."""

    try:
        return model.model_validate(data)
    except ValidationError as error:
        raise RequestValidationError(format_validation_error(error, subject=subject)) from error


__all__ = ["parse_json_object", "parse_model", "resolve_request_language"]
