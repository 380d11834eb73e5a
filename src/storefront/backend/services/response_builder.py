"""Utilities for serialising successful responses."""

from __future__ import annotations

from collections.abc import Mapping
from http import HTTPStatus
from typing import Any, Tuple

from flask import jsonify

ResponseTuple = Tuple[Any, int]


def build_json_response(
    payload: Mapping[str, Any], status: int = HTTPStatus.OK
) -> ResponseTuple:
    """Return a Flask JSON response for ``payload``."""

    return jsonify(payload), int(status)


def build_message_response(message: str) -> ResponseTuple:
    """Return the ``{"message": ...}`` acknowledgement used by cart mutations."""

    return build_json_response({"message": message})
