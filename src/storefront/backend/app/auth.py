"""Resolve the acting user from verified credentials only.

Two sources are trusted, both signed with the application's secret key:

* ``Authorization: Bearer <token>`` carrying a token from
  :func:`issue_access_token`;
* the Flask session cookie with a ``user_id`` entry.

A ``userId`` sent in the request body is never consulted.
"""

from __future__ import annotations

import logging

from flask import Flask, current_app, g, request, session
from itsdangerous import BadSignature, SignatureExpired, URLSafeTimedSerializer

from .http import UnauthenticatedError

TOKEN_SALT = "storefront.access-token"

_LOGGER = logging.getLogger(__name__)


def _serializer(app: Flask) -> URLSafeTimedSerializer:
    return URLSafeTimedSerializer(app.config["SECRET_KEY"], salt=TOKEN_SALT)


def issue_access_token(user_id: str, *, app: Flask | None = None) -> str:
    """Return a signed bearer token identifying ``user_id``."""

    if not user_id:
        raise ValueError("user_id must not be empty")
    return _serializer(app or current_app).dumps({"uid": str(user_id)})


def _extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization:
        return None

    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise UnauthenticatedError("Authorization header must use the Bearer scheme")
    return token.strip()


def _user_from_token(token: str) -> str:
    max_age = current_app.config["STOREFRONT_TOKEN_TTL"]
    try:
        payload = _serializer(current_app).loads(token, max_age=max_age)
    except SignatureExpired as exc:
        raise UnauthenticatedError("Access token has expired") from exc
    except BadSignature as exc:
        raise UnauthenticatedError("Access token is invalid") from exc

    user_id = payload.get("uid") if isinstance(payload, dict) else None
    if not isinstance(user_id, str) or not user_id:
        raise UnauthenticatedError("Access token is invalid")
    return user_id


def load_request_identity() -> None:
    """``before_request`` hook storing the verified user id on ``g``.

    Credentials that are present but invalid are recorded as an error and only
    raised when a handler actually asks for the user, so public endpoints keep
    working for clients holding a stale token.
    """

    g.user_id = None
    g.identity_error = None

    try:
        token = _extract_bearer_token(request.headers.get("Authorization"))
        if token is not None:
            g.user_id = _user_from_token(token)
            return
    except UnauthenticatedError as exc:
        _LOGGER.info("Rejected credentials for %s: %s", request.path, exc.message)
        g.identity_error = exc
        return

    session_user = session.get("user_id")
    if session_user:
        g.user_id = str(session_user)


def current_user_id() -> str:
    """Return the verified user id or raise :class:`UnauthenticatedError`."""

    error = g.get("identity_error")
    if error is not None:
        raise error

    user_id = g.get("user_id")
    if not user_id:
        raise UnauthenticatedError()
    return user_id


__all__ = ["TOKEN_SALT", "current_user_id", "issue_access_token", "load_request_identity"]
