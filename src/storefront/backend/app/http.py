"""HTTP helper utilities shared across Flask blueprints."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Mapping

from flask import jsonify

GENERIC_ERROR_MESSAGE = "Internal server error"
MISSING_USER_MESSAGE = "User ID is missing."


class UnauthenticatedError(Exception):
    """Raised when a request carries no verified user identity."""

    def __init__(self, message: str = MISSING_USER_MESSAGE) -> None:
        super().__init__(message)
        self.message = message


class RequestValidationError(ValueError):
    """Raised when a request body or query string fails validation."""


@dataclass(frozen=True)
class ProblemResponse:
    """Lightweight representation of an RFC 7807-style error payload."""

    error: str
    status: int
    message: str | None = None
    extra: Mapping[str, Any] | None = None

    def as_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error": self.error}
        if self.message:
            payload["message"] = self.message
        if self.extra:
            payload.update(self.extra)
        return payload

    def to_response(self) -> tuple[Any, int]:
        """Convert the problem payload into a Flask response tuple."""

        return jsonify(self.as_dict()), self.status


def problem_response(
    error: str,
    *,
    status: int,
    message: str | None = None,
    **extra: Any,
) -> ProblemResponse:
    """Convenience factory mirroring Flask's ``jsonify`` interface."""

    additional: Mapping[str, Any] | None = extra or None
    return ProblemResponse(error=error, status=status, message=message, extra=additional)


__all__ = [
    "GENERIC_ERROR_MESSAGE",
    "MISSING_USER_MESSAGE",
    "ProblemResponse",
    "RequestValidationError",
    "UnauthenticatedError",
    "problem_response",
]
