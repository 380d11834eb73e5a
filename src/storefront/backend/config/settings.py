"""Runtime settings sourced from ``STOREFRONT_*`` environment variables."""

from __future__ import annotations

import logging
import os
import secrets
from collections.abc import Mapping
from pathlib import Path
from warnings import warn

from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_TTL = 60 * 60 * 24 * 7
DEFAULT_TRANSLATION_TTL = 300


class Settings(BaseModel):
    """Immutable view over the environment used to build the application."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    allowed_origins: frozenset[str] = frozenset()
    database_path: Path | None = None
    secret_key: str = Field(min_length=1)
    token_ttl_seconds: int = Field(default=DEFAULT_TOKEN_TTL, gt=0)
    translation_ttl_seconds: int | None = Field(default=DEFAULT_TRANSLATION_TTL, gt=0)
    seed_file: Path | None = None
    log_level: str = "INFO"


def _parse_allowed_origins(raw: str | None) -> frozenset[str]:
    if not raw:
        return frozenset()

    return frozenset(origin.strip() for origin in raw.split(",") if origin.strip())


def _parse_positive_int(value: str | None, *, env: str) -> int | None:
    if value is None or not value.strip():
        return None
    try:
        parsed = int(value)
    except ValueError:
        logger.warning("Ignoring invalid value for %s: %s", env, value)
        return None
    if parsed <= 0:
        logger.warning("Ignoring non-positive value for %s: %s", env, value)
        return None
    return parsed


def _parse_path(value: str | None) -> Path | None:
    if value is None or not value.strip():
        return None
    return Path(value.strip()).expanduser()


def load_settings(environ: Mapping[str, str] | None = None) -> Settings:
    """Build :class:`Settings` from ``environ`` (defaults to ``os.environ``)."""

    env = os.environ if environ is None else environ

    secret_key = (env.get("STOREFRONT_SECRET_KEY") or "").strip()
    if not secret_key:
        warn(
            "STOREFRONT_SECRET_KEY is not set; generated a throwaway key, "
            "issued access tokens will not survive a restart.",
            stacklevel=2,
        )
        secret_key = secrets.token_urlsafe(32)

    token_ttl = _parse_positive_int(
        env.get("STOREFRONT_TOKEN_TTL"), env="STOREFRONT_TOKEN_TTL"
    )
    translation_ttl = _parse_positive_int(
        env.get("STOREFRONT_TRANSLATION_TTL"), env="STOREFRONT_TRANSLATION_TTL"
    )

    log_level = (env.get("STOREFRONT_LOG_LEVEL") or "INFO").strip().upper()
    if log_level not in logging.getLevelNamesMapping():
        logger.warning("Ignoring unknown STOREFRONT_LOG_LEVEL: %s", log_level)
        log_level = "INFO"

    return Settings(
        allowed_origins=_parse_allowed_origins(env.get("STOREFRONT_ALLOWED_ORIGINS")),
        database_path=_parse_path(env.get("STOREFRONT_DB")),
        secret_key=secret_key,
        token_ttl_seconds=token_ttl or DEFAULT_TOKEN_TTL,
        translation_ttl_seconds=translation_ttl or DEFAULT_TRANSLATION_TTL,
        seed_file=_parse_path(env.get("STOREFRONT_SEED_FILE")),
        log_level=log_level,
    )


__all__ = ["Settings", "load_settings", "DEFAULT_TOKEN_TTL", "DEFAULT_TRANSLATION_TTL"]
