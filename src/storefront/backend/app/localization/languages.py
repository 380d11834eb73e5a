"""Language negotiation helpers."""

from __future__ import annotations

import re

BASE_LANGUAGE = "en"

_REGION_SEPARATOR = re.compile(r"[-_]")


def resolve_language(raw: str | None) -> str:
    """Reduce a language preference such as ``fr-CA,en;q=0.8`` to ``fr``.

    Only the first listed tag is considered and quality weights are ignored.
    The result is not checked against any list of known languages; unknown codes
    simply find no translations later on.
    """

    if not raw:
        return BASE_LANGUAGE

    primary = raw.split(",", 1)[0].split(";", 1)[0]
    language = _REGION_SEPARATOR.split(primary.strip(), maxsplit=1)[0].strip().lower()
    if not language or language == "*":
        return BASE_LANGUAGE
    return language


__all__ = ["BASE_LANGUAGE", "resolve_language"]
