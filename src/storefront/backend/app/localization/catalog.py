"""Product title translations backed by the ``translations`` collection.

Each translation entry is keyed by a product's canonical (English) title and
maps language codes to localized titles::

    {"title": "Red Shoes", "fr": "Chaussures Rouges", "de": "Rote Schuhe"}

Older entries that carry the canonical title under ``en`` instead of ``title``
are accepted as well. Entries are folded into an index once and cached by
:class:`TranslationCatalogue`; rendering never scans the raw entries.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timedelta, timezone
from threading import Lock
from types import MappingProxyType
from typing import Any

from storefront.backend.app.services.document_store import DocumentStore

from .languages import BASE_LANGUAGE

TRANSLATIONS_COLLECTION = "translations"

TranslationIndex = Mapping[str, Mapping[str, str]]

_EMPTY_INDEX: TranslationIndex = MappingProxyType({})
_RESERVED_FIELDS = frozenset({"_id", "title", BASE_LANGUAGE})

_LOGGER = logging.getLogger(__name__)


def _canonical_title(entry: Mapping[str, Any]) -> str | None:
    for field in ("title", BASE_LANGUAGE):
        value = entry.get(field)
        if isinstance(value, str) and value:
            return value
    return None


def build_translation_index(entries: Iterable[Mapping[str, Any]]) -> TranslationIndex:
    """Fold raw translation entries into a canonical-title lookup table."""

    index: dict[str, dict[str, str]] = {}
    for entry in entries:
        title = _canonical_title(entry)
        if title is None:
            _LOGGER.warning(
                "Skipping translation entry %s without a canonical title",
                entry.get("_id", "<unknown>"),
            )
            continue

        variants = index.setdefault(title, {})
        for field, value in entry.items():
            language = field.lower()
            if language in _RESERVED_FIELDS:
                continue
            if isinstance(value, str) and value.strip():
                variants[language] = value

    return MappingProxyType(
        {title: MappingProxyType(variants) for title, variants in index.items()}
    )


def overlay_title(title: str, language: str, index: TranslationIndex) -> str:
    """Return the display title for ``title`` in ``language``.

    Missing entries, missing languages and blank values all fall back to the
    canonical title.
    """

    if not isinstance(title, str):
        return title

    localized = index.get(title, {}).get(language)
    return localized if localized else title


def localize_product(
    product: Mapping[str, Any], language: str, index: TranslationIndex
) -> dict[str, Any]:
    """Render a copy of ``product`` with its display title and string ``id``."""

    rendered = dict(product)
    if "title" in rendered:
        rendered["title"] = overlay_title(rendered["title"], language, index)
    if rendered.get("_id") is not None:
        rendered["id"] = str(rendered["_id"])
    return rendered


class TranslationCatalogue:
    """Cache of the translation index with time-based refresh."""

    def __init__(
        self,
        store: DocumentStore,
        *,
        ttl_seconds: int | None = 300,
        clock: Callable[[], datetime] | None = None,
    ) -> None:
        if ttl_seconds is not None and ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive when provided")

        self._store = store
        self._ttl = timedelta(seconds=ttl_seconds) if ttl_seconds is not None else None
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self._index: TranslationIndex = _EMPTY_INDEX
        self._loaded_at: datetime | None = None
        self._lock = Lock()

    def _stale_locked(self, now: datetime) -> bool:
        if self._loaded_at is None:
            return True
        return self._ttl is not None and now - self._loaded_at >= self._ttl

    def _rebuild_locked(self, now: datetime) -> TranslationIndex:
        entries = self._store.find(TRANSLATIONS_COLLECTION)
        self._index = build_translation_index(entries)
        self._loaded_at = now
        _LOGGER.debug("Rebuilt translation index with %d titles", len(self._index))
        return self._index

    def index(self) -> TranslationIndex:
        """Return the current index, rebuilding it once the TTL has elapsed."""

        now = self._clock()
        with self._lock:
            if self._stale_locked(now):
                return self._rebuild_locked(now)
            return self._index

    def refresh(self) -> TranslationIndex:
        """Rebuild the index immediately, e.g. after translations were imported."""

        with self._lock:
            return self._rebuild_locked(self._clock())

    def localize(self, title: str, language: str) -> str:
        return overlay_title(title, language, self.index())


__all__ = [
    "TRANSLATIONS_COLLECTION",
    "TranslationCatalogue",
    "TranslationIndex",
    "build_translation_index",
    "localize_product",
    "overlay_title",
]
