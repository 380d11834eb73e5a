"""Language resolution and product title translation helpers."""

from .catalog import (
    TRANSLATIONS_COLLECTION,
    TranslationCatalogue,
    TranslationIndex,
    build_translation_index,
    localize_product,
    overlay_title,
)
from .languages import BASE_LANGUAGE, resolve_language

__all__ = [
    "BASE_LANGUAGE",
    "TRANSLATIONS_COLLECTION",
    "TranslationCatalogue",
    "TranslationIndex",
    "build_translation_index",
    "localize_product",
    "overlay_title",
    "resolve_language",
]
