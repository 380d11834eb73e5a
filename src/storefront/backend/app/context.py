"""Per-application collaborators shared by the request handlers."""

from __future__ import annotations

from dataclasses import dataclass

from flask import Flask, current_app

from storefront.backend.app.localization import TranslationCatalogue
from storefront.backend.app.services.document_store import DocumentStore
from storefront.backend.config.settings import Settings

EXTENSION_KEY = "storefront"


@dataclass(frozen=True)
class StorefrontContext:
    """Storage handle and translation cache injected into every handler."""

    settings: Settings
    store: DocumentStore
    translations: TranslationCatalogue


def install_context(app: Flask, context: StorefrontContext) -> None:
    app.extensions[EXTENSION_KEY] = context


def get_context(app: Flask | None = None) -> StorefrontContext:
    return (app or current_app).extensions[EXTENSION_KEY]


__all__ = ["StorefrontContext", "get_context", "install_context"]
