"""Application factory for the storefront backend services."""

from __future__ import annotations

import logging
from warnings import warn

from flask import Flask, jsonify, request
from flask_cors import CORS
from werkzeug.exceptions import BadRequest, HTTPException

from storefront.backend.config.settings import Settings, load_settings
from storefront.backend.version import get_project_version

from .auth import load_request_identity
from .context import StorefrontContext, install_context
from .http import (
    GENERIC_ERROR_MESSAGE,
    RequestValidationError,
    UnauthenticatedError,
    problem_response,
)
from .localization import TRANSLATIONS_COLLECTION, TranslationCatalogue
from .routes import register_routes
from .services.catalog_service import PRODUCTS_COLLECTION
from .services.document_store import (
    DocumentStore,
    InMemoryDocumentStore,
    SQLiteDocumentStore,
    StorageError,
)

_LOGGER = logging.getLogger(__name__)


def build_document_store(settings: Settings) -> DocumentStore:
    """Open the configured SQLite store, or an in-memory one when unset."""

    if settings.database_path is not None:
        _LOGGER.info("Using SQLite document store at %s", settings.database_path)
        return SQLiteDocumentStore(settings.database_path)

    warn(
        "STOREFRONT_DB is not set; carts and products live in memory only.",
        stacklevel=2,
    )
    return InMemoryDocumentStore()


def _seed_store(store: DocumentStore, settings: Settings) -> None:
    if settings.seed_file is None:
        return

    # The seed CLI imports this package, so the dependency stays local.
    from storefront.backend.config.seed import (
        SeedError,
        apply_seed,
        load_seed_file,
        validate_seed_catalogue,
    )

    if store.find_one(PRODUCTS_COLLECTION, {}) or store.find_one(
        TRANSLATIONS_COLLECTION, {}
    ):
        _LOGGER.info("Document store already holds a catalogue; skipping seed")
        return

    catalogue = load_seed_file(settings.seed_file)
    issues = validate_seed_catalogue(catalogue)
    if issues:
        raise SeedError(
            f"Seed file {settings.seed_file} has {len(issues)} issue(s): "
            + "; ".join(issues)
        )

    inserted = apply_seed(store, catalogue)
    _LOGGER.info(
        "Seeded %d product(s) and %d translation(s) from %s",
        inserted.products,
        inserted.translations,
        settings.seed_file,
    )


def _register_error_handlers(app: Flask) -> None:
    @app.errorhandler(UnauthenticatedError)
    def handle_unauthenticated(error: UnauthenticatedError):
        """Reject requests that lack a verified user identity."""

        return problem_response(
            "unauthenticated", status=401, message=error.message
        ).to_response()

    @app.errorhandler(RequestValidationError)
    def handle_validation_error(error: RequestValidationError):
        """Surface body and query validation problems to clients."""

        return problem_response(
            "validation_error", status=400, message=str(error)
        ).to_response()

    @app.errorhandler(BadRequest)
    def handle_bad_request(error: BadRequest):
        """Return consistent JSON responses for malformed payloads."""

        message = error.description or "Invalid request"
        return problem_response("bad_request", status=400, message=message).to_response()

    @app.errorhandler(HTTPException)
    def handle_http_exception(error: HTTPException):
        name = (error.name or "error").lower().replace(" ", "_")
        return problem_response(
            name, status=error.code or 500, message=error.description
        ).to_response()

    @app.errorhandler(StorageError)
    def handle_storage_error(error: StorageError):
        _LOGGER.error("Storage failure while serving %s: %s", request.path, error)
        return problem_response(
            "internal_error", status=500, message=GENERIC_ERROR_MESSAGE
        ).to_response()

    @app.errorhandler(Exception)
    def handle_unexpected_error(error: Exception):
        _LOGGER.exception("Unhandled error while serving %s", request.path)
        return problem_response(
            "internal_error", status=500, message=GENERIC_ERROR_MESSAGE
        ).to_response()


def create_app(
    *,
    store: DocumentStore | None = None,
    settings: Settings | None = None,
) -> Flask:
    """Create and configure the Flask application instance.

    ``store`` lets callers (tests, scripts) inject a storage handle; otherwise
    one is built from ``settings``.
    """

    settings = settings or load_settings()
    store = store if store is not None else build_document_store(settings)

    app = Flask(__name__)
    app.config.update(
        SECRET_KEY=settings.secret_key,
        STOREFRONT_TOKEN_TTL=settings.token_ttl_seconds,
    )

    if not settings.allowed_origins:
        warn(
            "No allowed origins configured; cross-origin requests will be rejected.",
            stacklevel=2,
        )

    CORS(
        app,
        resources={r"/api/*": {"origins": sorted(settings.allowed_origins)}},
        supports_credentials=False,
        methods=["GET", "OPTIONS", "POST"],
        allow_headers=["Content-Type", "Authorization", "Accept-Language"],
    )

    _seed_store(store, settings)
    translations = TranslationCatalogue(store, ttl_seconds=settings.translation_ttl_seconds)
    install_context(
        app,
        StorefrontContext(settings=settings, store=store, translations=translations),
    )

    app.before_request(load_request_identity)
    register_routes(app)
    _register_error_handlers(app)

    @app.route("/health", methods=["GET"])
    def health_check():
        """Simple health check endpoint for infrastructure monitoring."""

        return jsonify({"status": "ok", "version": get_project_version()})

    return app


__all__ = ["build_document_store", "create_app"]
