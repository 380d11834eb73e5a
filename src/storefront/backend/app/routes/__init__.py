"""Blueprint registrations for application routes."""

from flask import Flask

from .cart import blueprint as cart_blueprint
from .items import blueprint as items_blueprint


def register_routes(app: Flask) -> None:
    """Register all Flask blueprints with the provided application."""

    app.register_blueprint(cart_blueprint)
    app.register_blueprint(items_blueprint)
