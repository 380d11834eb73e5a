"""WSGI entrypoint for deploying the storefront backend behind Passenger."""

import logging

from storefront.backend.app import create_app
from storefront.backend.config.settings import load_settings

settings = load_settings()
logging.basicConfig(
    level=settings.log_level,
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

# Passenger expects a module-level variable named ``application``.
application = create_app(settings=settings)
