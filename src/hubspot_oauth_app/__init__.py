import logging

import requests
from flask import Flask
from flask_wtf import CSRFProtect

from . import session
from .auth import auth_bp
from .config import BaseConfig, get_config_class
from .main import main_bp, webhook
from .oauth import TokenExchangeClient
from .token_store import InMemoryTokenStore, TokenStore


csrf = CSRFProtect()


def _configure_logging(app: Flask) -> None:
    """Configure application logging from the LOG_LEVEL config value."""

    log_level_name = app.config.get("LOG_LEVEL", "INFO")
    log_level = getattr(logging, str(log_level_name).upper(), logging.INFO)
    logging.basicConfig(level=log_level)
    app.logger.setLevel(log_level)


def _register_error_handlers(app: Flask) -> None:
    """Register simple centralized error handlers."""

    @app.errorhandler(400)
    def handle_bad_request(error):  # type: ignore[unused-argument]
        app.logger.warning("Bad request: %s", error)
        return "Bad request", 400

    @app.errorhandler(500)
    def handle_internal_error(error):  # type: ignore[unused-argument]
        app.logger.error("Internal server error: %s", error)
        return "Internal server error", 500


def create_app(
    config_class: type[BaseConfig] | None = None,
    token_store: TokenStore | None = None,
    http: requests.Session | None = None,
) -> Flask:
    """Application factory for the HubSpot OAuth quickstart.

    ``token_store`` and ``http`` let callers swap the in-memory store and
    the outbound HTTP session, e.g. for tests.
    """

    if config_class is None:
        config_class = get_config_class()

    app = Flask(__name__)
    app.config.from_object(config_class)

    _configure_logging(app)
    # Fail before any route exists, and therefore before the port is bound.
    config_class.validate(app.config)

    # Guards any form POST routes; provider webhooks carry no CSRF token.
    csrf.init_app(app)
    csrf.exempt(webhook)

    store = token_store if token_store is not None else InMemoryTokenStore()
    app.extensions["token_store"] = store
    app.extensions["oauth_client"] = TokenExchangeClient(app.config, store, http=http)

    session.init_app(app)
    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    _register_error_handlers(app)

    app.logger.info(
        "Using scopes %r, redirect URI %s", app.config["SCOPE"], app.config["REDIRECT_URI"]
    )
    return app
