"""
AllThatPrinting Application Package

FLOW OVERVIEW
- create_app(test_config=None)
  • Build Flask app, apply config (test or env-based), fill shop defaults, init extensions (DB, Mail).
  • Register blueprints: main (/health, /api/status, /api/metrics) and one /api blueprint per resource area.
  • Register global JSON error handlers and per-request Prometheus metrics.
"""

import logging
import time

from flask import Flask, g, request
from flask_mail import Mail

from .models import db
from .routes import (
    auth_bp, main_bp, catalog_bp, cart_bp, orders_bp, payments_bp, refunds_bp,
    community_bp, notifications_bp, seller_bp, admin_bp, content_bp,
)
from .config import Config, APP_DEFAULTS

mail = Mail()


def create_app(test_config=None):
    """Application factory pattern for production deployment"""
    app = Flask(__name__)

    # Configuration
    if test_config:
        # Use test configuration if provided
        app.config.update(test_config)
    else:
        # Use environment-based configuration
        app.config.from_object(Config())
    for key, value in APP_DEFAULTS.items():
        app.config.setdefault(key, value)
    app.json.ensure_ascii = False

    if not app.debug and not app.testing:
        app.logger.setLevel(logging.INFO)

    # Initialize extensions
    db.init_app(app)
    mail.init_app(app)

    # Register blueprints
    app.register_blueprint(main_bp)
    for blueprint in (auth_bp, catalog_bp, cart_bp, orders_bp, payments_bp, refunds_bp,
                      community_bp, notifications_bp, seller_bp, admin_bp, content_bp):
        app.register_blueprint(blueprint, url_prefix='/api')

    # Register error handlers
    from .utils.error_handlers import register_error_handlers
    register_error_handlers(app)

    _register_request_metrics(app)

    return app


def _register_request_metrics(app):
    from .utils.prom_metrics import observe_request

    @app.before_request
    def start_timer():
        g.request_started = time.perf_counter()

    @app.after_request
    def record_request(response):
        started = g.pop('request_started', None)
        if started is not None:
            endpoint = request.url_rule.rule if request.url_rule else 'unmatched'
            observe_request(endpoint, response.status_code, time.perf_counter() - started)
        return response
