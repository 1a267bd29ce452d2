# tlsguard/__init__.py
"""
App factory for the TLS compliance service.

    - Logging level from TLSGUARD_ENV (INFO in production, DEBUG otherwise)
    - One blueprint: /tls
    - JSON error handlers, tracebacks are logged and never returned
"""

from __future__ import annotations

import logging
import traceback

from flask import Flask, jsonify

from tlsguard import config as settings

error_logger = logging.getLogger("tlsguard.errors")


def create_app() -> Flask:
    from tlsguard.api import tls_bp

    app = Flask(__name__)

    # ── Logging ──────────────────────────────────────────────────────
    if settings.is_production():
        logging.basicConfig(
            level=logging.INFO,
            format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
        )
        app.logger.setLevel(logging.INFO)
    else:
        logging.basicConfig(
            level=logging.DEBUG,
            format="%(asctime)s %(levelname)-7s [%(name)s] %(message)s",
            datefmt="%H:%M:%S",
        )
        app.logger.setLevel(logging.DEBUG)

    logging.getLogger("werkzeug").setLevel(logging.INFO)
    # ─────────────────────────────────────────────────────────────────

    # ── Blueprints ───────────────────────────────────────────────────
    app.register_blueprint(tls_bp)

    # ── Global Error Handlers ────────────────────────────────────────

    @app.errorhandler(400)
    def bad_request(e):
        return jsonify({
            "error": "Bad request",
            "message": str(e.description) if hasattr(e, "description") else "The request was malformed or invalid.",
        }), 400

    @app.errorhandler(404)
    def not_found(e):
        return jsonify({
            "error": "Not found",
            "message": "The requested resource was not found.",
        }), 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return jsonify({
            "error": "Method not allowed",
            "message": "This HTTP method is not allowed for this endpoint.",
        }), 405

    @app.errorhandler(500)
    def internal_error(e):
        error_logger.error(
            "500 Internal Server Error:\n%s", traceback.format_exc()
        )
        return jsonify({
            "error": "Internal server error",
            "message": "An unexpected error occurred.",
        }), 500

    return app
