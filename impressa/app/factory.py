from __future__ import annotations

import logging
from datetime import datetime

from flask import Flask, flash, g, jsonify, redirect, render_template, request, url_for
from werkzeug.exceptions import HTTPException

from impressa.app.backend import BackendClient
from impressa.app.config import Config
from impressa.app.extensions import backend as default_backend, cors
from impressa.app.common.errors import ApiError, BackendError
from impressa.app.common.request_context import echo_request_id, init_request_id
from impressa.app.register import register_blueprints
from impressa.app.session_store import SessionStore
from impressa.app.cli import cli_bp
from impressa.modules.cart.pricing import format_currency
from impressa.modules.orders.history import format_date


def _wants_json() -> bool:
    return request.path.startswith("/api/") or request.path == "/api"


def create_app(config_object: type[Config] = Config, backend: BackendClient | None = None) -> Flask:
    app = Flask(__name__, instance_relative_config=True)
    app.config.from_object(config_object)

    # Basic logging (enough for perf debugging)
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")

    # Extensions
    (backend or default_backend).init_app(app)
    cors.init_app(app, resources={r"/api/*": {"origins": app.config.get("CORS_ORIGINS") or "*"}})

    # Request id
    @app.before_request
    def _before_request():
        init_request_id()

    app.after_request(echo_request_id)

    # Health endpoint (for Docker)
    @app.get("/health")
    def health():
        return {"status": "ok"}, 200

    register_blueprints(app)

    # CLI (flask verify-payment)
    app.register_blueprint(cli_bp)

    @app.template_filter("currency")
    def currency_filter(value):
        return format_currency(value, app.config["CURRENCY_SYMBOL"])

    @app.template_filter("datetime")
    def datetime_filter(value):
        return format_date(value)

    @app.context_processor
    def inject_nav():
        store = SessionStore()
        return {
            "nav_user": store.user,
            "nav_authenticated": store.is_authenticated,
            "auth_version": store.auth_version,
            "current_year": datetime.utcnow().year,
        }

    # Error handlers
    @app.errorhandler(ApiError)
    def handle_api_error(err: ApiError):
        return jsonify(err.to_dict(getattr(g, "request_id", None))), err.status_code

    @app.errorhandler(BackendError)
    def handle_backend_error(err: BackendError):
        if err.is_unauthorized:
            # token expired or revoked on the backend
            SessionStore().sign_out()
            if _wants_json():
                return jsonify(ApiError(401, "unauthorized", "Session expired").to_dict(g.get("request_id"))), 401
            flash("Your session has expired. Please log in again.", "info")
            return redirect(url_for("auth.login", next=request.path))

        app.logger.error("Backend error on %s: %s", request.path, err)
        if _wants_json():
            payload = ApiError(502, "backend_error", "Store service unavailable").to_dict(g.get("request_id"))
            return jsonify(payload), 502
        return render_template("pages/error.html", message="The store is temporarily unavailable."), 502

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        if _wants_json():
            # Normalize Werkzeug errors into our JSON shape
            payload = {
                "error": {
                    "code": "http_error",
                    "message": err.description,
                    "details": {"name": err.name},
                    "request_id": g.get("request_id"),
                }
            }
            return jsonify(payload), err.code or 500
        return render_template("pages/error.html", message=err.description), err.code or 500

    @app.errorhandler(Exception)
    def handle_unexpected(err: Exception):
        app.logger.exception("Unhandled exception")
        if _wants_json():
            payload = {
                "error": {
                    "code": "internal_error",
                    "message": "Internal server error",
                    "details": {},
                    "request_id": g.get("request_id"),
                }
            }
            return jsonify(payload), 500
        return render_template("pages/error.html", message="Something went wrong."), 500

    return app
