"""Flask application factory."""

from __future__ import annotations

from flask import Flask
from werkzeug.exceptions import HTTPException

from shiftcal.blueprints.api import bp as api_bp
from shiftcal.blueprints.auth import bp as auth_bp
from shiftcal.blueprints.main import bp as main_bp
from shiftcal.cli import create_user_command
from shiftcal.config import Config
from shiftcal.extensions import csrf, db, login_manager


def create_app(config_object: type[Config] = Config) -> Flask:
    app = Flask(__name__, instance_relative_config=False)
    app.config.from_object(config_object)
    app.logger.setLevel(app.config.get("LOG_LEVEL", "INFO"))

    db.init_app(app)
    login_manager.init_app(app)
    csrf.init_app(app)

    # Ensure model metadata is loaded for migrations and tests.
    from shiftcal import models as _models  # noqa: F401

    app.register_blueprint(main_bp)
    app.register_blueprint(auth_bp)
    app.register_blueprint(api_bp)
    # Session-authenticated JSON clients; forms carry no CSRF token.
    csrf.exempt(auth_bp)
    csrf.exempt(api_bp)

    app.cli.add_command(create_user_command)

    @app.errorhandler(HTTPException)
    def render_http_error(error: HTTPException):
        code = (error.name or "error").upper().replace(" ", "_")
        return {
            "success": False,
            "error": {"code": code, "message": error.description or error.name},
        }, error.code or 500

    @app.teardown_request
    def rollback_unfinished(exc: BaseException | None) -> None:
        if exc is not None:
            db.session.rollback()

    return app
