import logging
import os

from flask import Flask, jsonify, request
from flask_caching import Cache
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from flask_login import LoginManager
from flask_migrate import Migrate
from flask_sqlalchemy import SQLAlchemy

from config import config

logger = logging.getLogger(__name__)

db = SQLAlchemy()
login_manager = LoginManager()
cache = Cache()
migrate = Migrate()


def get_real_ip():
    """Client address behind a reverse proxy (first X-Forwarded-For hop)"""
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return request.headers.get("X-Real-IP") or get_remote_address()


# Storage comes from RATELIMIT_STORAGE_URI; per-route limits live on the routes
limiter = Limiter(
    key_func=get_real_ip,
    default_limits=["10000 per day", "1000 per hour"],
)


def create_app(config_name=None):
    app = Flask(__name__)

    config_name = config_name or os.environ.get("FLASK_CONFIG", "default")
    app.config.from_object(config[config_name]())

    app.config.update(
        SESSION_COOKIE_SAMESITE="Lax",
        SESSION_COOKIE_HTTPONLY=True,
        SESSION_COOKIE_SECURE=(
            not app.config.get("DEBUG")
            and app.config.get("FLASK_ENV") == "production"
        ),
    )

    register_extensions(app)
    register_blueprints(app)
    register_error_handlers(app)

    from tipping.utils.logging_config import setup_logging

    setup_logging(app)

    with app.app_context():
        db.create_all()

    return app


def register_extensions(app):
    db.init_app(app)
    login_manager.init_app(app)
    cache.init_app(app)
    migrate.init_app(app, db)
    limiter.init_app(app)

    @login_manager.unauthorized_handler
    def unauthorized():
        return json_error("Authentication required", "UNAUTHORIZED", 401)


def register_blueprints(app):
    from tipping.routes.admin import bp as admin_bp
    from tipping.routes.bets import bp as bets_bp

    app.register_blueprint(bets_bp, url_prefix="/api/bets")
    app.register_blueprint(admin_bp, url_prefix="/admin")


def json_error(message, code, status_code):
    """Error body shared by every handler: {success, error, code}"""
    return (
        jsonify({"success": False, "error": message, "code": code}),
        status_code,
    )


def register_error_handlers(app):
    """Every route in this app speaks JSON, errors included"""
    from tipping.utils.errors import AppError

    @app.after_request
    def security_headers(response):
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["X-Frame-Options"] = "DENY"
        # Wager and prediction payloads are per user and change constantly
        if request.path.startswith("/api/"):
            response.headers["Cache-Control"] = (
                "no-store, no-cache, must-revalidate, max-age=0"
            )
        return response

    @app.errorhandler(AppError)
    def handle_app_error(error):
        level = logging.ERROR if error.status_code >= 500 else logging.INFO
        app.logger.log(
            level, "%s %s: %s", request.path, error.code, error.message
        )
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(400)
    def bad_request(error):
        app.logger.warning("400 on %s %s: %s", request.method, request.path, error)
        return json_error("Bad request", "BAD_REQUEST", 400)

    @app.errorhandler(404)
    def not_found(error):
        return json_error("Resource not found", "NOT_FOUND", 404)

    @app.errorhandler(405)
    def method_not_allowed(error):
        return json_error("Method not allowed", "METHOD_NOT_ALLOWED", 405)

    @app.errorhandler(429)
    def rate_limited(error):
        return json_error("Too many requests", "RATE_LIMITED", 429)

    @app.errorhandler(500)
    def internal_error(error):
        db.session.rollback()
        return json_error("Internal server error", "INTERNAL_ERROR", 500)


from tipping import models  # noqa: F401, E402
