from flask import Flask, jsonify
from werkzeug.exceptions import HTTPException

from security_config import SECURITY_HEADERS

from .errors import ApiError
from .extensions import bcrypt, db, jwt, migrate
from .roles import get_capabilities


def _blueprint_modules():
    # Imported lazily so models and JWT callbacks bind to the extensions first
    from .routes import account, admin_routes, driver_routes, sponsor_routes

    return {
        "driver": driver_routes.bp,
        "sponsor": sponsor_routes.bp,
        "admin": admin_routes.bp,
    }, account.bp


def create_app(config_object="config.Config", role=None):
    """
    Build one role service.

    `role` (or SERVICE_ROLE from the config object) picks a row of
    ROLE_CAPABILITIES; the service registers the shared account routes plus the
    blueprints that row names.
    """
    app = Flask(__name__)
    app.config.from_object(config_object)
    if role is not None:
        app.config["SERVICE_ROLE"] = role
    app.config["SERVICE_ROLE"] = (app.config.get("SERVICE_ROLE") or "").strip().lower()
    caps = get_capabilities(app.config["SERVICE_ROLE"])

    if not app.config.get("JWT_SECRET_KEY"):
        raise RuntimeError("JWT_SECRET is not set; refusing to start without a signing key")

    app.json.sort_keys = app.config.get("JSON_SORT_KEYS", False)

    # --- Init extensions ---
    db.init_app(app)
    migrate.init_app(app, db)
    bcrypt.init_app(app)
    jwt.init_app(app)
    from .services import auth_service  # noqa: F401  registers the JWT callbacks

    # --- Error handling: every failure is a JSON body ---
    @app.errorhandler(ApiError)
    def handle_api_error(e):
        if e.status_code >= 500:
            app.logger.error("[API] %s: %s", type(e).__name__, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        messages = {404: "Not found", 405: "Method not allowed", 400: "Invalid input"}
        return jsonify({"error": messages.get(e.code, e.name)}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected_error(e):
        app.logger.exception("[API] Unhandled error")
        db.session.rollback()
        return jsonify({"error": "Server error"}), 500

    # Add security headers
    @app.after_request
    def add_security_headers(response):
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        return response

    # --- Blueprints ---
    role_blueprints, account_bp = _blueprint_modules()
    app.register_blueprint(account_bp)
    for name in caps["blueprints"]:
        app.register_blueprint(role_blueprints[name])

    from .cli_commands import register_cli
    register_cli(app)

    from .sponsor_catalog.search_service import init_search_provider
    init_search_provider(app)

    if app.config.get("AUTO_CREATE_TABLES"):
        with app.app_context():
            db.create_all()

    app.logger.info("[STARTUP] %s service ready", caps["label"])
    return app
