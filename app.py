import logging
import os

from flask import Flask, jsonify
from flask_cors import CORS
from pymongo.errors import PyMongoError
from werkzeug.exceptions import HTTPException

from config import get_config
from database import connect, ensure_indexes, ping
from errors import PortalError, ValidationError
from routes.admin_routes import admin_bp
from routes.auth_routes import auth_bp
from routes.survey_routes import survey_bp
from services.identity import build_identity_provider
from services.portal import Portal

log = logging.getLogger(__name__)


def _cors_origins(value):
    if not value or value.strip() == "*":
        return "*"
    return [o.strip() for o in value.split(",") if o.strip()]


def register_error_handlers(app):
    @app.errorhandler(PortalError)
    def handle_portal_error(e):
        if isinstance(e, ValidationError):
            log.info("Rejected input: %s %s", e.message, e.errors)
        else:
            log.warning("%s: %s", type(e).__name__, e)
        return jsonify(e.to_payload()), e.status_code

    @app.errorhandler(PyMongoError)
    def handle_database_error(e):
        log.exception("Database error")
        return jsonify({
            "success": False,
            "message": "Database unavailable. Please try again later.",
        }), 503

    @app.errorhandler(HTTPException)
    def handle_http_error(e):
        return jsonify({"success": False, "message": e.description}), e.code

    @app.errorhandler(Exception)
    def handle_unexpected(e):
        log.exception("Unhandled server error")
        return jsonify({"success": False, "message": "Internal server error"}), 500


def create_app(config_name=None, mongo_client=None, identity=None):
    app = Flask(__name__)
    app.config.from_object(get_config(config_name))

    logging.basicConfig(
        level=app.config["LOG_LEVEL"],
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )

    CORS(
        app,
        resources={r"/*": {"origins": _cors_origins(app.config["CORS_ORIGINS"])}},
        supports_credentials=True,
    )

    db = connect(app.config["MONGO_URI"], app.config["DB_NAME"], client=mongo_client)
    if mongo_client is None:
        ping(db)
    try:
        ensure_indexes(db)
    except PyMongoError as e:
        log.error("Could not create indexes: %s", e)

    if identity is None:
        identity = build_identity_provider(app.config, db)
    app.extensions["portal"] = Portal(
        db, identity, poll_interval=app.config["STATUS_POLL_INTERVAL"]
    )

    # Register blueprints
    app.register_blueprint(auth_bp)
    app.register_blueprint(survey_bp)
    app.register_blueprint(admin_bp)
    register_error_handlers(app)

    @app.route("/", methods=["GET"])
    def home():
        return jsonify({"message": "Youth survey portal API running!"})

    return app


if __name__ == "__main__":
    app = create_app()

    # Use the PORT env var when provided by hosting platforms.
    # Default to 5000 for local development.
    port = int(os.environ.get("PORT", 5000))

    # Bind to 0.0.0.0 so the container accepts external requests (not just localhost).
    # The status stream holds a request open, so keep the server threaded.
    app.run(host="0.0.0.0", port=port, debug=app.config["DEBUG"], use_reloader=False, threaded=True)
