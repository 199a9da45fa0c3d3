import logging

from flask import Flask, request
from flasgger import Swagger
from flask_cors import CORS

from .config import get_config
from .errors import register_error_handlers
from .extensions import EXTENSION_KEY, Library
from models.db_storage import DBStorage
from utils.security import TokenCodec

logger = logging.getLogger(__name__)

# Minimal Swagger config: exposes /swagger.json and UI at /apidocs
SWAGGER_TEMPLATE = {
    "swagger": "2.0.0",
    "info": {
        "title": "Digital Library API",
        "version": "1.0.0",
        "description": "REST API for a digital book catalog: accounts, sessions, books and favorites.",
    },
    "basePath": "/",  # blueprints are mounted under /api/v1
    "schemes": ["http", "https"],
    "securityDefinitions": {
        "Bearer": {
            "type": "apiKey",
            "name": "Authorization",
            "in": "header",
            "description": "Enter the token with the `Bearer ` prefix, e.g. \"Bearer abcde12345\"."
        }
    }
}

SWAGGER_CONFIG = {
    "headers": [],
    "specs": [
        {
            "endpoint": "apispec_1",
            "route": "/swagger.json",
            "rule_filter": lambda rule: True,   # include all endpoints
            "model_filter": lambda tag: True,   # include all models
        }
    ],
    "static_url_path": "/flasgger_static",
    "swagger_ui": True,
    "specs_route": "/apidocs/",
}


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def create_app(config_name: str | None = None, storage: DBStorage | None = None) -> Flask:
    """
    Application factory: creates and configures the Flask app.

    The database handle is built here (or passed in by tests) and lives in
    app.extensions; call app.extensions["library"].shutdown() to release it.
    """
    app = Flask(__name__)

    # Load configuration (reads .env via get_config)
    app.config.from_object(get_config(config_name))
    configure_logging(app.config["LOG_LEVEL"])

    # Cookies carry the refresh token, so credentials must be allowed cross-origin
    CORS(app, resources={r"/*": {"origins": app.config.get("CORS_ORIGINS", "*")}}, supports_credentials=True)

    # Swagger UI and JSON
    Swagger(app, template=SWAGGER_TEMPLATE, config=SWAGGER_CONFIG)

    # Register global error handlers that return the uniform error envelope
    register_error_handlers(app)

    if storage is None:
        storage = DBStorage(app.config["DATABASE_URL"], echo=app.config.get("SQL_ECHO", False))
    storage.reload()
    app.extensions[EXTENSION_KEY] = Library.build(storage, TokenCodec.from_config(app.config))

    from .health import bp as health_bp
    from .users import bp as users_bp
    from .books import bp as books_bp
    from .favorites import bp as favorites_bp

    app.register_blueprint(health_bp, url_prefix="/api/v1")
    app.register_blueprint(users_bp, url_prefix="/api/v1/users")
    app.register_blueprint(books_bp, url_prefix="/api/v1/books")
    app.register_blueprint(favorites_bp, url_prefix="/api/v1/favorites")

    # Ensure the DB session is removed at the end of each request/app context
    @app.teardown_appcontext
    def remove_session(exception=None):
        # This calls scoped_session.remove(), preventing connection leaks
        storage.close()

    @app.after_request
    def log_request(response):
        logger.info("%s %s %s", request.method, request.path, response.status_code)
        return response

    @app.cli.command("prune-blacklist")
    def prune_blacklist():
        """Delete blacklisted access tokens that have expired anyway."""
        removed = app.extensions[EXTENSION_KEY].blacklist.prune_expired()
        print(f"Removed {removed} expired blacklist entries")

    @app.route("/")
    def root():
        return {
            "message": "Welcome to Digital Library API",
            "docs": "/apidocs/",
            "health": "/api/v1/health",
        }, 200

    return app
