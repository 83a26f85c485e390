# FILE: saveraks-backend/main.py

import os
import logging
from flask import Flask, jsonify
from dotenv import load_dotenv
from pydantic import ValidationError
import redis
from logging_config import setup_logging
from extensions import limiter

# --- SETUP & CONFIG ---
# Load environment variables before any module reads them.
load_dotenv()
setup_logging()


def create_app(config=None):
    app = Flask(__name__)
    if config:
        app.config.update(config)

    # --- Initialize Extensions ---
    # Rate limit counters share the Redis instance used for sessions.
    app.config.setdefault("RATELIMIT_STORAGE_URI", os.environ.get('REDIS_URL', 'redis://localhost:6379/0'))
    limiter.init_app(app)

    # --- Import and Register Blueprints ---
    # Safe at this point: blueprints only reach clients through dependencies.get_*().
    from api.auth import auth_bp
    from api.users import users_bp
    from api.activities import activities_bp
    from api.gamification import gamification_bp
    from api.map_pins import map_pins_bp
    from api.feed import feed_bp
    from api.admin import admin_bp
    from api.status import status_bp

    app.register_blueprint(auth_bp, url_prefix='/', strict_slashes=False)
    app.register_blueprint(users_bp, url_prefix='/users')
    app.register_blueprint(activities_bp, url_prefix='/', strict_slashes=False)
    app.register_blueprint(gamification_bp, url_prefix='/', strict_slashes=False)
    app.register_blueprint(map_pins_bp, url_prefix='/map')
    app.register_blueprint(feed_bp, url_prefix='/feed', strict_slashes=False)
    app.register_blueprint(admin_bp, url_prefix='/', strict_slashes=False)
    app.register_blueprint(status_bp, url_prefix='/', strict_slashes=False)

    register_error_handlers(app)
    return app


# --- Global Error Handlers ---
def register_error_handlers(app):
    from api.error_utils import create_error_response, handle_exception, validation_error

    @app.errorhandler(ValidationError)
    def handle_validation_error(e):
        return validation_error(details={"errors": e.errors(include_url=False, include_context=False)})

    @app.errorhandler(redis.exceptions.RedisError)
    def handle_redis_error(e):
        logging.error(f"Redis is unavailable: {e}")
        return create_error_response("CACHE_ERROR", "Session storage is temporarily unavailable.", status_code=503)

    @app.errorhandler(404)
    def resource_not_found(e):
        """Handles 404 Not Found errors for a clean API response."""
        return create_error_response("NOT_FOUND", "The requested resource was not found.", status_code=404)

    @app.errorhandler(429)
    def rate_limited(e):
        return create_error_response("RATE_LIMITED", details={"limit": str(e.description)}, status_code=429)

    @app.errorhandler(500)
    def internal_server_error(e):
        """Handles unexpected 500 Internal Server Errors for a clean API response."""
        return handle_exception(getattr(e, "original_exception", None) or e, context="unhandled request")


app = create_app()
