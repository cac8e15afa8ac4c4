"""API package wiring for FridgeVision backend."""

from flask import Flask

from .analyze import bp as analyze_bp
from .favorites import bp as favorites_bp
from .recipes import bp as recipes_bp
from .settings import bp as settings_bp


def init_app(app: Flask) -> None:
    """Register all API blueprints on the given application."""

    app.register_blueprint(analyze_bp)
    app.register_blueprint(recipes_bp)
    app.register_blueprint(favorites_bp)
    app.register_blueprint(settings_bp)
