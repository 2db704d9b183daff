from __future__ import annotations

from flask import Flask
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config, resolve_async_mode
from .game.registry import RoomRegistry
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp
from .realtime.handlers import register_socketio_handlers


def create_app(registry: RoomRegistry | None = None) -> tuple[Flask, SocketIO]:
    app = Flask(__name__)
    app.config.from_object(Config)

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    socketio = SocketIO(app, cors_allowed_origins=cors_origins, async_mode=resolve_async_mode())

    if registry is None:
        registry = RoomRegistry()
    app.extensions["impostor.registry"] = registry

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")

    register_socketio_handlers(socketio, registry)

    return app, socketio
