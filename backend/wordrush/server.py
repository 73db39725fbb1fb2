from __future__ import annotations

import sys
from pathlib import Path
from typing import Callable

from flask import Flask, send_from_directory
from flask_cors import CORS
from flask_socketio import SocketIO
from werkzeug.middleware.proxy_fix import ProxyFix

from .config import Config
from .game.registry import RoomRegistry
from .game.service import GameService, Scheduler
from .game.timers import SocketIOScheduler
from .game.validators import build_validator
from .logging_config import configure_logging, get_logger
from .realtime.broadcast import SocketIOBroadcaster
from .realtime.handlers import register_socketio_handlers
from .routes.health import bp as health_bp
from .routes.rooms import bp as rooms_bp

logger = get_logger("server")


def _default_async_mode() -> str:
    # Windows and Python >= 3.13: threading (eventlet has known compatibility
    # issues there). Otherwise: eventlet.
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def create_app(
    config_class: type = Config,
    *,
    registry: RoomRegistry | None = None,
    scheduler: Scheduler | None = None,
    clock: Callable[[], int] | None = None,
) -> tuple[Flask, SocketIO]:
    dist_dir = Path(__file__).resolve().parents[2] / "frontend" / "dist"

    static_folder = str(dist_dir) if dist_dir.exists() else None
    static_url_path = "/" if dist_dir.exists() else None

    app = Flask(
        __name__,
        static_folder=static_folder,
        static_url_path=static_url_path,
    )
    app.config.from_object(config_class)

    configure_logging(app.config.get("LOG_LEVEL", "INFO"))

    if app.config.get("TRUST_PROXY_HEADERS", False):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_port=1)

    cors_origins = app.config.get("CORS_ORIGINS", "*")
    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    async_mode = app.config.get("SOCKETIO_ASYNC_MODE") or _default_async_mode()

    socketio = SocketIO(
        app,
        cors_allowed_origins=cors_origins,
        async_mode=async_mode,
    )

    service_kwargs = {"clock": clock} if clock is not None else {}
    service = GameService.from_config(
        app.config,
        registry if registry is not None else RoomRegistry(),
        SocketIOBroadcaster(socketio),
        scheduler if scheduler is not None else SocketIOScheduler(socketio),
        build_validator(app.config.get("VALIDATOR", "heuristic"), app.config.get("LEXICON_DIR") or None),
        **service_kwargs,
    )
    app.extensions["wordrush"] = service

    app.register_blueprint(health_bp, url_prefix="/api")
    app.register_blueprint(rooms_bp, url_prefix="/api")

    register_socketio_handlers(socketio, service)

    if app.config.get("WATCHDOG_ENABLED", True):
        socketio.start_background_task(service.run_watchdog, float(app.config.get("WATCHDOG_INTERVAL_SEC", 2)))

    logger.info(
        "server ready (async_mode=%s, validator=%s, turn=%ss)",
        async_mode,
        service.validator.kind,
        app.config.get("TURN_DURATION_SEC"),
    )

    if dist_dir.exists():
        @app.get("/")
        def index():
            return send_from_directory(dist_dir, "index.html")

        @app.get("/<path:path>")
        def static_proxy(path: str):
            file_path = dist_dir / path
            if file_path.exists() and file_path.is_file():
                return send_from_directory(dist_dir, path)
            return send_from_directory(dist_dir, "index.html")

    return app, socketio
