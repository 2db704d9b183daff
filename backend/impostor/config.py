import logging
import os
import sys


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = os.environ.get("TRUST_PROXY_HEADERS", "1") == "1"

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Full state snapshot push (the original client ran at 30 FPS)
    BROADCAST_INTERVAL_SEC = float(os.environ.get("BROADCAST_INTERVAL_SEC", str(1 / 30)))

    # Game (fixed)
    KILL_COOLDOWN_SEC = 20
    VOTING_DURATION_SEC = 30
    RESUME_DELAY_SEC = 5
    TASKS_PER_PLAYER = 3
    PROXIMITY_RADIUS = 50.0
    ROOM_CAPACITY = 10
    MIN_PLAYERS = 4
    IMPOSTOR_DIVISOR = 4

    NAME_MAX_LEN = 16
    CHAT_MAX_LEN = 200
    CHAT_HISTORY_LIMIT = 100


def resolve_async_mode() -> str:
    """Socket.IO async mode: ``SOCKETIO_ASYNC_MODE`` if set, else the platform default."""
    explicit = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()
    if explicit:
        return explicit
    # eventlet is not installed on win32 or on 3.13+.
    if sys.platform.startswith("win") or sys.version_info >= (3, 13):
        return "threading"
    return "eventlet"


def configure_logging(level: str | None = None) -> None:
    logging.basicConfig(format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    logging.getLogger().setLevel((level or Config.LOG_LEVEL).upper())
    # Per-request werkzeug lines drown out game events.
    logging.getLogger("werkzeug").setLevel(logging.WARNING)
