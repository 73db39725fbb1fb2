import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("1", "true", "yes", "on")


class Config:
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev")
    APP_VERSION = os.environ.get("APP_VERSION", "0.1.0")

    # CORS
    CORS_ORIGINS = os.environ.get("CORS_ORIGINS", "*")

    # Reverse proxy / IP headers
    TRUST_PROXY_HEADERS = _env_flag("TRUST_PROXY_HEADERS", "1")

    # Socket.IO; empty means pick per platform in create_app
    SOCKETIO_ASYNC_MODE = os.environ.get("SOCKETIO_ASYNC_MODE", "").strip()

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Turns
    TURN_DURATION_SEC = int(os.environ.get("TURN_DURATION_SEC", "30"))
    TIMEOUT_BUFFER_MS = int(os.environ.get("TIMEOUT_BUFFER_MS", "500"))
    DEFAULT_ROUNDS_PER_PLAYER = int(os.environ.get("DEFAULT_ROUNDS_PER_PLAYER", "5"))
    MIN_PLAYERS = int(os.environ.get("MIN_PLAYERS", "2"))

    # Answers: "heuristic" or "lexicon"
    VALIDATOR = os.environ.get("VALIDATOR", "heuristic")
    LEXICON_DIR = os.environ.get("LEXICON_DIR", "")
    REQUIRE_DISTINCT_ANSWERS = _env_flag("REQUIRE_DISTINCT_ANSWERS", "0")
    # "notify", "silent" or "reject"
    LATE_SUBMISSION_POLICY = os.environ.get("LATE_SUBMISSION_POLICY", "notify")

    # Lost-timer safety net
    WATCHDOG_ENABLED = _env_flag("WATCHDOG_ENABLED", "1")
    WATCHDOG_INTERVAL_SEC = float(os.environ.get("WATCHDOG_INTERVAL_SEC", "2"))
    WATCHDOG_GRACE_MS = int(os.environ.get("WATCHDOG_GRACE_MS", "1500"))
