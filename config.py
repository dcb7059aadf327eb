import os
import secrets
import warnings

import redis
from dotenv import load_dotenv

basedir = os.path.abspath(os.path.dirname(__file__))
load_dotenv(os.path.join(basedir, ".env"))


def env_flag(name, default):
    return os.environ.get(name, str(default)).lower() == "true"


def env_int(name, default):
    return int(os.environ.get(name) or default)


def _secret_key():
    key = os.environ.get("SECRET_KEY")
    if key:
        return key
    warnings.warn(
        "SECRET_KEY not set! Using a generated key, sessions reset on restart.",
        UserWarning,
    )
    return secrets.token_urlsafe(32)


class Config:
    SECRET_KEY = _secret_key()

    def __init__(self):
        """Resolve the database URI and engine options from the environment"""
        self.SQLALCHEMY_DATABASE_URI = self._build_database_uri()
        self.SQLALCHEMY_ENGINE_OPTIONS = self._build_engine_options(
            self.SQLALCHEMY_DATABASE_URI
        )

    def _build_database_uri(self):
        database_url = os.environ.get("DATABASE_URL")
        if database_url:
            return database_url

        if os.environ.get("DB_TYPE", "sqlite").lower() != "postgresql":
            return "sqlite:///" + os.path.join(basedir, "tipping.db")

        user = os.environ.get("DB_USER") or "tipping_user"
        password = os.environ.get("DB_PASSWORD") or "tipping_password"
        host = os.environ.get("DB_HOST") or "localhost"
        port = os.environ.get("DB_PORT") or "5432"
        name = os.environ.get("DB_NAME") or "tipping_db"
        return f"postgresql+psycopg://{user}:{password}@{host}:{port}/{name}"

    def _build_engine_options(self, database_uri):
        # SQLite has no connection pool wait worth bounding
        if not database_uri.startswith("postgresql"):
            return {}
        return {
            "pool_pre_ping": True,
            "pool_timeout": self.BET_POOL_TIMEOUT_SECONDS,
        }

    SQLALCHEMY_TRACK_MODIFICATIONS = False

    # Wager submissions wait at most this long for a pooled connection and
    # abort statements after BET_STATEMENT_TIMEOUT_MS (PostgreSQL only)
    BET_POOL_TIMEOUT_SECONDS = env_int("BET_POOL_TIMEOUT_SECONDS", 5)
    BET_STATEMENT_TIMEOUT_MS = env_int("BET_STATEMENT_TIMEOUT_MS", 10000)
    EVALUATION_STATEMENT_TIMEOUT_MS = env_int("EVALUATION_STATEMENT_TIMEOUT_MS", 30000)

    # Display timezone for CLI output; storage is always UTC
    TIMEZONE = os.environ.get("TIMEZONE", "UTC")

    CACHE_TYPE = os.environ.get("CACHE_TYPE", "RedisCache")
    CACHE_DEFAULT_TIMEOUT = env_int("CACHE_DEFAULT_TIMEOUT", 300)
    CACHE_REDIS_URL = os.environ.get("CACHE_REDIS_URL", "redis://localhost:6379/0")
    CACHE_KEY_PREFIX = "tipping:"

    RATELIMIT_STORAGE_URI = os.environ.get("RATELIMIT_STORAGE_URI", "memory://")
    BET_RATE_LIMIT = os.environ.get("BET_RATE_LIMIT", "30 per minute")

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")
    LOG_TO_CONSOLE = env_flag("LOG_TO_CONSOLE", True)
    LOG_TO_FILE = env_flag("LOG_TO_FILE", True)
    LOG_DIR = os.environ.get("LOG_DIR", "logs")
    SLOW_FUNCTION_THRESHOLD = float(os.environ.get("SLOW_FUNCTION_THRESHOLD", "1.0"))

    FLASK_ENV = os.environ.get("FLASK_ENV", "development")
    DEBUG = FLASK_ENV == "development"
    TESTING = False


class DevelopmentConfig(Config):
    DEBUG = True
    SQLALCHEMY_ECHO = env_flag("SQLALCHEMY_ECHO", False)

    def __init__(self):
        super().__init__()
        if self.CACHE_TYPE == "RedisCache" and not self._redis_available():
            self.CACHE_TYPE = "SimpleCache"
            warnings.warn(
                "Redis not available, falling back to SimpleCache for development.",
                UserWarning,
            )

    def _redis_available(self):
        try:
            redis.Redis.from_url(self.CACHE_REDIS_URL, socket_connect_timeout=1).ping()
        except redis.exceptions.RedisError:
            return False
        return True


class ProductionConfig(Config):
    """Production configuration, warns about unsafe defaults"""

    DEBUG = False

    def __init__(self):
        super().__init__()

        if not os.environ.get("SECRET_KEY"):
            warnings.warn(
                "PRODUCTION WARNING: SECRET_KEY not explicitly set!",
                UserWarning,
            )
        if self.SQLALCHEMY_DATABASE_URI.startswith("sqlite"):
            warnings.warn(
                "PRODUCTION WARNING: SQLite does not detect serializable "
                "conflicts across processes. Use PostgreSQL.",
                UserWarning,
            )


class TestingConfig(Config):
    TESTING = True
    CACHE_TYPE = "SimpleCache"
    LOG_TO_FILE = False
    RATELIMIT_ENABLED = False

    def _build_database_uri(self):
        return "sqlite:///:memory:"


config = {
    "development": DevelopmentConfig,
    "production": ProductionConfig,
    "testing": TestingConfig,
    "default": DevelopmentConfig,
}
