"""Application settings with environment-based simple classes."""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Final

from dotenv import load_dotenv

# Public selector env var (keep neutral name to avoid collisions)
ENV_VAR: Final[str] = "APP_ENV"  # 'development' | 'testing' | 'production'

# HMAC family accepted for signing access and refresh tokens
SUPPORTED_JWT_ALGORITHMS: Final[frozenset[str]] = frozenset({"HS256", "HS384", "HS512"})


# Load .env during development (no-op when the file is absent)
load_dotenv()


def env_bool(name: str, default: bool = False) -> bool:
    """Parse a boolean flag from an environment variable.

    Parameters
    ----------
    name: str
        Environment variable to inspect.
    default: bool, optional
        Value returned when the variable is unset. Defaults to ``False``.

    Returns
    -------
    bool
        ``True`` if the value resembles ``{"1", "true", "yes", "y", "on"}``
        ignoring case; otherwise ``False`` or ``default`` when missing.
    """
    val = os.getenv(name)
    if val is None:
        return default
    return str(val).strip().lower() in {"1", "true", "yes", "y", "on"}


def env_int(name: str, default: int) -> int:
    """Parse an integer from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return int(val)


def env_float(name: str, default: float) -> float:
    """Parse a float from an environment variable, falling back to ``default``."""
    val = os.getenv(name)
    if val is None or not val.strip():
        return default
    return float(val)


def env_list(name: str, default: str = "") -> list[str]:
    """Split a comma-separated environment variable into trimmed, non-empty items."""
    raw = os.getenv(name, default)
    return [item.strip() for item in raw.split(",") if item.strip()]


class BaseConfig:
    """Base configuration shared across environments.

    Attributes
    ----------
    API_BASE_PREFIX: str
        Root path for registering API blueprints.
    APP_NAME: str
        Service name stamped on every log record.
    SECRET_KEY: str
        Flask secret used for session signing.
    JWT_SECRET_KEY: str
        Symmetric key used to sign and verify access and refresh tokens.
    JWT_ALGORITHM: str
        HMAC algorithm pinned for signing and verification (``HS256``).
    JWT_ISSUER / JWT_AUDIENCE: str
        ``iss`` and ``aud`` claims stamped on access tokens.
    ACCESS_TOKEN_EXPIRES_MINUTES: int
        Access token lifetime in minutes.
    REFRESH_TOKEN_EXPIRES_DAYS: int
        Refresh token lifetime in days; also the cache entry TTL.
    REDIS_URL: str | None
        Redis connection URL. When unset, an in-process cache is used.
    REDIS_SOCKET_TIMEOUT: float
        Per-command timeout (seconds) enforced by the Redis client.
    SQLALCHEMY_DATABASE_URI: str
        Database connection string consumed by SQLAlchemy.
    DATABASE_INIT_SCRIPTS: list[str]
        SQL files executed in order once the database handle is ready.
    LOG_LEVEL: str
        Root logging verbosity (``INFO`` by default).
    LOG_FILE: str | None
        Optional path of an additional JSON log file.
    LOG_STACKTRACES: bool
        Include formatted tracebacks in log records when ``True``.
    CORS_ORIGINS: str
        Comma-separated list of allowed origins for CORS.
    RATELIMIT_*: various
        Flask-Limiter settings; the login route has its own limit.
    SECURITY_HEADERS_ENABLED: bool
        Attach hardening headers to every response.

    Notes
    -----
    Values are primarily sourced from environment variables, enabling
    configuration without code changes.
    """

    API_BASE_PREFIX = "/api"
    APP_NAME = os.getenv("APP_NAME", "token-service")
    APP_VERSION = os.getenv("APP_VERSION", "dev")

    # Secrets / security
    SECRET_KEY = os.getenv("SECRET_KEY", "CHANGE_ME")
    JWT_SECRET_KEY = os.getenv("JWT_SECRET_KEY", "CHANGE_ME_JWT")
    JWT_ALGORITHM = os.getenv("JWT_ALGORITHM", "HS256")
    JWT_ISSUER = os.getenv("JWT_ISSUER", "token-service")
    JWT_AUDIENCE = os.getenv("JWT_AUDIENCE", "token-service-clients")
    ACCESS_TOKEN_EXPIRES_MINUTES = env_int("ACCESS_TOKEN_EXPIRES_MINUTES", 15)
    REFRESH_TOKEN_EXPIRES_DAYS = env_int("REFRESH_TOKEN_EXPIRES_DAYS", 7)

    # Cache
    REDIS_URL = os.getenv("REDIS_URL") or None
    REDIS_SOCKET_TIMEOUT = env_float("REDIS_SOCKET_TIMEOUT", 2.0)

    # DB
    SQLALCHEMY_DATABASE_URI = os.getenv("DATABASE_URL", "sqlite:///./dev.db")
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    SQLALCHEMY_ECHO = env_bool("SQLALCHEMY_ECHO", False)
    DATABASE_INIT_SCRIPTS = env_list("DATABASE_INIT_SCRIPTS")
    DATABASE_CREATE_ALL = env_bool("DATABASE_CREATE_ALL", True)

    # Flask & JSON
    JSON_SORT_KEYS = False
    PROPAGATE_EXCEPTIONS = False

    # Logging
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
    LOG_FILE = os.getenv("LOG_FILE") or None
    LOG_STACKTRACES = env_bool("LOG_STACKTRACES", False)

    # HTTP middleware
    CORS_ORIGINS = os.getenv("CORS_ORIGINS", "http://localhost:5173")
    CORS_MAX_AGE = 600
    USE_PROXYFIX = env_bool("USE_PROXYFIX", True)
    SECURITY_HEADERS_ENABLED = env_bool("SECURITY_HEADERS_ENABLED", True)

    # Rate limiting
    RATELIMIT_ENABLED = env_bool("RATELIMIT_ENABLED", True)
    RATELIMIT_DEFAULT = os.getenv("RATELIMIT_DEFAULT") or None
    RATELIMIT_STORAGE_URI = os.getenv("RATELIMIT_STORAGE_URI", "memory://")
    AUTH_LOGIN_RATE_LIMIT = os.getenv("AUTH_LOGIN_RATE_LIMIT", "5 per minute")

    # Flask built-ins
    DEBUG = False
    TESTING = False


class DevelopmentConfig(BaseConfig):
    """Configuration tailored for local development.

    Notes
    -----
    Enables debug mode by default and keeps tracebacks in the logs.
    """

    DEBUG = env_bool("FLASK_DEBUG", True)
    LOG_STACKTRACES = env_bool("LOG_STACKTRACES", True)


class TestingConfig(BaseConfig):
    """Configuration for automated test runs.

    Notes
    -----
    - Forces ``TESTING`` mode and disables debug logs.
    - Uses an in-memory SQLite database unless ``TEST_DATABASE_URL`` is set.
    - Never talks to Redis; the in-process cache is used instead.
    - Rate limiting is off so tests can hit the login route repeatedly.
    """

    TESTING = True
    DEBUG = False
    SQLALCHEMY_DATABASE_URI = os.getenv("TEST_DATABASE_URL", "sqlite:///:memory:")
    JWT_SECRET_KEY = "testing-secret-key-with-enough-entropy"
    REDIS_URL = None
    RATELIMIT_ENABLED = False
    USE_PROXYFIX = False
    LOG_FILE = None
    DATABASE_INIT_SCRIPTS: list[str] = []


class ProductionConfig(BaseConfig):
    """Configuration defaults for production deployments.

    Notes
    -----
    Keeps debug output and tracebacks out of the logs.
    """

    DEBUG = False
    SQLALCHEMY_ECHO = False
    PROPAGATE_EXCEPTIONS = False
    LOG_STACKTRACES = False
    DATABASE_CREATE_ALL = env_bool("DATABASE_CREATE_ALL", False)


# Map names -> classes (simple, explicit)
CONFIG_MAP: Mapping[str, type[BaseConfig]] = {
    "development": DevelopmentConfig,
    "testing": TestingConfig,
    "production": ProductionConfig,
}


def get_config() -> type[BaseConfig]:
    """Return the configuration class inferred from ``APP_ENV``.

    Falls back to :class:`DevelopmentConfig` when ``APP_ENV`` is unset or
    unknown.
    """
    name = os.getenv(ENV_VAR, "development").strip().lower()
    return CONFIG_MAP.get(name, DevelopmentConfig)
