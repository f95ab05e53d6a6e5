"""Application factory wiring Flask extensions, the token authority and blueprints."""

from __future__ import annotations

import atexit
import logging

from flask import Flask

from token_service.core.config import BaseConfig, get_config
from token_service.core.logger import configure_logging, shutdown_logging
from token_service.core.logger import init_app as init_logging
from token_service.services._shared.ports import CacheStore, InMemoryCacheStore
from token_service.services.auth.authority import TokenAuthority
from token_service.services.auth.dto import AuthTokenConfig

_shutdown_registered = False


def _register_shutdown() -> None:
    # create_app runs once per test; register the hook only once per process
    global _shutdown_registered
    if not _shutdown_registered:
        from token_service.core.extensions import close_redis

        atexit.register(shutdown_logging)
        atexit.register(close_redis)
        _shutdown_registered = True


def build_token_authority(app: Flask, logger: logging.Logger) -> TokenAuthority:
    """Build the :class:`TokenAuthority` from app config and the bound cache.

    Uses Redis when ``REDIS_URL`` is configured and the in-process cache
    otherwise. Signing configuration is validated here, so a bad key or
    algorithm aborts startup with :class:`SigningError`, and a token lifetime
    that is not positive aborts it with :class:`ValueError`.
    """
    from token_service.core import extensions
    from token_service.infra.jwt.jwt_signer import JWTSigner
    from token_service.infra.redis.redis_cache_store import RedisCacheStore

    cfg = AuthTokenConfig.from_mapping(app.config)
    signer = JWTSigner(secret_key=cfg.secret_key, algorithm=cfg.algorithm)

    cache: CacheStore
    if extensions.redis_client is not None:
        cache = RedisCacheStore(extensions.get_redis())
    else:
        if not app.testing:
            logger.warning("cache.in_memory_fallback: REDIS_URL is not set")
        cache = InMemoryCacheStore()

    return TokenAuthority(signer=signer, cache=cache, cfg=cfg, logger=logger)


def create_app(
    config: str | type[BaseConfig] | object | None = None,
    *,
    instance_relative_config: bool = True,
    instance_config_filename: str = "config.py",
) -> Flask:
    """Build and configure the Flask application."""

    app = Flask(__name__, instance_relative_config=instance_relative_config)

    app.config.from_object(get_config() if config is None else config)
    if instance_relative_config and instance_config_filename:
        app.config.from_pyfile(instance_config_filename, silent=True)

    root_logger = configure_logging(
        app.config.get("LOG_LEVEL", "INFO"),
        app_name=app.config.get("APP_NAME"),
        log_file=app.config.get("LOG_FILE"),
        include_traceback=bool(app.config.get("LOG_STACKTRACES")),
    )
    _register_shutdown()

    # Proxy headers if running behind a reverse proxy
    from token_service.core import middleware

    middleware.init_proxy(app)

    from token_service.core import extensions

    extensions.init_app(app)

    from token_service.core import database

    database.init_app(app)

    init_logging(app)
    middleware.init_app(app)

    authority_logger = root_logger.getChild("token_service.auth")
    app.extensions["token_authority"] = build_token_authority(app, authority_logger)

    from token_service.api import init_app as init_api

    init_api(app)

    from token_service.core import errors

    errors.init_app(app)

    from token_service import cli as app_cli

    app_cli.init_app(app)

    return app
