"""HTTP API package: versioned blueprints mounted under ``API_BASE_PREFIX``."""

from __future__ import annotations

from collections.abc import Iterable

from flask import Blueprint, Flask


def register_blueprint_group(
    app: Flask,
    *,
    base_prefix: str,
    entries: Iterable[tuple[Blueprint, str]],
) -> None:
    """Register ``(blueprint, relative_prefix)`` pairs beneath ``base_prefix``.

    An empty relative prefix mounts the blueprint at the version root
    (``/api/v1``); others extend it (``/api/v1/auth``).
    """

    for bp, rel_prefix in entries:
        segments = [base_prefix.strip("/"), rel_prefix.strip("/")]
        full_prefix = "/" + "/".join(s for s in segments if s)
        app.register_blueprint(bp, url_prefix=full_prefix)


def init_app(app: Flask) -> None:
    """Mount API v1 and keep the health probe out of rate limiting."""

    from token_service.api.v1 import API_VERSION as V1
    from token_service.api.v1 import REGISTRY as V1_REGISTRY
    from token_service.api.v1.health import bp as health_bp
    from token_service.core.extensions import limiter

    limiter.exempt(health_bp)
    api_base = app.config.get("API_BASE_PREFIX", "/api")
    register_blueprint_group(app, base_prefix=f"{api_base}/{V1}", entries=V1_REGISTRY)


__all__ = ["init_app", "register_blueprint_group"]
