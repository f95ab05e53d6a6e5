"""HTTP middleware: proxy headers, CORS and security response headers."""

from __future__ import annotations

from flask import Flask, Response
from flask_cors import CORS
from werkzeug.middleware.proxy_fix import ProxyFix

SECURITY_HEADERS: dict[str, str] = {
    "X-Content-Type-Options": "nosniff",
    "X-Frame-Options": "DENY",
    "Referrer-Policy": "no-referrer",
    "Cache-Control": "no-store",
    "Content-Security-Policy": "default-src 'none'; frame-ancestors 'none'",
}


def init_proxy(app: Flask) -> None:
    """Apply :class:`~werkzeug.middleware.proxy_fix.ProxyFix` when ``USE_PROXYFIX`` is set.

    A single hop is trusted for ``X-Forwarded-*`` headers, so rate limiting
    keys on the real client address behind a reverse proxy.
    """
    if app.config.get("USE_PROXYFIX", True):
        app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1, x_prefix=1)


def init_cors(app: Flask) -> None:
    """Configure CORS for ``/api/*`` from ``CORS_ORIGINS`` and ``CORS_MAX_AGE``.

    A blank or ``"*"`` origin list allows any origin but disables credentials.
    The ``Authorization`` header is always allowed; bearer tokens travel there.
    """
    raw_origins = app.config.get("CORS_ORIGINS", "")
    origins = [o.strip() for o in raw_origins.split(",") if o.strip()]
    wildcard = len(origins) == 0 or origins == ["*"]

    CORS(
        app,
        resources={r"/api/*": {"origins": "*" if wildcard else origins}},
        supports_credentials=not wildcard,
        allow_headers=["Authorization", "Content-Type", "X-Request-ID"],
        expose_headers=["X-Request-ID"],
        max_age=app.config.get("CORS_MAX_AGE", 600),
    )


def init_security_headers(app: Flask) -> None:
    """Stamp conservative security headers on every response."""
    if not app.config.get("SECURITY_HEADERS_ENABLED", True):
        return

    @app.after_request
    def _security_headers(response: Response) -> Response:
        for header, value in SECURITY_HEADERS.items():
            response.headers.setdefault(header, value)
        if app.config.get("PREFERRED_URL_SCHEME") == "https":
            response.headers.setdefault(
                "Strict-Transport-Security", "max-age=63072000; includeSubDomains"
            )
        return response


def init_app(app: Flask) -> None:
    """Install CORS and security headers; proxy handling is wired separately."""
    init_cors(app)
    init_security_headers(app)


__all__ = ["SECURITY_HEADERS", "init_app", "init_cors", "init_proxy", "init_security_headers"]
