# gunicorn -c gunicorn.conf.py "token_service:create_app()"
import os

from token_service.core.logger import shutdown_logging

# Bind & workers
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:8000")
workers = int(os.getenv("GUNICORN_WORKERS", "2"))
threads = 1
timeout = 60
graceful_timeout = 30
keepalive = 5

# Logs to stdout/stderr (collected by Docker); app records are JSON lines
accesslog = "-"
errorlog = "-"
loglevel = os.getenv("LOG_LEVEL", "info").lower()

# Trust proxy headers; ProxyFix in the app handles X-Forwarded-*
forwarded_allow_ips = "*"
proxy_protocol = False


def worker_exit(server, worker):
    # flush JSON log handlers before the worker goes away
    shutdown_logging()
