"""
Gunicorn configuration for the wellness core API.

Env vars that override defaults:
  PORT     — TCP port to bind
  WORKERS  — number of worker processes (default: 2)

The app is built by a factory so every worker validates ZKWV_SALT at boot:
  gunicorn -c gunicorn.conf.py
"""
import os

wsgi_app = "wellness_core.main:create_app()"

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "2"))

# Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

keepalive = 5

# Kill a worker that hasn't responded in 120 s.
timeout = 120

# Application logs are JSON on stdout (see wellness_core/core/logging.py);
# gunicorn's own logs go to the same stream.
loglevel = os.environ.get("LOG_LEVEL", "info").lower()
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
