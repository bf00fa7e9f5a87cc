"""
Gunicorn configuration for the Chat Maestro API.

Run with: gunicorn maestro.main:app -c gunicorn.conf.py

Env vars that override defaults:
  PORT     — TCP port to bind (Railway sets this automatically)
  WORKERS  — number of worker processes (default: 1)

Per-user engine state (cooldowns, feedback history) lives in process
memory, so every worker has its own copy. Keep WORKERS at 1 unless the
load balancer pins each user to one worker.
"""
import os

bind = f"0.0.0.0:{os.environ.get('PORT', '8000')}"

workers = int(os.environ.get("WORKERS", "1"))

# Each worker runs Uvicorn's ASGI event loop inside Gunicorn's process manager.
worker_class = "uvicorn.workers.UvicornWorker"

# Sync routes run in Uvicorn's threadpool; the registry serialises per user.
keepalive = 5

# Evaluation is CPU-only and bounded by input size.
timeout = 30

# Logs go to stdout; the app installs its own formatter on startup.
loglevel = "info"
accesslog = "-"
errorlog = "-"
access_log_format = '%(h)s "%(r)s" %(s)s %(b)sB %(D)sµs'

graceful_timeout = 30
