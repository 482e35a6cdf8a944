"""Gunicorn configuration for production deployment.

Usage:
    gunicorn -c gunicorn.conf.py eduportal.main:app

Sessions, rate-limit counters and the memory store live inside each worker
process. Keep GUNICORN_WORKERS=1 unless STORE_BACKEND=sql and per-worker
sessions and limits are acceptable.
"""
from __future__ import annotations

import os

# ── Server socket ────────────────────────────────────────
bind = os.getenv("GUNICORN_BIND", "0.0.0.0:5000")

# ── Worker processes ─────────────────────────────────────
# In-process state; one worker by default
workers = int(os.getenv("GUNICORN_WORKERS", "1"))
worker_class = "uvicorn.workers.UvicornWorker"
worker_tmp_dir = "/dev/shm"  # RAM-backed tmpdir for heartbeat (prevents disk I/O issues)

# ── Timeouts ─────────────────────────────────────────────
timeout = int(os.getenv("GUNICORN_TIMEOUT", "120"))
graceful_timeout = int(os.getenv("GUNICORN_GRACEFUL_TIMEOUT", "30"))
keepalive = int(os.getenv("GUNICORN_KEEPALIVE", "5"))

# ── Request limits ───────────────────────────────────────
# Worker recycling drops in-memory sessions; off unless set
max_requests = int(os.getenv("GUNICORN_MAX_REQUESTS", "0"))
max_requests_jitter = int(os.getenv("GUNICORN_MAX_REQUESTS_JITTER", "50"))

# ── Preloading ───────────────────────────────────────────
# Preloaded or not, each worker ends up with its own copy of sessions and counters
preload_app = os.getenv("GUNICORN_PRELOAD", "false").lower() == "true"

# ── Logging ──────────────────────────────────────────────
accesslog = os.getenv("GUNICORN_ACCESSLOG", "-")  # stdout
errorlog = os.getenv("GUNICORN_ERRORLOG", "-")    # stderr
loglevel = os.getenv("GUNICORN_LOGLEVEL", "info")
access_log_format = '%(h)s %(l)s %(u)s %(t)s "%(r)s" %(s)s %(b)s "%(f)s" "%(a)s" %(D)s'

# ── Process naming ───────────────────────────────────────
proc_name = "eduportal"
