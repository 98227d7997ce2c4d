"""
Gunicorn configuration for SourceGate production deployment.

Usage:
    gunicorn sourcegate.main:app -c gunicorn.conf.py

Environment overrides: PORT, WEB_CONCURRENCY, GUNICORN_TIMEOUT.
"""

import multiprocessing
import os

bind = f"0.0.0.0:{os.getenv('PORT', '8000')}"

# Every worker opens the same <DATA_DIR>/.registry.lock and takes an exclusive
# flock on it before writing registry.json, policy.json or the proposal files,
# and documents are replaced atomically, so any number of workers may share
# one data directory. The audit JSONL sinks are appended under their own flock.
workers = int(os.getenv("WEB_CONCURRENCY", str(multiprocessing.cpu_count() * 2 + 1)))

# Use Uvicorn's ASGI worker for FastAPI
worker_class = "uvicorn.workers.UvicornWorker"

# One /llm request makes up to QUERY_MAX_ATTEMPTS calls of at most LLM_TIMEOUT each
_query_budget = float(os.getenv("LLM_TIMEOUT", "60")) * int(os.getenv("QUERY_MAX_ATTEMPTS", "3"))
timeout = int(os.getenv("GUNICORN_TIMEOUT", str(int(_query_budget) + 20)))

# Keep-alive connections (seconds)
keepalive = 5

# Logging
accesslog = "-"  # stdout
errorlog = "-"   # stderr
loglevel = os.getenv("LOG_LEVEL", "info").lower()
