# backend/settings/dev.py
"""
PATH: backend/settings/dev.py

LOCAL DEVELOPMENT SETTINGS

- SQLite by default (row locks are a no-op there; the balance
  compare-and-swap still guards every write)
- Ledger loggers at DEBUG unless LOG_LEVEL says otherwise
- Open CORS for the local cashier UI
"""

from __future__ import annotations

from .base import *  # noqa: F403
from .base import LOGGING, env

DEBUG = True

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=["localhost", "127.0.0.1", "testserver"])

CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=["http://localhost:5173"])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=["http://localhost:5173"])
CORS_ALLOW_CREDENTIALS = True

_dev_log_level = (env("LOG_LEVEL", default="") or "DEBUG").strip().upper()
for _logger in LOGGING["loggers"].values():
    _logger["level"] = _dev_log_level
