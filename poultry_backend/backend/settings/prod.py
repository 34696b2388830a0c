# backend/settings/prod.py
"""
PATH: backend/settings/prod.py

PRODUCTION SETTINGS

Fail-closed rules:
- DEBUG forced off, SECRET_KEY and ALLOWED_HOSTS must be set
- PostgreSQL only: balance and truck-day serialization rely on
  SELECT ... FOR UPDATE, which SQLite ignores
- Ledger knobs are range-checked at boot so a typo cannot disable
  retries or make every payment irreversible
- CORS/CSRF origins explicit and https only
"""

from __future__ import annotations

from django.core.exceptions import ImproperlyConfigured

from .base import *  # noqa: F403
from .base import BASE_DIR, LEDGER, MIDDLEWARE, TRUCK_LOAD_LIMITS, env

DEBUG = False

# ----------------------------
# SECRET KEY / HOSTS
# ----------------------------
SECRET_KEY = (env("SECRET_KEY", default="") or "").strip()
if not SECRET_KEY or SECRET_KEY == "dev-insecure-change-me":
    raise ImproperlyConfigured("SECRET_KEY must be set to a strong value in production.")

ALLOWED_HOSTS = env.list("ALLOWED_HOSTS", default=[])
if not ALLOWED_HOSTS:
    raise ImproperlyConfigured("ALLOWED_HOSTS must be set in production.")

# ----------------------------
# DATABASE (PostgreSQL only)
# ----------------------------
if not (env("DATABASE_URL", default="") or "").strip():
    raise ImproperlyConfigured("DATABASE_URL must be set in production.")

DATABASES = {"default": env.db("DATABASE_URL")}
if DATABASES["default"]["ENGINE"] != "django.db.backends.postgresql":
    raise ImproperlyConfigured(
        "The ledger needs row-level locks; DATABASE_URL must point at PostgreSQL."
    )
DATABASES["default"]["CONN_MAX_AGE"] = env.int("DB_CONN_MAX_AGE", default=60)

# ----------------------------
# LEDGER KNOBS
# ----------------------------
if LEDGER["MAX_ATTEMPTS"] < 1:
    raise ImproperlyConfigured("LEDGER_MAX_ATTEMPTS must be at least 1.")
if LEDGER["PAYMENT_REVERSAL_WINDOW_HOURS"] <= 0:
    raise ImproperlyConfigured("PAYMENT_REVERSAL_WINDOW_HOURS must be positive.")
if TRUCK_LOAD_LIMITS["MIN_AVG_CAGE_WEIGHT"] > TRUCK_LOAD_LIMITS["MAX_AVG_CAGE_WEIGHT"]:
    raise ImproperlyConfigured(
        "TRUCK_LOAD_MIN_AVG_CAGE_WEIGHT cannot exceed TRUCK_LOAD_MAX_AVG_CAGE_WEIGHT."
    )

# ----------------------------
# STATIC (admin only; served by WhiteNoise)
# ----------------------------
STATIC_ROOT = env("STATIC_ROOT", default=str(BASE_DIR / "staticfiles"))
MIDDLEWARE.insert(1, "whitenoise.middleware.WhiteNoiseMiddleware")
STORAGES = {
    "default": {"BACKEND": "django.core.files.storage.FileSystemStorage"},
    "staticfiles": {"BACKEND": "whitenoise.storage.CompressedManifestStaticFilesStorage"},
}

# ----------------------------
# TLS / COOKIES / HEADERS
# ----------------------------
SECURE_PROXY_SSL_HEADER = ("HTTP_X_FORWARDED_PROTO", "https")
SECURE_SSL_REDIRECT = env.bool("SECURE_SSL_REDIRECT", default=True)
SECURE_HSTS_SECONDS = env.int("SECURE_HSTS_SECONDS", default=3600)
SECURE_HSTS_INCLUDE_SUBDOMAINS = env.bool("SECURE_HSTS_INCLUDE_SUBDOMAINS", default=True)

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
SESSION_COOKIE_HTTPONLY = True
CSRF_COOKIE_HTTPONLY = True

SECURE_CONTENT_TYPE_NOSNIFF = True
SECURE_REFERRER_POLICY = "same-origin"
X_FRAME_OPTIONS = "DENY"

# ----------------------------
# CORS / CSRF (https only)
# ----------------------------
CORS_ALLOWED_ORIGINS = env.list("CORS_ALLOWED_ORIGINS", default=[])
CSRF_TRUSTED_ORIGINS = env.list("CSRF_TRUSTED_ORIGINS", default=[])
CORS_ALLOW_CREDENTIALS = False

for _name, _origins in (
    ("CORS_ALLOWED_ORIGINS", CORS_ALLOWED_ORIGINS),
    ("CSRF_TRUSTED_ORIGINS", CSRF_TRUSTED_ORIGINS),
):
    if not _origins:
        raise ImproperlyConfigured(f"{_name} must be set in production.")
    if any(not origin.startswith("https://") for origin in _origins):
        raise ImproperlyConfigured(f"{_name} must list https:// origins only.")
