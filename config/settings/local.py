# config/settings/local.py
import os

from .base import *  # noqa

DEBUG = os.getenv("DJANGO_DEBUG", "1") == "1"
CORS_ALLOW_ALL_ORIGINS = DEBUG

# DB_ENGINE=sqlite runs without a local PostgreSQL
if os.getenv("DB_ENGINE", "").lower() == "sqlite":
    DATABASES = {
        "default": {
            "ENGINE": "django.db.backends.sqlite3",
            "NAME": BASE_DIR / "db.sqlite3",
        }
    }

COMMON_IDEMPOTENCY_USE_DB = os.getenv("COMMON_IDEMPOTENCY_USE_DB", "1") == "1"
