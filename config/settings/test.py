# config/settings/test.py
from .base import *  # noqa

DEBUG = False

DATABASES = {
    "default": {
        "ENGINE": "django.db.backends.sqlite3",
        "NAME": ":memory:",
    }
}

PASSWORD_HASHERS = ["django.contrib.auth.hashers.MD5PasswordHasher"]

COMMON_IDEMPOTENCY_USE_DB = True

LOGGING["loggers"]["hb_core"]["level"] = "WARNING"  # noqa: F405
