# config/settings/prod.py
from .base import *  # noqa

DEBUG = False
CORS_ALLOW_ALL_ORIGINS = False

ALLOWED_HOSTS = [h for h in ALLOWED_HOSTS if h != "*"] or ["localhost"]  # noqa: F405

SESSION_COOKIE_SECURE = True
CSRF_COOKIE_SECURE = True
