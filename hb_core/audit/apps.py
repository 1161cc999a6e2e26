# hb_core/audit/apps.py
from django.apps import AppConfig


class AuditConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hb_core.audit"

    def ready(self):
        from hb_core.audit import subscribers  # noqa: F401
