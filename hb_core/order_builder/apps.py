from django.apps import AppConfig


class OrderBuilderConfig(AppConfig):
    default_auto_field = "django.db.models.BigAutoField"
    name = "hb_core.order_builder"
