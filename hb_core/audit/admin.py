from django.contrib import admin

from hb_core.audit.models import AuditEvent


@admin.register(AuditEvent)
class AuditEventAdmin(admin.ModelAdmin):
    list_display = ("event_code", "entity_type", "entity_id", "hotel_id", "actor", "occurred_at")
    list_filter = ("hotel_id", "event_code", "entity_type")
    search_fields = ("event_code", "entity_type", "entity_id", "actor")
    readonly_fields = ("occurred_at",)
    ordering = ("-occurred_at",)
