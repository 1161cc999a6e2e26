# hb_core/audit/models.py
from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from hb_core.common.models import ScopedModel


class AuditEvent(ScopedModel):
    """
    Immutable audit record, written from published domain events.
    """
    event_code = models.CharField(max_length=128, db_index=True)  # e.g. "addon.invoiced"
    entity_type = models.CharField(max_length=128, db_index=True)  # e.g. "ReservationServiceAddon"
    entity_id = models.UUIDField(db_index=True)

    # username; blank for system actions
    actor = models.CharField(max_length=150, blank=True, db_index=True)

    occurred_at = models.DateTimeField(auto_now_add=True, db_index=True)
    metadata = models.JSONField(default=dict, encoder=DjangoJSONEncoder)

    class Meta:
        db_table = "audit_audit_event"
        indexes = [
            models.Index(fields=["hotel_id", "occurred_at"]),
            models.Index(fields=["entity_type", "entity_id"]),
            models.Index(fields=["hotel_id", "event_code"]),
        ]

    def __str__(self) -> str:
        return f"{self.event_code} {self.entity_type}:{self.entity_id}"
