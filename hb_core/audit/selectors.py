# hb_core/audit/selectors.py
from __future__ import annotations

from uuid import UUID

from django.db.models import QuerySet

from hb_core.audit.models import AuditEvent


def list_audit_events(
    *,
    hotel_id: UUID,
    entity_type: str | None = None,
    entity_id: UUID | None = None,
    event_code: str | None = None,
    actor: str | None = None,
) -> QuerySet[AuditEvent]:
    qs = AuditEvent.objects.filter(hotel_id=hotel_id)

    if entity_type:
        qs = qs.filter(entity_type=entity_type)
    if entity_id:
        qs = qs.filter(entity_id=entity_id)
    if event_code:
        qs = qs.filter(event_code=event_code)
    if actor:
        qs = qs.filter(actor=actor)

    return qs.order_by("-occurred_at")
