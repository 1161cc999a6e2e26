# hb_core/audit/services.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from django.db import transaction

from hb_core.audit.models import AuditEvent


@dataclass(frozen=True)
class AuditRecord:
    event_code: str
    entity_type: str
    entity_id: UUID
    hotel_id: UUID
    actor: str
    metadata: Dict[str, Any]


class AuditService:
    """
    Central audit writer. Rows are never updated or deleted.
    """

    @staticmethod
    @transaction.atomic
    def log(
        *,
        event_code: str,
        entity_type: str,
        entity_id: UUID,
        hotel_id: UUID,
        actor: str = "",
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AuditRecord:
        metadata = metadata or {}

        AuditEvent.objects.create(
            hotel_id=hotel_id,
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            actor=actor or "",
            metadata=metadata,
        )

        return AuditRecord(
            event_code=event_code,
            entity_type=entity_type,
            entity_id=entity_id,
            hotel_id=hotel_id,
            actor=actor or "",
            metadata=metadata,
        )
