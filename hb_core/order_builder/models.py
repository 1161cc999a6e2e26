# hb_core/order_builder/models.py
from __future__ import annotations

from django.core.serializers.json import DjangoJSONEncoder
from django.db import models

from hb_core.common.models import ScopedModel


class DraftStatus(models.TextChoices):
    OPEN = "OPEN", "Open"
    SUBMITTING = "SUBMITTING", "Submitting"
    SUBMITTED = "SUBMITTED", "Submitted"
    CANCELLED = "CANCELLED", "Cancelled"


class OrderDraft(ScopedModel):
    """
    Persisted wizard session for the HTTP surface.

    `state` is the encoded wizard state (hb_core.order_builder.codec);
    `step` mirrors the state's step name for filtering.
    Nothing in here is an order line: lines exist only after submit.
    """
    operator = models.CharField(max_length=150, blank=True)
    step = models.CharField(max_length=32, db_index=True)
    status = models.CharField(max_length=16, choices=DraftStatus.choices, default=DraftStatus.OPEN, db_index=True)

    state = models.JSONField(default=dict, encoder=DjangoJSONEncoder)

    # submission summary
    payer_ref = models.CharField(max_length=64, blank=True)
    submitted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "order_builder_draft"
        indexes = [
            models.Index(fields=["hotel_id", "status"]),
        ]

    def __str__(self) -> str:
        return f"{self.id} {self.step} ({self.status})"

    @property
    def is_terminal(self) -> bool:
        return self.status in (DraftStatus.SUBMITTED, DraftStatus.CANCELLED)
