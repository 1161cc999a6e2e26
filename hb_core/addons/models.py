# hb_core/addons/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from hb_core.common.models import ScopedModel


class BillingMethod(models.TextChoices):
    CASH = "Cash", "Cash"
    ROOM = "Room", "Room"
    REFERENCE = "Reference No.", "Reference No."


class AddonStatus(models.TextChoices):
    PENDING = "Pending", "Pending"
    COMPLETED = "Completed", "Completed"
    CANCELLED = "Cancelled", "Cancelled"


class LiveAddonManager(models.Manager):
    """
    Hides soft-deleted rows.
    """
    def get_queryset(self):
        return super().get_queryset().filter(deleted_at__isnull=True)


class ReservationServiceAddon(ScopedModel):
    """
    A committed add-on order line.

    Price lock: service_name / unit_price / unit_type / currency / tax_ids are
    snapshotted at commit and never re-read from the catalog.
    Invoice lock: once is_invoiced is set the row is frozen (enforced by
    AddonStoreService under a row lock).
    """

    # payer linkage
    payer_ref = models.CharField(max_length=64, db_index=True)  # reservation no. or CASH-... reference
    reservation_id = models.UUIDField(null=True, blank=True, db_index=True)
    customer_id = models.UUIDField(null=True, blank=True, db_index=True)

    guest_name = models.CharField(max_length=255, blank=True)
    room_no = models.CharField(max_length=16, blank=True)
    check_in = models.DateField(null=True, blank=True)
    check_out = models.DateField(null=True, blank=True)

    # service snapshot (no FK: the catalog item may change or be deactivated)
    service_id = models.UUIDField(db_index=True)
    service_name = models.CharField(max_length=255)
    unit_type = models.CharField(max_length=64, blank=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    tax_ids = models.JSONField(default=list, blank=True)

    quantity = models.DecimalField(max_digits=10, decimal_places=2, default=Decimal("1.00"))
    total_price = models.DecimalField(max_digits=14, decimal_places=2, default=Decimal("0.00"))

    service_date = models.DateField()
    service_time = models.TimeField()

    billing_method = models.CharField(max_length=16, choices=BillingMethod.choices, db_index=True)
    reference_no = models.CharField(max_length=128, blank=True)
    notes = models.TextField(blank=True)

    status = models.CharField(
        max_length=16,
        choices=AddonStatus.choices,
        default=AddonStatus.PENDING,
        db_index=True,
    )

    is_invoiced = models.BooleanField(default=False, db_index=True)
    invoice_ref = models.CharField(max_length=64, blank=True)
    invoiced_at = models.DateTimeField(null=True, blank=True)

    deleted_at = models.DateTimeField(null=True, blank=True, db_index=True)
    deleted_by = models.CharField(max_length=150, blank=True)

    created_by = models.CharField(max_length=150, blank=True)
    updated_by = models.CharField(max_length=150, blank=True)

    objects = LiveAddonManager()
    all_objects = models.Manager()

    class Meta:
        db_table = "addons_reservation_service_addon"
        default_manager_name = "all_objects"
        constraints = [
            models.CheckConstraint(condition=Q(quantity__gt=Decimal("0")), name="ck_addon_quantity_pos"),
            models.CheckConstraint(condition=Q(unit_price__gt=Decimal("0")), name="ck_addon_unit_price_pos"),
            models.CheckConstraint(
                condition=Q(billing_method=BillingMethod.REFERENCE) | Q(reference_no=""),
                name="ck_addon_reference_only_for_reference_billing",
            ),
        ]
        indexes = [
            models.Index(fields=["hotel_id", "payer_ref"]),
            models.Index(fields=["hotel_id", "created_at"]),
        ]

    def __str__(self) -> str:
        return f"{self.payer_ref} / {self.service_name} x {self.quantity}"

    @property
    def is_deleted(self) -> bool:
        return self.deleted_at is not None

    @staticmethod
    def compute_total(quantity, unit_price) -> Decimal:
        return (Decimal(str(quantity)) * Decimal(str(unit_price))).quantize(Decimal("0.01"))

    def save(self, *args, **kwargs):
        # total_price is always derived, never written independently
        self.total_price = self.compute_total(self.quantity, self.unit_price)

        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "total_price" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "total_price"]

        super().save(*args, **kwargs)
