# hb_core/catalog/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models
from django.db.models import Q

from hb_core.common.conf import base_currency
from hb_core.common.models import ScopedModel, TimeStampedModel


class ServiceCategory(models.TextChoices):
    RESERVATION = "Reservation", "Reservation"
    EVENT = "Event", "Event"
    BOTH = "Both", "Both"


class ServiceItemStatus(models.TextChoices):
    ACTIVE = "Active", "Active"
    INACTIVE = "Inactive", "Inactive"


class ServiceItem(ScopedModel):
    """
    Sellable add-on service (spa, airport transfer, laundry...).
    Never hard-deleted: deletion flips status to Inactive.
    """
    service_name = models.CharField(max_length=255)
    description = models.TextField(blank=True)

    category = models.CharField(
        max_length=16,
        choices=ServiceCategory.choices,
        default=ServiceCategory.RESERVATION,
        db_index=True,
    )
    unit_type = models.CharField(max_length=64)  # e.g. "per day", "per trip"

    # external tax identifiers (TaxCatalog ids)
    tax_ids = models.JSONField(default=list, blank=True)

    status = models.CharField(
        max_length=16,
        choices=ServiceItemStatus.choices,
        default=ServiceItemStatus.ACTIVE,
        db_index=True,
    )

    created_by = models.CharField(max_length=150, blank=True)
    updated_by = models.CharField(max_length=150, blank=True)
    deleted_by = models.CharField(max_length=150, blank=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = "catalog_service_item"
        indexes = [
            models.Index(fields=["hotel_id", "status"]),
            models.Index(fields=["hotel_id", "category"]),
        ]

    def __str__(self) -> str:
        return self.service_name

    @property
    def is_active(self) -> bool:
        return self.status == ServiceItemStatus.ACTIVE

    def price_rows(self) -> list["ServiceItemPrice"]:
        return list(self.prices.all())

    def price_for(self, currency: str | None = None) -> "ServiceItemPrice | None":
        """
        Price row for `currency`; without a currency the primary price:
        the hotel's base currency when priced in it, else the first row.
        """
        rows = self.price_rows()
        if not rows:
            return None

        if currency:
            wanted = currency.strip().upper()
            return next((r for r in rows if r.currency == wanted), None)

        base = base_currency()
        return next((r for r in rows if r.currency == base), rows[0])


class ServiceItemPrice(TimeStampedModel):
    """
    One currency -> amount entry of a service item's price list.
    """
    item = models.ForeignKey(ServiceItem, on_delete=models.CASCADE, related_name="prices")
    currency = models.CharField(max_length=3)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    position = models.PositiveSmallIntegerField(default=0)

    class Meta:
        db_table = "catalog_service_item_price"
        ordering = ["position", "id"]
        constraints = [
            models.UniqueConstraint(fields=["item", "currency"], name="uq_service_item_price_currency"),
            models.CheckConstraint(condition=Q(amount__gt=Decimal("0")), name="ck_service_item_price_amount_pos"),
        ]

    def __str__(self) -> str:
        return f"{self.currency} {self.amount}"


class ServiceItemPriceChange(TimeStampedModel):
    """
    Price history: one row per currency whose amount changed or was removed.
    """
    item = models.ForeignKey(ServiceItem, on_delete=models.CASCADE, related_name="price_changes")
    currency = models.CharField(max_length=3)
    old_amount = models.DecimalField(max_digits=12, decimal_places=2)
    new_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)  # null = removed
    changed_by = models.CharField(max_length=150, blank=True)

    class Meta:
        db_table = "catalog_service_item_price_change"
        ordering = ["-created_at", "-id"]
