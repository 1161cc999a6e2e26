# hb_core/rates/models.py
from __future__ import annotations

from decimal import Decimal

from django.db import models

from hb_core.common.models import TimeStampedModel


class Currency(TimeStampedModel):
    """
    Currency reference table (maintained outside this app).
    """
    code = models.CharField(max_length=3, primary_key=True)  # ISO 4217, e.g. "LKR"
    name = models.CharField(max_length=64, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "rates_currency"
        ordering = ["code"]

    def save(self, *args, **kwargs):
        self.code = (self.code or "").strip().upper()
        super().save(*args, **kwargs)

    def __str__(self) -> str:
        return self.code


class TaxRate(TimeStampedModel):
    """
    Tax definition referenced by service items through `code`.
    """
    code = models.CharField(max_length=32, primary_key=True)  # e.g. "VAT", "SSCL"
    name = models.CharField(max_length=128)
    rate_percent = models.DecimalField(max_digits=5, decimal_places=2, default=Decimal("0.00"))  # e.g. 12.00
    is_active = models.BooleanField(default=True)

    class Meta:
        db_table = "rates_tax_rate"
        ordering = ["code"]

    def __str__(self) -> str:
        return f"{self.code} ({self.rate_percent}%)"
