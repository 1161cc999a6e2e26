# hb_core/guests/models.py
from __future__ import annotations

from django.db import models

from hb_core.common.models import ScopedModel


class Customer(ScopedModel):
    """
    Guest / walk-in customer profile.
    Identification number is a passport or NIC and is matched case-insensitively.
    """
    first_name = models.CharField(max_length=128)
    last_name = models.CharField(max_length=128, blank=True)
    email = models.EmailField(blank=True)
    phone = models.CharField(max_length=32, blank=True)
    identification_number = models.CharField(max_length=64, blank=True, db_index=True)
    nationality = models.CharField(max_length=64, blank=True)

    address = models.CharField(max_length=255, blank=True)
    city = models.CharField(max_length=128, blank=True)
    country = models.CharField(max_length=128, blank=True)

    class Meta:
        db_table = "guests_customer"
        indexes = [
            models.Index(fields=["hotel_id", "identification_number"]),
        ]

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    def __str__(self) -> str:
        return self.full_name


class ReservationStatus(models.TextChoices):
    CONFIRMED = "Confirmed", "Confirmed"
    CHECKED_IN = "CheckedIn", "Checked in"
    CHECKED_OUT = "CheckedOut", "Checked out"
    CANCELLED = "Cancelled", "Cancelled"


class Reservation(ScopedModel):
    reservation_no = models.CharField(max_length=64)  # e.g. "RES-2025-0042"
    customer = models.ForeignKey(Customer, on_delete=models.PROTECT, related_name="reservations")

    room_no = models.CharField(max_length=16, blank=True)
    check_in = models.DateField()
    check_out = models.DateField()

    status = models.CharField(
        max_length=16,
        choices=ReservationStatus.choices,
        default=ReservationStatus.CONFIRMED,
        db_index=True,
    )

    class Meta:
        db_table = "guests_reservation"
        constraints = [
            models.UniqueConstraint(fields=["hotel_id", "reservation_no"], name="uq_reservation_hotel_no"),
        ]
        indexes = [
            models.Index(fields=["hotel_id", "room_no"]),
        ]

    def __str__(self) -> str:
        return self.reservation_no
