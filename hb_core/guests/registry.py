from __future__ import annotations

from typing import Any, Mapping, Optional
from uuid import UUID

from django.db.models import Q

from hb_core.common.registries import CustomerRecord, ReservationRecord
from hb_core.guests.models import Customer, Reservation, ReservationStatus


def _customer_record(c: Customer) -> CustomerRecord:
    return CustomerRecord(
        id=c.id,
        name=c.full_name,
        identification_number=c.identification_number,
        email=c.email,
        phone=c.phone,
    )


def _reservation_record(r: Reservation) -> ReservationRecord:
    return ReservationRecord(
        id=r.id,
        reservation_no=r.reservation_no,
        customer_id=r.customer_id,
        guest_name=r.customer.full_name,
        room_no=r.room_no,
        check_in=r.check_in,
        check_out=r.check_out,
        identification_number=r.customer.identification_number,
    )


class ModelCustomerRegistry:
    def get(self, *, hotel_id: UUID, customer_id: UUID) -> Optional[CustomerRecord]:
        c = Customer.objects.filter(hotel_id=hotel_id, id=customer_id).first()
        return None if c is None else _customer_record(c)

    def find_by_identification(self, *, hotel_id: UUID, identification_number: str) -> Optional[CustomerRecord]:
        ident = (identification_number or "").strip()
        if not ident:
            return None
        c = (
            Customer.objects.filter(hotel_id=hotel_id, identification_number__iexact=ident)
            .order_by("created_at")
            .first()
        )
        return None if c is None else _customer_record(c)

    def create(self, *, hotel_id: UUID, data: Mapping[str, Any]) -> CustomerRecord:
        c = Customer.objects.create(
            hotel_id=hotel_id,
            first_name=(data.get("first_name") or "").strip(),
            last_name=(data.get("last_name") or "").strip(),
            email=(data.get("email") or "").strip(),
            phone=(data.get("phone") or "").strip(),
            identification_number=(data.get("identification_number") or "").strip(),
            nationality=(data.get("nationality") or "").strip(),
            address=(data.get("address") or "").strip(),
            city=(data.get("city") or "").strip(),
            country=(data.get("country") or "").strip(),
        )
        return _customer_record(c)


class ModelReservationRegistry:
    def get(self, *, hotel_id: UUID, reservation_id: UUID) -> Optional[ReservationRecord]:
        r = (
            Reservation.objects.select_related("customer")
            .filter(hotel_id=hotel_id, id=reservation_id)
            .first()
        )
        return None if r is None else _reservation_record(r)

    def find_by_room_or_reference(self, *, hotel_id: UUID, query: str) -> list[ReservationRecord]:
        """
        Matches the reservation number or room number exactly, or the guest's
        identification number partially (all case-insensitive).
        Cancelled reservations are never returned.
        """
        q = (query or "").strip()
        if not q:
            return []

        qs = (
            Reservation.objects.select_related("customer")
            .filter(hotel_id=hotel_id)
            .exclude(status=ReservationStatus.CANCELLED)
            .filter(
                Q(reservation_no__iexact=q)
                | Q(room_no__iexact=q)
                | Q(customer__identification_number__icontains=q)
            )
            .order_by("check_in", "reservation_no")
        )
        return [_reservation_record(r) for r in qs]
