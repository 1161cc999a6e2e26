# hb_core/addons/selectors.py
from __future__ import annotations

from decimal import Decimal
from typing import Any, Mapping
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q, QuerySet, Sum

from hb_core.addons.filters import AddonFilter
from hb_core.addons.models import ReservationServiceAddon
from hb_core.common.errors import NotFoundError, ValidationError
from hb_core.common.scope import parse_uuid


def get_addon(*, hotel_id: UUID, addon_id: UUID) -> ReservationServiceAddon:
    """
    Live (not soft-deleted) add-on in this hotel.
    """
    try:
        return ReservationServiceAddon.objects.get(id=addon_id, hotel_id=hotel_id)
    except (ReservationServiceAddon.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError({"detail": "Add-on not found.", "addon_id": str(addon_id)})


def _payer_q(payer: str) -> Q:
    q = Q(payer_ref=payer)
    as_uuid = parse_uuid(payer)
    if as_uuid is not None:
        q |= Q(reservation_id=as_uuid)
    return q


def list_for_payer(*, hotel_id: UUID, payer: str) -> QuerySet[ReservationServiceAddon]:
    """
    `payer` is a payer reference (reservation no. / CASH-...) or a reservation id.
    """
    return (
        ReservationServiceAddon.objects.filter(hotel_id=hotel_id)
        .filter(_payer_q(str(payer).strip()))
        .order_by("service_date", "service_time", "created_at")
    )


def total_for_payer(*, hotel_id: UUID, payer: str) -> dict[str, Decimal]:
    """
    Sum of total_price over the payer's live lines, per currency.
    A payer with no live lines gets {}.
    """
    rows = (
        list_for_payer(hotel_id=hotel_id, payer=payer)
        .order_by()
        .values("currency")
        .annotate(total=Sum("total_price"))
        .order_by("currency")
    )
    return {r["currency"]: r["total"].quantize(Decimal("0.01")) for r in rows}


def list_addons(*, hotel_id: UUID, params: Mapping[str, Any] | None = None) -> QuerySet[ReservationServiceAddon]:
    qs = ReservationServiceAddon.objects.filter(hotel_id=hotel_id).order_by("-created_at")

    fs = AddonFilter(data=params or {}, queryset=qs)
    if not fs.is_valid():
        raise ValidationError({k: [str(e) for e in v] for k, v in fs.errors.items()})
    return fs.qs
