# hb_core/catalog/selectors.py
from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db.models import Q, QuerySet

from hb_core.catalog.models import ServiceCategory, ServiceItem, ServiceItemPriceChange, ServiceItemStatus
from hb_core.common.errors import NotFoundError, ValidationError


@dataclass(frozen=True)
class Quote:
    """
    Live catalog price of one active item, in one currency.
    """
    service_id: UUID
    service_name: str
    description: str
    unit_type: str
    currency: str
    unit_price: Decimal
    tax_ids: tuple[str, ...]


def _base_qs(hotel_id: UUID) -> QuerySet[ServiceItem]:
    return ServiceItem.objects.filter(hotel_id=hotel_id).prefetch_related("prices")


def get_item(*, hotel_id: UUID, item_id: UUID) -> ServiceItem:
    try:
        return _base_qs(hotel_id).get(id=item_id)
    except (ServiceItem.DoesNotExist, DjangoValidationError, ValueError):
        raise NotFoundError({"detail": "Service item not found.", "service_id": str(item_id)})


def get_active_item(*, hotel_id: UUID, item_id: UUID) -> ServiceItem:
    item = get_item(hotel_id=hotel_id, item_id=item_id)
    if not item.is_active:
        raise NotFoundError({"detail": "Service item is not active.", "service_id": str(item_id)})
    return item


def list_items(
    *,
    hotel_id: UUID,
    status: str | None = None,
    category: str | None = None,
    search: str | None = None,
) -> QuerySet[ServiceItem]:
    """
    A category filter also matches items sold in both contexts ("Both").
    """
    qs = _base_qs(hotel_id)

    if status:
        qs = qs.filter(status=status)
    if category:
        qs = qs.filter(Q(category=category) | Q(category=ServiceCategory.BOTH))
    if search:
        qs = qs.filter(Q(service_name__icontains=search) | Q(description__icontains=search))

    return qs.order_by("service_name", "created_at")


def list_active(*, hotel_id: UUID, category: str | None = None) -> QuerySet[ServiceItem]:
    return list_items(hotel_id=hotel_id, status=ServiceItemStatus.ACTIVE, category=category)


def list_inactive(*, hotel_id: UUID) -> QuerySet[ServiceItem]:
    return list_items(hotel_id=hotel_id, status=ServiceItemStatus.INACTIVE)


def list_price_changes(*, hotel_id: UUID, item_id: UUID) -> QuerySet[ServiceItemPriceChange]:
    item = get_item(hotel_id=hotel_id, item_id=item_id)
    return item.price_changes.all()


def quote_item(*, hotel_id: UUID, item_id: UUID, currency: str | None = None) -> Quote:
    item = get_active_item(hotel_id=hotel_id, item_id=item_id)

    row = item.price_for(currency)
    if row is None:
        raise ValidationError({"currency": f"Service '{item.service_name}' has no price in {currency}."})

    return Quote(
        service_id=item.id,
        service_name=item.service_name,
        description=item.description,
        unit_type=item.unit_type,
        currency=row.currency,
        unit_price=row.amount,
        tax_ids=tuple(item.tax_ids or ()),
    )
