# hb_core/catalog/services.py
from __future__ import annotations

import logging
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from hb_core.catalog.models import (
    ServiceCategory,
    ServiceItem,
    ServiceItemPrice,
    ServiceItemPriceChange,
    ServiceItemStatus,
)
from hb_core.catalog.selectors import get_item
from hb_core.common.errors import NotFoundError, ValidationError
from hb_core.common.events import publish
from hb_core.common.registries import get_currency_table, get_tax_catalog

logger = logging.getLogger(__name__)

NO_PRICE_MSG = "Please add at least one currency and price."


class ServiceCatalogService:
    """
    Write-model for the service catalog.

    Notes:
    - Pricing and tax bindings are replaced wholesale on update.
    - Delete is soft (status -> Inactive) and reversible via restore.
    - Committed add-ons keep their own price snapshot, so nothing here
      touches them.
    """

    # -------------------------
    # Validation helpers
    # -------------------------
    @staticmethod
    def _to_decimal(value, field_name: str) -> Decimal:
        """
        Accepts Decimal / str / int / float and converts to Decimal safely.
        Raises ValidationError for invalid values.
        """
        if isinstance(value, Decimal):
            return value
        try:
            return Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError({field_name: "Invalid decimal value."})

    @staticmethod
    def _is_blank_row(currency: str, raw_amount) -> bool:
        if currency:
            return False
        if raw_amount is None or str(raw_amount).strip() == "":
            return True
        try:
            return Decimal(str(raw_amount).strip()) == 0
        except (InvalidOperation, ValueError):
            return False

    @staticmethod
    def _clean_pricing(pricing: Iterable[Mapping[str, Any]] | None) -> list[tuple[str, Decimal]]:
        """
        Returns [(currency, amount)] in input order.

        - Fully blank rows (no currency, no/zero amount) are dropped.
        - Partially filled rows, duplicates and unknown currencies fail.
        - At least one valid row is required.
        """
        errors: dict[str, str] = {}
        cleaned: list[tuple[str, Decimal]] = []
        seen: set[str] = set()
        known = {c.upper() for c in get_currency_table().list_codes()}

        for idx, row in enumerate(pricing or []):
            key = f"pricing[{idx}]"
            currency = str(row.get("currency") or "").strip().upper()
            raw_amount = row.get("amount")

            if ServiceCatalogService._is_blank_row(currency, raw_amount):
                continue

            if not currency:
                errors[key] = "Currency is required."
                continue
            if currency not in known:
                errors[key] = f"Unknown currency '{currency}'."
                continue
            if currency in seen:
                errors[key] = f"Duplicate currency '{currency}'."
                continue

            try:
                amount = ServiceCatalogService._to_decimal(raw_amount, key)
            except ValidationError:
                errors[key] = "Invalid amount."
                continue
            if not amount.is_finite() or amount <= 0:
                errors[key] = "Amount must be > 0."
                continue

            seen.add(currency)
            cleaned.append((currency, amount.quantize(Decimal("0.01"))))

        if not cleaned and not errors:
            errors["pricing"] = NO_PRICE_MSG
        if errors:
            raise ValidationError(errors)
        return cleaned

    @staticmethod
    def _clean_tax_ids(tax_ids: Iterable[str] | None) -> list[str]:
        wanted = [str(t).strip() for t in (tax_ids or []) if str(t).strip()]
        wanted = list(dict.fromkeys(wanted))
        if not wanted:
            return []

        known = {r.id for r in get_tax_catalog().get(wanted)}
        unknown = [t for t in wanted if t not in known]
        if unknown:
            raise ValidationError({"tax_ids": f"Unknown tax id(s): {', '.join(unknown)}."})
        return wanted

    @staticmethod
    def _clean_fields(*, service_name: str, unit_type: str, category: str) -> dict[str, str]:
        errors = {}
        service_name = (service_name or "").strip()
        unit_type = (unit_type or "").strip()

        if not service_name:
            errors["service_name"] = "This field is required."
        if not unit_type:
            errors["unit_type"] = "This field is required."
        if category not in ServiceCategory.values:
            errors["category"] = f"Must be one of: {', '.join(ServiceCategory.values)}."
        if errors:
            raise ValidationError(errors)

        return {"service_name": service_name, "unit_type": unit_type, "category": category}

    @staticmethod
    def _write_prices(item: ServiceItem, pricing: list[tuple[str, Decimal]]) -> None:
        ServiceItemPrice.objects.bulk_create(
            [
                ServiceItemPrice(item=item, currency=currency, amount=amount, position=pos)
                for pos, (currency, amount) in enumerate(pricing)
            ]
        )

    @staticmethod
    def _publish(event_name: str, item: ServiceItem, actor: str) -> None:
        publish(
            event_name,
            {
                "hotel_id": str(item.hotel_id),
                "item_id": str(item.id),
                "service_name": item.service_name,
                "status": item.status,
                "actor": actor,
            },
        )

    # -------------------------
    # Commands
    # -------------------------
    @staticmethod
    @transaction.atomic
    def add_item(
        *,
        hotel_id: UUID,
        service_name: str,
        unit_type: str,
        pricing: Iterable[Mapping[str, Any]],
        category: str = ServiceCategory.RESERVATION,
        description: str = "",
        tax_ids: Iterable[str] | None = None,
        actor: str = "",
    ) -> ServiceItem:
        fields = ServiceCatalogService._clean_fields(
            service_name=service_name, unit_type=unit_type, category=category
        )
        cleaned = ServiceCatalogService._clean_pricing(pricing)
        taxes = ServiceCatalogService._clean_tax_ids(tax_ids)

        item = ServiceItem.objects.create(
            hotel_id=hotel_id,
            description=(description or "").strip(),
            tax_ids=taxes,
            status=ServiceItemStatus.ACTIVE,
            created_by=actor or "",
            **fields,
        )
        ServiceCatalogService._write_prices(item, cleaned)

        logger.info("catalog item created id=%s name=%s hotel=%s", item.id, item.service_name, hotel_id)
        ServiceCatalogService._publish("catalog.item.created", item, actor)
        return get_item(hotel_id=hotel_id, item_id=item.id)

    @staticmethod
    @transaction.atomic
    def update_item(
        *,
        hotel_id: UUID,
        item_id: UUID,
        service_name: str,
        unit_type: str,
        pricing: Iterable[Mapping[str, Any]],
        category: str = ServiceCategory.RESERVATION,
        description: str = "",
        tax_ids: Iterable[str] | None = None,
        actor: str = "",
    ) -> ServiceItem:
        """
        Full replace of the editable fields, price list and tax set.
        Records a price-history row for every currency whose amount changed
        or that was dropped from the price list.
        """
        try:
            item = ServiceItem.objects.select_for_update().get(id=item_id, hotel_id=hotel_id)
        except ServiceItem.DoesNotExist:
            raise NotFoundError({"detail": "Service item not found.", "service_id": str(item_id)})

        fields = ServiceCatalogService._clean_fields(
            service_name=service_name, unit_type=unit_type, category=category
        )
        cleaned = ServiceCatalogService._clean_pricing(pricing)
        taxes = ServiceCatalogService._clean_tax_ids(tax_ids)

        old_prices = {p.currency: p.amount for p in item.prices.all()}
        new_prices = dict(cleaned)
        changes = [
            ServiceItemPriceChange(
                item=item,
                currency=currency,
                old_amount=old_amount,
                new_amount=new_prices.get(currency),
                changed_by=actor or "",
            )
            for currency, old_amount in old_prices.items()
            if new_prices.get(currency) != old_amount
        ]
        if changes:
            ServiceItemPriceChange.objects.bulk_create(changes)

        item.prices.all().delete()
        ServiceCatalogService._write_prices(item, cleaned)

        item.service_name = fields["service_name"]
        item.unit_type = fields["unit_type"]
        item.category = fields["category"]
        item.description = (description or "").strip()
        item.tax_ids = taxes
        item.updated_by = actor or ""
        item.save(
            update_fields=[
                "service_name",
                "unit_type",
                "category",
                "description",
                "tax_ids",
                "updated_by",
                "updated_at",
            ]
        )

        logger.info("catalog item updated id=%s price_changes=%d", item.id, len(changes))
        ServiceCatalogService._publish("catalog.item.updated", item, actor)
        return get_item(hotel_id=hotel_id, item_id=item.id)

    @staticmethod
    @transaction.atomic
    def delete_item(*, hotel_id: UUID, item_id: UUID, actor: str = "") -> ServiceItem:
        """
        Soft delete: Inactive + delete marker. Idempotent.
        """
        try:
            item = ServiceItem.objects.select_for_update().get(id=item_id, hotel_id=hotel_id)
        except ServiceItem.DoesNotExist:
            raise NotFoundError({"detail": "Service item not found.", "service_id": str(item_id)})

        if item.status == ServiceItemStatus.INACTIVE:
            return item

        item.status = ServiceItemStatus.INACTIVE
        item.deleted_at = timezone.now()
        item.deleted_by = actor or ""
        item.save(update_fields=["status", "deleted_at", "deleted_by", "updated_at"])

        logger.info("catalog item deactivated id=%s by=%s", item.id, actor or "-")
        ServiceCatalogService._publish("catalog.item.deleted", item, actor)
        return item

    @staticmethod
    @transaction.atomic
    def restore_item(*, hotel_id: UUID, item_id: UUID, actor: str = "") -> ServiceItem:
        try:
            item = ServiceItem.objects.select_for_update().get(id=item_id, hotel_id=hotel_id)
        except ServiceItem.DoesNotExist:
            raise NotFoundError({"detail": "Service item not found.", "service_id": str(item_id)})

        if item.status == ServiceItemStatus.ACTIVE:
            return item

        item.status = ServiceItemStatus.ACTIVE
        item.deleted_at = None
        item.deleted_by = ""
        item.updated_by = actor or ""
        item.save(update_fields=["status", "deleted_at", "deleted_by", "updated_by", "updated_at"])

        logger.info("catalog item restored id=%s by=%s", item.id, actor or "-")
        ServiceCatalogService._publish("catalog.item.restored", item, actor)
        return item
