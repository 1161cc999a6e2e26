# hb_core/addons/services.py
from __future__ import annotations

import logging
import secrets
from datetime import date, datetime, time
from datetime import timezone as dt_timezone
from decimal import Decimal, InvalidOperation
from typing import Any, Mapping
from uuid import UUID

from django.db import transaction
from django.utils import timezone

from hb_core.addons.models import AddonStatus, BillingMethod, ReservationServiceAddon
from hb_core.addons.types import CartLine, PayerContext
from hb_core.catalog.selectors import get_active_item, quote_item
from hb_core.common.conf import addon_setting
from hb_core.common.errors import LockedError, NotFoundError, UpstreamUnavailableError, ValidationError
from hb_core.common.events import publish
from hb_core.common.registries import (
    CustomerRecord,
    RegistryError,
    ReservationRecord,
    get_customer_registry,
    get_reservation_registry,
)

logger = logging.getLogger(__name__)

PATCHABLE_FIELDS = ("quantity", "service_date", "service_time", "status", "notes", "reference_no")


def new_cash_payer_ref() -> str:
    """
    Payer reference for a walk-in cash sale (no reservation exists).
    One per submission: CASH-<UTC timestamp>-<random hex>.
    """
    prefix = addon_setting("CASH_PAYER_PREFIX")
    stamp = timezone.now().astimezone(dt_timezone.utc).strftime("%Y%m%d%H%M%S")
    return f"{prefix}-{stamp}-{secrets.token_hex(3)}"


def default_service_time() -> time:
    return datetime.strptime(addon_setting("DEFAULT_SERVICE_TIME"), "%H:%M").time()


class AddonStoreService:
    """
    Write-model for committed add-on lines.

    Notes:
    - commit() is where the price lock originates.
    - Every lock check runs on a row locked with SELECT ... FOR UPDATE inside
      the same transaction as the mutation it guards.
    - Events are published immediately (not on_commit) so in-process readers
      and tests observe them synchronously.
    """

    # -------------------------
    # Internal helpers
    # -------------------------
    @staticmethod
    def _to_quantity(value) -> Decimal:
        try:
            qty = Decimal(str(value).strip())
        except (InvalidOperation, ValueError, TypeError):
            raise ValidationError({"quantity": "Invalid decimal value."})
        if not qty.is_finite() or qty <= 0:
            raise ValidationError({"quantity": "Quantity must be > 0."})
        return qty.quantize(Decimal("0.01"))

    @staticmethod
    def _to_date(value, field_name: str) -> date:
        if isinstance(value, datetime):
            return value.date()
        if isinstance(value, date):
            return value
        try:
            return date.fromisoformat(str(value))
        except (TypeError, ValueError):
            raise ValidationError({field_name: "Invalid date (YYYY-MM-DD expected)."})

    @staticmethod
    def _to_time(value, field_name: str) -> time:
        if isinstance(value, time):
            return value
        try:
            return time.fromisoformat(str(value))
        except (TypeError, ValueError):
            raise ValidationError({field_name: "Invalid time (HH:MM expected)."})

    @staticmethod
    def _lock(*, hotel_id: UUID, addon_id: UUID) -> ReservationServiceAddon:
        try:
            addon = ReservationServiceAddon.all_objects.select_for_update().get(id=addon_id, hotel_id=hotel_id)
        except ReservationServiceAddon.DoesNotExist:
            raise NotFoundError({"detail": "Add-on not found.", "addon_id": str(addon_id)})

        if addon.is_deleted:
            raise NotFoundError({"detail": "Add-on not found.", "addon_id": str(addon_id)})
        return addon

    @staticmethod
    def _ensure_unlocked(addon: ReservationServiceAddon) -> None:
        if addon.is_invoiced:
            logger.warning("blocked mutation of invoiced addon id=%s invoice=%s", addon.id, addon.invoice_ref)
            raise LockedError(
                {
                    "detail": "Add-on has been invoiced and can no longer be changed.",
                    "addon_id": str(addon.id),
                    "invoice_ref": addon.invoice_ref,
                }
            )

    @staticmethod
    def _publish(event_name: str, addon: ReservationServiceAddon, actor: str, **extra: Any) -> None:
        payload = {
            "hotel_id": str(addon.hotel_id),
            "addon_id": str(addon.id),
            "payer_ref": addon.payer_ref,
            "actor": actor,
        }
        payload.update(extra)
        publish(event_name, payload)

    @staticmethod
    def _validate_payer(payer: PayerContext) -> None:
        errors = {}
        if payer.billing_method not in BillingMethod.values:
            errors["billing_method"] = f"Must be one of: {', '.join(BillingMethod.values)}."
        elif payer.billing_method == BillingMethod.CASH:
            if not payer.customer_id:
                errors["customer_id"] = "Cash sales require a resolved customer."
        else:
            if not payer.reservation_id:
                errors["reservation_id"] = "This field is required."
            if payer.billing_method == BillingMethod.REFERENCE and not (payer.reference_no or "").strip():
                errors["reference_no"] = "This field is required."
        if errors:
            raise ValidationError(errors)

    @staticmethod
    def _resolve_customer(*, hotel_id: UUID, customer_id: UUID) -> CustomerRecord:
        try:
            rec = get_customer_registry().get(hotel_id=hotel_id, customer_id=customer_id)
        except RegistryError as exc:
            logger.warning("customer registry failed hotel=%s customer=%s: %s", hotel_id, customer_id, exc)
            raise UpstreamUnavailableError({"detail": str(exc) or "Customer registry unavailable."})
        if rec is None:
            raise NotFoundError({"detail": "No customer found.", "customer_id": str(customer_id)})
        return rec

    @staticmethod
    def _resolve_reservation(*, hotel_id: UUID, reservation_id: UUID) -> ReservationRecord:
        try:
            rec = get_reservation_registry().get(hotel_id=hotel_id, reservation_id=reservation_id)
        except RegistryError as exc:
            logger.warning("reservation registry failed hotel=%s reservation=%s: %s", hotel_id, reservation_id, exc)
            raise UpstreamUnavailableError({"detail": str(exc) or "Reservation registry unavailable."})
        if rec is None:
            raise NotFoundError({"detail": "No reservation found.", "reservation_id": str(reservation_id)})
        return rec

    # -------------------------
    # Commands
    # -------------------------
    @staticmethod
    @transaction.atomic
    def commit(
        *,
        hotel_id: UUID,
        line: CartLine,
        payer: PayerContext,
        actor: str = "",
    ) -> ReservationServiceAddon:
        """
        Persist one cart line.

        The line's quoted price is what gets locked. A line without a quote
        (direct store use) is priced from the catalog at this call.
        The catalog item must still exist and be active either way.
        """
        AddonStoreService._validate_payer(payer)
        quantity = AddonStoreService._to_quantity(line.quantity)
        if line.status not in AddonStatus.values:
            raise ValidationError({"status": f"Must be one of: {', '.join(AddonStatus.values)}."})

        item = get_active_item(hotel_id=hotel_id, item_id=line.service_id)

        if line.unit_price is None:
            q = quote_item(hotel_id=hotel_id, item_id=item.id, currency=line.currency or None)
            service_name, unit_type, currency = q.service_name, q.unit_type, q.currency
            unit_price, tax_ids = q.unit_price, list(q.tax_ids)
        else:
            if line.unit_price <= 0:
                raise ValidationError({"unit_price": "Unit price must be > 0."})
            service_name = line.service_name or item.service_name
            unit_type = line.unit_type or item.unit_type
            primary = item.price_for()
            currency = line.currency or (primary.currency if primary else "")
            unit_price, tax_ids = line.unit_price, list(line.tax_ids)

        today = timezone.localdate()
        fields: dict[str, Any] = {"billing_method": payer.billing_method}

        if payer.billing_method == BillingMethod.CASH:
            customer = AddonStoreService._resolve_customer(hotel_id=hotel_id, customer_id=payer.customer_id)
            fields.update(
                payer_ref=payer.payer_ref or new_cash_payer_ref(),
                customer_id=customer.id,
                guest_name=customer.name,
                room_no="N/A",
                check_in=today,
                check_out=today,
            )
        else:
            reservation = AddonStoreService._resolve_reservation(
                hotel_id=hotel_id, reservation_id=payer.reservation_id
            )
            fields.update(
                payer_ref=reservation.reservation_no,
                reservation_id=reservation.id,
                customer_id=reservation.customer_id,
                guest_name=reservation.guest_name,
                room_no=reservation.room_no,
                check_in=reservation.check_in,
                check_out=reservation.check_out,
            )
            if payer.billing_method == BillingMethod.REFERENCE:
                fields["reference_no"] = payer.reference_no.strip()

        addon = ReservationServiceAddon.objects.create(
            hotel_id=hotel_id,
            service_id=item.id,
            service_name=service_name,
            unit_type=unit_type,
            unit_price=unit_price,
            currency=currency,
            tax_ids=tax_ids,
            quantity=quantity,
            service_date=line.service_date or today,
            service_time=line.service_time or default_service_time(),
            status=line.status,
            notes=(line.notes or "").strip(),
            created_by=actor or "",
            **fields,
        )

        logger.info(
            "addon committed id=%s payer=%s service=%s qty=%s price=%s %s",
            addon.id,
            addon.payer_ref,
            addon.service_name,
            addon.quantity,
            addon.currency,
            addon.unit_price,
        )
        AddonStoreService._publish("addon.committed", addon, actor, service_id=str(addon.service_id))
        return addon

    @staticmethod
    @transaction.atomic
    def update(
        *,
        hotel_id: UUID,
        addon_id: UUID,
        patch: Mapping[str, Any],
        actor: str = "",
    ) -> ReservationServiceAddon:
        """
        Patch the operator-editable fields of a live, not-yet-invoiced line.
        Snapshot fields (price, service, billing method) are never patchable.
        """
        addon = AddonStoreService._lock(hotel_id=hotel_id, addon_id=addon_id)
        AddonStoreService._ensure_unlocked(addon)

        unknown = sorted(set(patch) - set(PATCHABLE_FIELDS))
        if unknown:
            raise ValidationError({f: "This field cannot be changed." for f in unknown})

        changed: list[str] = []

        if "quantity" in patch:
            addon.quantity = AddonStoreService._to_quantity(patch["quantity"])
            changed.append("quantity")

        if "service_date" in patch:
            addon.service_date = AddonStoreService._to_date(patch["service_date"], "service_date")
            changed.append("service_date")

        if "service_time" in patch:
            addon.service_time = AddonStoreService._to_time(patch["service_time"], "service_time")
            changed.append("service_time")

        if "status" in patch:
            if patch["status"] not in AddonStatus.values:
                raise ValidationError({"status": f"Must be one of: {', '.join(AddonStatus.values)}."})
            addon.status = patch["status"]
            changed.append("status")

        if "notes" in patch:
            addon.notes = (patch["notes"] or "").strip()
            changed.append("notes")

        if "reference_no" in patch:
            reference_no = (patch["reference_no"] or "").strip()
            if addon.billing_method != BillingMethod.REFERENCE:
                raise ValidationError({"reference_no": "Only Reference No. billing carries a reference number."})
            if not reference_no:
                raise ValidationError({"reference_no": "This field is required."})
            addon.reference_no = reference_no
            changed.append("reference_no")

        if not changed:
            return addon

        addon.updated_by = actor or ""
        addon.save(update_fields=[*changed, "updated_by", "updated_at"])

        logger.info("addon updated id=%s fields=%s", addon.id, ",".join(changed))
        AddonStoreService._publish("addon.updated", addon, actor, fields=changed)
        return addon

    @staticmethod
    @transaction.atomic
    def soft_delete(*, hotel_id: UUID, addon_id: UUID, actor: str = "") -> ReservationServiceAddon:
        addon = AddonStoreService._lock(hotel_id=hotel_id, addon_id=addon_id)
        AddonStoreService._ensure_unlocked(addon)

        addon.deleted_at = timezone.now()
        addon.deleted_by = actor or ""
        addon.save(update_fields=["deleted_at", "deleted_by", "updated_at"])

        logger.info("addon soft-deleted id=%s by=%s", addon.id, actor or "-")
        AddonStoreService._publish("addon.deleted", addon, actor)
        return addon

    @staticmethod
    @transaction.atomic
    def mark_invoiced(*, hotel_id: UUID, payer_ref: str, invoice_ref: str, actor: str = "") -> int:
        """
        Invoice every live, not-yet-invoiced line of a payer.
        Returns the number of lines that were locked by this call.
        """
        payer_ref = (payer_ref or "").strip()
        invoice_ref = (invoice_ref or "").strip()
        if not payer_ref:
            raise ValidationError({"payer_ref": "This field is required."})
        if not invoice_ref:
            raise ValidationError({"invoice_ref": "This field is required."})

        rows = list(
            ReservationServiceAddon.objects.select_for_update()
            .filter(hotel_id=hotel_id, payer_ref=payer_ref, is_invoiced=False)
            .order_by("created_at", "id")
        )

        now = timezone.now()
        for addon in rows:
            addon.is_invoiced = True
            addon.invoice_ref = invoice_ref
            addon.invoiced_at = now
            addon.updated_by = actor or ""
            addon.save(update_fields=["is_invoiced", "invoice_ref", "invoiced_at", "updated_by", "updated_at"])

        logger.info("payer %s invoiced as %s: %d line(s)", payer_ref, invoice_ref, len(rows))
        for addon in rows:
            AddonStoreService._publish("addon.invoiced", addon, actor, invoice_ref=invoice_ref)
        return len(rows)

    @staticmethod
    @transaction.atomic
    def mark_addon_invoiced(
        *,
        hotel_id: UUID,
        addon_id: UUID,
        invoice_ref: str,
        actor: str = "",
    ) -> ReservationServiceAddon:
        invoice_ref = (invoice_ref or "").strip()
        if not invoice_ref:
            raise ValidationError({"invoice_ref": "This field is required."})

        addon = AddonStoreService._lock(hotel_id=hotel_id, addon_id=addon_id)
        AddonStoreService._ensure_unlocked(addon)

        addon.is_invoiced = True
        addon.invoice_ref = invoice_ref
        addon.invoiced_at = timezone.now()
        addon.updated_by = actor or ""
        addon.save(update_fields=["is_invoiced", "invoice_ref", "invoiced_at", "updated_by", "updated_at"])

        logger.info("addon invoiced id=%s invoice=%s", addon.id, invoice_ref)
        AddonStoreService._publish("addon.invoiced", addon, actor, invoice_ref=invoice_ref)
        return addon
