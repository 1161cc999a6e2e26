# hb_core/invoicing/services.py
from __future__ import annotations

import logging
from decimal import Decimal
from typing import Iterable
from uuid import UUID

from hb_core.addons.models import ReservationServiceAddon
from hb_core.addons.selectors import get_addon
from hb_core.common.conf import default_tax_rate
from hb_core.common.errors import ValidationError
from hb_core.common.registries import get_tax_catalog
from hb_core.invoicing.derivation import DerivedInvoice, InvoiceStatus, derive_invoice

logger = logging.getLogger(__name__)


class InvoiceDeriverService:
    """
    Loads live add-on lines and derives their invoice view on every call.
    """

    @staticmethod
    def tax_rate_for(tax_ids: Iterable[str]) -> Decimal:
        """
        Sum of the bound tax percentages as a fraction; the configured
        default rate when the line carries no tax binding.
        """
        ids = [str(t) for t in (tax_ids or [])]
        if not ids:
            return default_tax_rate()

        rates = get_tax_catalog().get(ids)
        missing = set(ids) - {r.id for r in rates}
        if missing:
            logger.warning("tax ids no longer in catalog: %s", ", ".join(sorted(missing)))

        return sum((Decimal(str(r.rate_percent)) for r in rates), Decimal("0")) / Decimal("100")

    @staticmethod
    def derive(addon: ReservationServiceAddon) -> DerivedInvoice:
        return derive_invoice(addon, InvoiceDeriverService.tax_rate_for(addon.tax_ids))

    @staticmethod
    def derive_for_addon(*, hotel_id: UUID, addon_id: UUID) -> DerivedInvoice:
        addon = get_addon(hotel_id=hotel_id, addon_id=addon_id)
        return InvoiceDeriverService.derive(addon)

    @staticmethod
    def list_invoices(
        *,
        hotel_id: UUID,
        status: str | None = None,
        billing_method: str | None = None,
        search: str | None = None,
    ) -> list[DerivedInvoice]:
        """
        Derived invoices for every live line of the hotel, newest first.
        `status` filters on the derived status; `search` matches invoice
        number, guest name or service name (case-insensitive).
        """
        if status and status not in InvoiceStatus.values:
            raise ValidationError({"status": f"Must be one of: {', '.join(InvoiceStatus.values)}."})

        qs = ReservationServiceAddon.objects.filter(hotel_id=hotel_id).order_by("-created_at")
        if billing_method:
            qs = qs.filter(billing_method=billing_method)

        rate_cache: dict[tuple[str, ...], Decimal] = {}
        needle = (search or "").strip().lower()
        out: list[DerivedInvoice] = []

        for addon in qs:
            key = tuple(str(t) for t in (addon.tax_ids or []))
            if key not in rate_cache:
                rate_cache[key] = InvoiceDeriverService.tax_rate_for(key)

            inv = derive_invoice(addon, rate_cache[key])

            if status and inv.status != status:
                continue
            if needle and not any(
                needle in (value or "").lower() for value in (inv.invoice_number, inv.guest_name, inv.service_name)
            ):
                continue
            out.append(inv)

        return out
