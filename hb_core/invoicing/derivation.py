# hb_core/invoicing/derivation.py
"""
Derived invoice view of a committed add-on line.

Nothing here is persisted or written back: derive_invoice() maps the add-on's
current fields plus a tax rate to a read model, so it is safe to call on every
read and always reflects the latest state of the line.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Optional
from uuid import UUID

from hb_core.addons.models import AddonStatus, BillingMethod

CENT = Decimal("0.01")
VOID_REASON = "Service cancelled"


class InvoiceStatus:
    PENDING = "Pending"
    PAID = "Paid"
    POSTED = "Posted"
    VOIDED = "Voided"

    values = (PENDING, PAID, POSTED, VOIDED)


class PaymentStatus:
    PENDING = "Pending"
    PAID = "Paid"
    VOIDED = "Voided"

    values = (PENDING, PAID, VOIDED)


@dataclass(frozen=True)
class AuditEntry:
    action: str  # "Created" | "Updated"
    actor: str
    at: Optional[datetime]


@dataclass(frozen=True)
class DerivedInvoice:
    invoice_number: str
    status: str
    payment_status: str
    subtotal: Decimal
    tax_rate: Decimal
    tax_amount: Decimal
    total_amount: Decimal

    addon_id: UUID
    payer_ref: str
    service_id: UUID
    service_name: str
    guest_name: str
    billing_mode: str
    quantity: Decimal
    unit_price: Decimal
    currency: str

    customer_name: Optional[str] = None
    room_no: Optional[str] = None
    reference_number: Optional[str] = None
    linked_reservation_id: Optional[UUID] = None

    service_date: Optional[date] = None
    service_time: Optional[time] = None
    invoice_date: Optional[datetime] = None
    notes: str = ""
    created_by: str = ""

    paid_at: Optional[datetime] = None
    voided_at: Optional[datetime] = None
    void_reason: Optional[str] = None

    audit_log: tuple[AuditEntry, ...] = field(default_factory=tuple)


def invoice_number_for(addon: Any) -> str:
    return f"INV-{addon.payer_ref}-{str(addon.id)[-6:]}"


def derive_status(addon: Any) -> tuple[str, str]:
    """
    (status, payment_status), first matching rule wins:
      Cash + Completed   -> Paid / Paid
      Room + invoiced    -> Posted / Paid
      Cancelled          -> Voided / Voided
      anything else      -> Pending / Pending
    """
    if addon.billing_method == BillingMethod.CASH and addon.status == AddonStatus.COMPLETED:
        return InvoiceStatus.PAID, PaymentStatus.PAID
    if addon.billing_method == BillingMethod.ROOM and addon.is_invoiced:
        return InvoiceStatus.POSTED, PaymentStatus.PAID
    if addon.status == AddonStatus.CANCELLED:
        return InvoiceStatus.VOIDED, PaymentStatus.VOIDED
    return InvoiceStatus.PENDING, PaymentStatus.PENDING


def _money(value) -> Decimal:
    return Decimal(str(value)).quantize(CENT, rounding=ROUND_HALF_UP)


def derive_invoice(addon: Any, tax_rate) -> DerivedInvoice:
    """
    Pure mapping of one add-on line to its billing view.
    `tax_rate` is a fraction (0.12 for 12%).
    """
    rate = Decimal(str(tax_rate))
    subtotal = _money(addon.total_price)
    tax_amount = _money(subtotal * rate)
    total_amount = _money(subtotal + tax_amount)

    status, payment_status = derive_status(addon)

    method = addon.billing_method
    is_cash = method == BillingMethod.CASH
    is_room = method == BillingMethod.ROOM
    is_reference = method == BillingMethod.REFERENCE

    audit: list[AuditEntry] = [AuditEntry(action="Created", actor=addon.created_by or "", at=addon.created_at)]
    if addon.updated_by:
        audit.append(AuditEntry(action="Updated", actor=addon.updated_by, at=addon.updated_at))

    cancelled = addon.status == AddonStatus.CANCELLED

    return DerivedInvoice(
        invoice_number=invoice_number_for(addon),
        status=status,
        payment_status=payment_status,
        subtotal=subtotal,
        tax_rate=rate,
        tax_amount=tax_amount,
        total_amount=total_amount,
        addon_id=addon.id,
        payer_ref=addon.payer_ref,
        service_id=addon.service_id,
        service_name=addon.service_name,
        guest_name=addon.guest_name,
        billing_mode=method,
        quantity=Decimal(str(addon.quantity)),
        unit_price=Decimal(str(addon.unit_price)),
        currency=addon.currency,
        customer_name=addon.guest_name if is_cash else None,
        room_no=addon.room_no if is_room else None,
        reference_number=addon.reference_no if is_reference else None,
        linked_reservation_id=addon.reservation_id if is_room else None,
        service_date=addon.service_date,
        service_time=addon.service_time,
        invoice_date=addon.created_at,
        notes=addon.notes or "",
        created_by=addon.created_by or "",
        paid_at=addon.updated_at if addon.status == AddonStatus.COMPLETED else None,
        voided_at=addon.updated_at if cancelled else None,
        void_reason=VOID_REASON if cancelled else None,
        audit_log=tuple(audit),
    )
