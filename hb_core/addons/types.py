# hb_core/addons/types.py
"""
Value objects passed into the order store.

CartLine is also the order workflow's cart entry, so the workflow and the
store share one definition of "what is about to be committed".
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from decimal import Decimal
from typing import Optional
from uuid import UUID

from hb_core.addons.models import AddonStatus


@dataclass(frozen=True)
class CartLine:
    service_id: UUID
    service_name: str = ""
    description: str = ""
    quantity: Decimal = Decimal("1")

    # price quoted from the catalog when the line was added; None = quote at commit
    unit_price: Optional[Decimal] = None
    currency: str = ""
    unit_type: str = ""
    tax_ids: tuple[str, ...] = field(default_factory=tuple)

    service_date: Optional[date] = None
    service_time: Optional[time] = None
    status: str = AddonStatus.PENDING
    notes: str = ""

    @property
    def line_total(self) -> Optional[Decimal]:
        if self.unit_price is None:
            return None
        return (self.quantity * self.unit_price).quantize(Decimal("0.01"))


@dataclass(frozen=True)
class PayerContext:
    """
    Who pays for the committed lines.

    - Cash: customer_id is required; the guest name is read from the customer
      registry at commit time. payer_ref is synthesized when blank.
    - Room / Reference No.: reservation_id is required; guest, room and stay
      dates are resolved from the reservation at commit time.
    - Reference No.: reference_no is required.
    """
    billing_method: str
    payer_ref: str = ""
    reservation_id: Optional[UUID] = None
    customer_id: Optional[UUID] = None
    reference_no: str = ""
