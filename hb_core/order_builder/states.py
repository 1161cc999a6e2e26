# hb_core/order_builder/states.py
"""
Order wizard state: one frozen dataclass per step (a tagged union).

Each state carries only what is valid at its step. The payer is itself a
union per billing method, so e.g. a reference number cannot exist on a cash
sale. Every state carries the cart, so moving backwards never loses it, and
the last rejected operation's error (attached to the step it happened on).
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any, ClassVar, Optional, Union
from uuid import UUID

from hb_core.addons.types import CartLine


class LookupStatus:
    PENDING = "pending"
    RESOLVED = "resolved"
    FAILED = "failed"


NOT_FOUND = "not found"


@dataclass(frozen=True)
class LookupState:
    status: str
    query: str = ""
    error: str = ""

    @property
    def is_pending(self) -> bool:
        return self.status == LookupStatus.PENDING


@dataclass(frozen=True)
class StepError:
    code: str
    message: str
    details: Any = None


@dataclass(frozen=True)
class CustomerRef:
    id: UUID
    name: str
    identification_number: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class ReservationRef:
    id: UUID
    reservation_no: str
    guest_name: str = ""
    room_no: str = ""
    check_in: Optional[date] = None
    check_out: Optional[date] = None


# -------------------------
# Payer variants
# -------------------------
@dataclass(frozen=True, kw_only=True)
class CashPayer:
    billing_method: ClassVar[str] = "Cash"

    customer: Optional[CustomerRef] = None
    lookup: Optional[LookupState] = None
    registration_open: bool = False

    @property
    def is_resolved(self) -> bool:
        return self.customer is not None


@dataclass(frozen=True, kw_only=True)
class RoomPayer:
    billing_method: ClassVar[str] = "Room"

    reservation: Optional[ReservationRef] = None
    candidates: tuple[ReservationRef, ...] = ()
    lookup: Optional[LookupState] = None

    @property
    def is_resolved(self) -> bool:
        return self.reservation is not None


@dataclass(frozen=True, kw_only=True)
class ReferencePayer:
    billing_method: ClassVar[str] = "Reference No."

    reference_no: str = ""
    reservation: Optional[ReservationRef] = None
    candidates: tuple[ReservationRef, ...] = ()
    lookup: Optional[LookupState] = None

    @property
    def is_resolved(self) -> bool:
        return self.reservation is not None and bool(self.reference_no)


Payer = Union[CashPayer, RoomPayer, ReferencePayer]
ReservationPayer = Union[RoomPayer, ReferencePayer]

PAYER_TYPES: dict[str, type] = {
    CashPayer.billing_method: CashPayer,
    RoomPayer.billing_method: RoomPayer,
    ReferencePayer.billing_method: ReferencePayer,
}


# -------------------------
# Steps
# -------------------------
@dataclass(frozen=True, kw_only=True)
class SelectBillingMode:
    step: ClassVar[int] = 1
    name: ClassVar[str] = "select_billing_mode"

    cart: tuple[CartLine, ...] = ()
    error: Optional[StepError] = None
    # kept when navigating back from step 2 until a mode is picked again
    payer: Optional[Payer] = None


@dataclass(frozen=True, kw_only=True)
class CustomerResolution:
    step: ClassVar[int] = 2
    name: ClassVar[str] = "customer_resolution"

    payer: Payer
    cart: tuple[CartLine, ...] = ()
    error: Optional[StepError] = None


@dataclass(frozen=True, kw_only=True)
class ServiceSelection:
    step: ClassVar[int] = 3
    name: ClassVar[str] = "service_selection"

    payer: Payer
    cart: tuple[CartLine, ...] = ()
    error: Optional[StepError] = None


@dataclass(frozen=True, kw_only=True)
class Confirmation:
    step: ClassVar[int] = 4
    name: ClassVar[str] = "confirmation"

    payer: Payer
    cart: tuple[CartLine, ...] = ()
    error: Optional[StepError] = None


@dataclass(frozen=True)
class LineFailure:
    service_id: UUID
    service_name: str
    code: str
    message: str


@dataclass(frozen=True, kw_only=True)
class Submitted:
    step: ClassVar[int] = 5
    name: ClassVar[str] = "submitted"

    payer: Payer
    payer_ref: str
    cart: tuple[CartLine, ...] = ()
    committed_ids: tuple[UUID, ...] = ()
    failures: tuple[LineFailure, ...] = field(default_factory=tuple)
    error: Optional[StepError] = None


@dataclass(frozen=True, kw_only=True)
class Cancelled:
    step: ClassVar[int] = 0
    name: ClassVar[str] = "cancelled"

    cart: tuple[CartLine, ...] = ()
    error: Optional[StepError] = None


WizardState = Union[SelectBillingMode, CustomerResolution, ServiceSelection, Confirmation, Submitted, Cancelled]

TERMINAL_STATES = (Submitted, Cancelled)
PAYER_STEPS = (CustomerResolution, ServiceSelection, Confirmation)
CART_EDIT_STEPS = (ServiceSelection, Confirmation)
