# hb_core/order_builder/transitions.py
"""
Pure wizard transitions: state in, new state out, typed error on rejection.

No I/O happens here. Anything that needs the catalog or a registry is split
into begin/resolve/fail steps driven by hb_core.order_builder.services.
"""
from __future__ import annotations

from dataclasses import replace
from datetime import date, time
from decimal import Decimal, InvalidOperation
from typing import Any, Iterable, Mapping
from uuid import UUID

from hb_core.addons.models import AddonStatus, BillingMethod
from hb_core.addons.types import CartLine
from hb_core.common.errors import NotFoundError, StateError, ValidationError
from hb_core.order_builder.states import (
    CART_EDIT_STEPS,
    NOT_FOUND,
    PAYER_STEPS,
    PAYER_TYPES,
    TERMINAL_STATES,
    Cancelled,
    CashPayer,
    Confirmation,
    CustomerRef,
    CustomerResolution,
    LineFailure,
    LookupState,
    LookupStatus,
    ReferencePayer,
    ReservationRef,
    RoomPayer,
    SelectBillingMode,
    ServiceSelection,
    StepError,
    Submitted,
    WizardState,
)

REGISTRATION_REQUIRED = ("first_name", "email", "phone")
CART_LINE_FIELDS = ("quantity", "service_date", "service_time", "status", "notes")


def expect_step(state: WizardState, *allowed: type) -> None:
    if not isinstance(state, allowed):
        steps = ", ".join(t.name for t in allowed)
        raise StateError(
            {"detail": f"Operation not allowed at step '{state.name}'.", "allowed_steps": steps}
        )


def _ok(state: WizardState, **changes: Any) -> WizardState:
    # every successful transition clears the previous step error
    return replace(state, error=None, **changes)


def start() -> SelectBillingMode:
    return SelectBillingMode()


def with_error(state: WizardState, error: StepError) -> WizardState:
    return replace(state, error=error)


# -------------------------
# Step 1 -> 2
# -------------------------
def choose_billing_mode(state: WizardState, billing_method: str) -> CustomerResolution:
    """
    Pick Cash / Room / Reference No. Resets every payer-specific field;
    the cart is kept.
    """
    expect_step(state, SelectBillingMode, CustomerResolution)

    payer_type = PAYER_TYPES.get(billing_method)
    if payer_type is None:
        raise ValidationError({"billing_method": f"Must be one of: {', '.join(BillingMethod.values)}."})

    return CustomerResolution(payer=payer_type(), cart=state.cart)


# -------------------------
# Customer lookup / registration (Cash)
# -------------------------
def _cash_payer(state: WizardState) -> CashPayer:
    expect_step(state, CustomerResolution)
    if not isinstance(state.payer, CashPayer):
        raise StateError({"detail": "Customer lookup applies to cash sales only."})
    return state.payer


def begin_customer_lookup(state: WizardState, identification_number: str) -> CustomerResolution:
    payer = _cash_payer(state)
    ident = (identification_number or "").strip()
    if not ident:
        raise ValidationError({"identification_number": "This field is required."})

    lookup = LookupState(status=LookupStatus.PENDING, query=ident)
    return _ok(state, payer=replace(payer, customer=None, lookup=lookup, registration_open=False))


def customer_lookup_resolved(state: WizardState, customer: CustomerRef) -> CustomerResolution:
    payer = _cash_payer(state)
    query = payer.lookup.query if payer.lookup else customer.identification_number
    lookup = LookupState(status=LookupStatus.RESOLVED, query=query)
    return _ok(state, payer=replace(payer, customer=customer, lookup=lookup, registration_open=False))


def customer_lookup_failed(state: WizardState, reason: str = NOT_FOUND) -> CustomerResolution:
    """
    A "not found" failure opens the registration sub-flow.
    """
    payer = _cash_payer(state)
    query = payer.lookup.query if payer.lookup else ""
    lookup = LookupState(status=LookupStatus.FAILED, query=query, error=reason)
    return _ok(
        state,
        payer=replace(payer, customer=None, lookup=lookup, registration_open=reason == NOT_FOUND),
    )


def validate_registration(data: Mapping[str, Any]) -> dict[str, str]:
    """
    Returns the cleaned registration form; first name, email and phone are required.
    """
    cleaned = {k: str(v).strip() for k, v in (data or {}).items() if v is not None}
    missing = {f: "This field is required." for f in REGISTRATION_REQUIRED if not cleaned.get(f)}
    if missing:
        raise ValidationError(missing)
    if "@" not in cleaned["email"]:
        raise ValidationError({"email": "Enter a valid email address."})
    return cleaned


def ensure_can_register(state: WizardState) -> None:
    _cash_payer(state)


# -------------------------
# Reservation lookup (Room / Reference No.)
# -------------------------
def _reservation_payer(state: WizardState):
    expect_step(state, *PAYER_STEPS)
    if not isinstance(state.payer, (RoomPayer, ReferencePayer)):
        raise StateError({"detail": "Reservation lookup applies to Room and Reference No. billing only."})
    return state.payer


def begin_reservation_lookup(state: WizardState, query: str) -> WizardState:
    payer = _reservation_payer(state)
    q = (query or "").strip()
    if not q:
        raise ValidationError({"query": "This field is required."})

    lookup = LookupState(status=LookupStatus.PENDING, query=q)
    return _ok(state, payer=replace(payer, reservation=None, candidates=(), lookup=lookup))


def reservation_lookup_resolved(state: WizardState, found: Iterable[ReservationRef]) -> WizardState:
    """
    One match is selected directly; several are kept as candidates for
    select_reservation(); none is a failed lookup.
    """
    payer = _reservation_payer(state)
    found = tuple(found)
    if not found:
        return reservation_lookup_failed(state, NOT_FOUND)

    query = payer.lookup.query if payer.lookup else ""
    lookup = LookupState(status=LookupStatus.RESOLVED, query=query)
    selected = found[0] if len(found) == 1 else None
    return _ok(state, payer=replace(payer, reservation=selected, candidates=found, lookup=lookup))


def reservation_lookup_failed(state: WizardState, reason: str = NOT_FOUND) -> WizardState:
    payer = _reservation_payer(state)
    query = payer.lookup.query if payer.lookup else ""
    lookup = LookupState(status=LookupStatus.FAILED, query=query, error=reason)
    return _ok(state, payer=replace(payer, reservation=None, candidates=(), lookup=lookup))


def select_reservation(state: WizardState, reservation_id: UUID) -> WizardState:
    payer = _reservation_payer(state)
    chosen = next((r for r in payer.candidates if str(r.id) == str(reservation_id)), None)
    if chosen is None:
        raise NotFoundError({"detail": "No reservation found.", "reservation_id": str(reservation_id)})
    return _ok(state, payer=replace(payer, reservation=chosen))


def set_reference_no(state: WizardState, reference_no: str) -> WizardState:
    expect_step(state, *PAYER_STEPS)
    if not isinstance(state.payer, ReferencePayer):
        raise StateError({"detail": "Reference numbers apply to Reference No. billing only."})

    ref = (reference_no or "").strip()
    if not ref:
        raise ValidationError({"reference_no": "This field is required."})
    return _ok(state, payer=replace(state.payer, reference_no=ref))


# -------------------------
# Forward / backward / cancel
# -------------------------
def proceed_to_services(state: WizardState) -> ServiceSelection:
    """
    2 -> 3. Cash needs a resolved customer; Room / Reference No. pass through
    (the reservation may still be attached in steps 3 and 4).
    """
    expect_step(state, CustomerResolution)
    if isinstance(state.payer, CashPayer) and not state.payer.is_resolved:
        raise StateError({"detail": "Find or register the customer before continuing."})
    return ServiceSelection(payer=state.payer, cart=state.cart)


def proceed_to_confirmation(state: WizardState) -> Confirmation:
    """
    3 -> 4. The cart must not be empty.
    """
    expect_step(state, ServiceSelection)
    if not state.cart:
        raise StateError({"detail": "Select at least one service before continuing."})
    return Confirmation(payer=state.payer, cart=state.cart)


def resume_payer(state: WizardState) -> CustomerResolution:
    """
    1 -> 2 with the payer kept from backward navigation.
    """
    expect_step(state, SelectBillingMode)
    if state.payer is None:
        raise StateError({"detail": "Choose a billing mode first."})
    return CustomerResolution(payer=state.payer, cart=state.cart)


def proceed(state: WizardState) -> WizardState:
    if isinstance(state, SelectBillingMode):
        return resume_payer(state)
    if isinstance(state, CustomerResolution):
        return proceed_to_services(state)
    if isinstance(state, ServiceSelection):
        return proceed_to_confirmation(state)
    raise StateError({"detail": f"Cannot proceed from step '{state.name}'."})


def go_back(state: WizardState) -> WizardState:
    """
    4 -> 3 -> 2 -> 1. The cart is always preserved.
    """
    if isinstance(state, Confirmation):
        return ServiceSelection(payer=state.payer, cart=state.cart)
    if isinstance(state, ServiceSelection):
        return CustomerResolution(payer=state.payer, cart=state.cart)
    if isinstance(state, CustomerResolution):
        return SelectBillingMode(payer=state.payer, cart=state.cart)
    raise StateError({"detail": f"Cannot go back from step '{state.name}'."})


def cancel(state: WizardState) -> Cancelled:
    """
    Discard the session. Nothing has been committed before submit.
    """
    if isinstance(state, TERMINAL_STATES):
        raise StateError({"detail": f"Order is already {state.name}."})
    return Cancelled()


# -------------------------
# Cart
# -------------------------
def toggle_service(state: WizardState, line: CartLine) -> ServiceSelection:
    """
    Selecting a service already in the cart removes it (net-zero toggle).
    """
    expect_step(state, ServiceSelection)

    if in_cart(state, line.service_id):
        return _ok(state, cart=tuple(c for c in state.cart if str(c.service_id) != str(line.service_id)))
    return _ok(state, cart=state.cart + (line,))


def in_cart(state: WizardState, service_id: UUID) -> bool:
    return any(str(c.service_id) == str(service_id) for c in state.cart)


def update_cart_line(state: WizardState, service_id: UUID, changes: Mapping[str, Any]) -> WizardState:
    """
    Edit quantity / date / time / status / notes of a cart line (steps 3 and 4).
    """
    expect_step(state, *CART_EDIT_STEPS)

    unknown = sorted(set(changes) - set(CART_LINE_FIELDS))
    if unknown:
        raise ValidationError({f: "This field cannot be changed." for f in unknown})

    idx = next((i for i, c in enumerate(state.cart) if str(c.service_id) == str(service_id)), None)
    if idx is None:
        raise NotFoundError({"detail": "Service is not in the cart.", "service_id": str(service_id)})

    clean: dict[str, Any] = {}
    if "quantity" in changes:
        clean["quantity"] = parse_quantity(changes["quantity"])
    if "service_date" in changes:
        clean["service_date"] = parse_date(changes["service_date"])
    if "service_time" in changes:
        clean["service_time"] = parse_time(changes["service_time"])
    if "status" in changes:
        if changes["status"] not in AddonStatus.values:
            raise ValidationError({"status": f"Must be one of: {', '.join(AddonStatus.values)}."})
        clean["status"] = changes["status"]
    if "notes" in changes:
        clean["notes"] = str(changes["notes"] or "").strip()

    cart = list(state.cart)
    cart[idx] = replace(cart[idx], **clean)
    return _ok(state, cart=tuple(cart))


def parse_quantity(value) -> Decimal:
    try:
        qty = Decimal(str(value).strip())
    except (InvalidOperation, ValueError, TypeError):
        raise ValidationError({"quantity": "Invalid decimal value."})
    if not qty.is_finite() or qty <= 0:
        raise ValidationError({"quantity": "Quantity must be > 0."})
    return qty


def parse_date(value) -> date:
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value))
    except (TypeError, ValueError):
        raise ValidationError({"service_date": "Invalid date (YYYY-MM-DD expected)."})


def parse_time(value) -> time:
    if isinstance(value, time):
        return value
    try:
        return time.fromisoformat(str(value))
    except (TypeError, ValueError):
        raise ValidationError({"service_time": "Invalid time (HH:MM expected)."})


# -------------------------
# Submit
# -------------------------
def ensure_submittable(state: WizardState) -> Confirmation:
    expect_step(state, Confirmation)

    if not state.cart:
        raise StateError({"detail": "Cannot submit an empty order."})

    payer = state.payer
    if isinstance(payer, CashPayer) and payer.customer is None:
        raise StateError({"detail": "No customer resolved for this cash sale."})
    if isinstance(payer, ReferencePayer) and not payer.reference_no:
        raise ValidationError({"reference_no": "This field is required."})
    if isinstance(payer, (RoomPayer, ReferencePayer)) and payer.reservation is None:
        raise StateError({"detail": "No reservation found."})
    return state


def mark_submitted(
    state: WizardState,
    *,
    payer_ref: str,
    committed_ids: Iterable[UUID],
    failures: Iterable[LineFailure],
) -> WizardState:
    """
    At least one committed line -> Submitted (failures reported alongside).
    Every line failed -> stay on Confirmation with the failures attached.
    """
    expect_step(state, Confirmation)
    committed_ids = tuple(committed_ids)
    failures = tuple(failures)

    if not committed_ids:
        return with_error(
            state,
            StepError(
                code="submission_failed",
                message="No order line could be committed.",
                details=[_failure_dict(f) for f in failures],
            ),
        )

    return Submitted(
        payer=state.payer,
        payer_ref=payer_ref,
        cart=state.cart,
        committed_ids=committed_ids,
        failures=failures,
    )


def _failure_dict(f: LineFailure) -> dict[str, str]:
    return {"service_id": str(f.service_id), "service_name": f.service_name, "code": f.code, "message": f.message}
