# hb_core/order_builder/codec.py
"""
JSON codec for wizard states (OrderDraft.state and API responses).
"""
from __future__ import annotations

from datetime import date, time
from decimal import Decimal
from typing import Any, Optional
from uuid import UUID

from hb_core.addons.types import CartLine
from hb_core.order_builder.states import (
    PAYER_TYPES,
    Cancelled,
    CashPayer,
    Confirmation,
    CustomerRef,
    CustomerResolution,
    LineFailure,
    LookupState,
    Payer,
    ReferencePayer,
    ReservationRef,
    RoomPayer,
    SelectBillingMode,
    ServiceSelection,
    StepError,
    Submitted,
    WizardState,
)

STATE_TYPES: dict[str, type] = {
    t.name: t
    for t in (SelectBillingMode, CustomerResolution, ServiceSelection, Confirmation, Submitted, Cancelled)
}


def _s(value) -> Optional[str]:
    return None if value is None else str(value)


def _uuid(value) -> Optional[UUID]:
    return None if value in (None, "") else UUID(str(value))


def _date(value) -> Optional[date]:
    return None if not value else date.fromisoformat(value)


def _time(value) -> Optional[time]:
    return None if not value else time.fromisoformat(value)


def _decimal(value) -> Optional[Decimal]:
    return None if value in (None, "") else Decimal(str(value))


def _iso(value) -> Optional[str]:
    return None if value is None else value.isoformat()


# -------------------------
# Parts
# -------------------------
def encode_line(line: CartLine) -> dict[str, Any]:
    return {
        "service_id": str(line.service_id),
        "service_name": line.service_name,
        "description": line.description,
        "quantity": str(line.quantity),
        "unit_price": _s(line.unit_price),
        "currency": line.currency,
        "unit_type": line.unit_type,
        "tax_ids": list(line.tax_ids),
        "line_total": _s(line.line_total),
        "service_date": _iso(line.service_date),
        "service_time": _iso(line.service_time),
        "status": str(line.status),
        "notes": line.notes,
    }


def decode_line(data: dict[str, Any]) -> CartLine:
    return CartLine(
        service_id=UUID(str(data["service_id"])),
        service_name=data.get("service_name", ""),
        description=data.get("description", ""),
        quantity=Decimal(str(data.get("quantity", "1"))),
        unit_price=_decimal(data.get("unit_price")),
        currency=data.get("currency", ""),
        unit_type=data.get("unit_type", ""),
        tax_ids=tuple(data.get("tax_ids") or ()),
        service_date=_date(data.get("service_date")),
        service_time=_time(data.get("service_time")),
        status=data.get("status", "Pending"),
        notes=data.get("notes", ""),
    )


def _encode_lookup(lookup: Optional[LookupState]) -> Optional[dict[str, str]]:
    if lookup is None:
        return None
    return {"status": lookup.status, "query": lookup.query, "error": lookup.error}


def _decode_lookup(data) -> Optional[LookupState]:
    return None if not data else LookupState(**data)


def _encode_customer(c: Optional[CustomerRef]) -> Optional[dict[str, str]]:
    if c is None:
        return None
    return {
        "id": str(c.id),
        "name": c.name,
        "identification_number": c.identification_number,
        "email": c.email,
        "phone": c.phone,
    }


def _decode_customer(data) -> Optional[CustomerRef]:
    if not data:
        return None
    return CustomerRef(**{**data, "id": UUID(data["id"])})


def _encode_reservation(r: Optional[ReservationRef]) -> Optional[dict[str, Any]]:
    if r is None:
        return None
    return {
        "id": str(r.id),
        "reservation_no": r.reservation_no,
        "guest_name": r.guest_name,
        "room_no": r.room_no,
        "check_in": _iso(r.check_in),
        "check_out": _iso(r.check_out),
    }


def _decode_reservation(data) -> Optional[ReservationRef]:
    if not data:
        return None
    return ReservationRef(
        id=UUID(data["id"]),
        reservation_no=data["reservation_no"],
        guest_name=data.get("guest_name", ""),
        room_no=data.get("room_no", ""),
        check_in=_date(data.get("check_in")),
        check_out=_date(data.get("check_out")),
    )


def encode_payer(payer: Optional[Payer]) -> Optional[dict[str, Any]]:
    if payer is None:
        return None

    out: dict[str, Any] = {
        "billing_method": payer.billing_method,
        "lookup": _encode_lookup(payer.lookup),
        "resolved": payer.is_resolved,
    }
    if isinstance(payer, CashPayer):
        out["customer"] = _encode_customer(payer.customer)
        out["registration_open"] = payer.registration_open
    else:
        out["reservation"] = _encode_reservation(payer.reservation)
        out["candidates"] = [_encode_reservation(r) for r in payer.candidates]
        if isinstance(payer, ReferencePayer):
            out["reference_no"] = payer.reference_no
    return out


def decode_payer(data) -> Optional[Payer]:
    if not data:
        return None

    payer_type = PAYER_TYPES[data["billing_method"]]
    lookup = _decode_lookup(data.get("lookup"))

    if payer_type is CashPayer:
        return CashPayer(
            customer=_decode_customer(data.get("customer")),
            lookup=lookup,
            registration_open=bool(data.get("registration_open")),
        )

    common = {
        "reservation": _decode_reservation(data.get("reservation")),
        "candidates": tuple(_decode_reservation(r) for r in data.get("candidates") or ()),
        "lookup": lookup,
    }
    if payer_type is RoomPayer:
        return RoomPayer(**common)
    return ReferencePayer(reference_no=data.get("reference_no", ""), **common)


def _encode_error(error: Optional[StepError]) -> Optional[dict[str, Any]]:
    if error is None:
        return None
    return {"code": error.code, "message": error.message, "details": error.details}


def _decode_error(data) -> Optional[StepError]:
    return None if not data else StepError(**data)


# -------------------------
# State
# -------------------------
def encode_state(state: WizardState) -> dict[str, Any]:
    out: dict[str, Any] = {
        "step": state.name,
        "step_number": state.step,
        "cart": [encode_line(line) for line in state.cart],
        "payer": encode_payer(getattr(state, "payer", None)),
        "error": _encode_error(state.error),
    }
    if isinstance(state, Submitted):
        out["payer_ref"] = state.payer_ref
        out["committed_ids"] = [str(i) for i in state.committed_ids]
        out["failures"] = [
            {"service_id": str(f.service_id), "service_name": f.service_name, "code": f.code, "message": f.message}
            for f in state.failures
        ]
    return out


def decode_state(data: dict[str, Any]) -> WizardState:
    state_type = STATE_TYPES[data.get("step") or SelectBillingMode.name]

    kwargs: dict[str, Any] = {
        "cart": tuple(decode_line(line) for line in data.get("cart") or ()),
        "error": _decode_error(data.get("error")),
    }
    if state_type is not Cancelled:
        kwargs["payer"] = decode_payer(data.get("payer"))

    if state_type is Submitted:
        kwargs["payer_ref"] = data.get("payer_ref", "")
        kwargs["committed_ids"] = tuple(UUID(i) for i in data.get("committed_ids") or ())
        kwargs["failures"] = tuple(
            LineFailure(
                service_id=_uuid(f["service_id"]),
                service_name=f.get("service_name", ""),
                code=f.get("code", ""),
                message=f.get("message", ""),
            )
            for f in data.get("failures") or ()
        )

    return state_type(**kwargs)
