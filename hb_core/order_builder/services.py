# hb_core/order_builder/services.py
"""
Effectful side of the order wizard.

OrderBuilderService performs the registry/catalog I/O around the pure
transitions; OrderDraftService persists a session (OrderDraft) and applies
operations to it under a row lock.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from datetime import date, time
from decimal import Decimal
from typing import Any, Callable, Mapping, Optional
from uuid import UUID

from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import APIException

from hb_core.addons.models import AddonStatus, BillingMethod, ReservationServiceAddon
from hb_core.addons.services import AddonStoreService, default_service_time, new_cash_payer_ref
from hb_core.addons.types import CartLine, PayerContext
from hb_core.catalog.selectors import get_item, quote_item
from hb_core.common.errors import DOMAIN_ERRORS, NotFoundError, StateError, ValidationError, error_message, plain_details
from hb_core.common.registries import (
    CustomerRecord,
    RegistryError,
    ReservationRecord,
    get_customer_registry,
    get_reservation_registry,
)
from hb_core.order_builder import transitions as T
from hb_core.order_builder.codec import decode_state, encode_state
from hb_core.order_builder.models import DraftStatus, OrderDraft
from hb_core.order_builder.states import (
    Cancelled,
    CashPayer,
    Confirmation,
    CustomerRef,
    LineFailure,
    ReferencePayer,
    ReservationRef,
    ServiceSelection,
    StepError,
    Submitted,
    WizardState,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SubmissionResult:
    payer_ref: str
    committed: tuple[ReservationServiceAddon, ...] = ()
    failures: tuple[LineFailure, ...] = ()

    @property
    def committed_ids(self) -> tuple[UUID, ...]:
        return tuple(a.id for a in self.committed)


@dataclass(frozen=True)
class PreviewLine:
    service_id: UUID
    service_name: str
    quantity: Decimal
    currency: str = ""
    unit_price: Optional[Decimal] = None
    line_total: Optional[Decimal] = None
    available: bool = True
    reason: str = ""


@dataclass(frozen=True)
class Preview:
    """
    Cart priced from the live catalog (not the quoted prices).
    Totals are per currency; unavailable lines are excluded from them.
    """
    lines: tuple[PreviewLine, ...] = ()
    totals: dict[str, Decimal] = field(default_factory=dict)

    @property
    def unavailable(self) -> tuple[PreviewLine, ...]:
        return tuple(line for line in self.lines if not line.available)


def _customer_ref(rec: CustomerRecord) -> CustomerRef:
    return CustomerRef(
        id=rec.id,
        name=rec.name,
        identification_number=rec.identification_number,
        email=rec.email,
        phone=rec.phone,
    )


def _reservation_ref(rec: ReservationRecord) -> ReservationRef:
    return ReservationRef(
        id=rec.id,
        reservation_no=rec.reservation_no,
        guest_name=rec.guest_name,
        room_no=rec.room_no,
        check_in=rec.check_in,
        check_out=rec.check_out,
    )


class OrderBuilderService:
    """
    Drives lookups, catalog quotes and submission around the pure transitions.
    Every method takes a state and returns the next one.
    """

    # -------------------------
    # Customer (Cash)
    # -------------------------
    @staticmethod
    def lookup_customer(*, hotel_id: UUID, state: WizardState, identification_number: str) -> WizardState:
        state = T.begin_customer_lookup(state, identification_number)
        try:
            rec = get_customer_registry().find_by_identification(
                hotel_id=hotel_id,
                identification_number=state.payer.lookup.query,
            )
        except RegistryError as exc:
            logger.warning("customer lookup failed hotel=%s: %s", hotel_id, exc)
            return T.customer_lookup_failed(state, str(exc) or "registry error")

        if rec is None:
            return T.customer_lookup_failed(state)
        return T.customer_lookup_resolved(state, _customer_ref(rec))

    @staticmethod
    def register_customer(*, hotel_id: UUID, state: WizardState, data: Mapping[str, Any]) -> WizardState:
        """
        Registration sub-flow: create the customer, then resolve it as if found.
        The identification number defaults to the failed lookup's query.
        """
        T.ensure_can_register(state)
        cleaned = T.validate_registration(data)

        lookup = state.payer.lookup
        if not cleaned.get("identification_number") and lookup is not None:
            cleaned["identification_number"] = lookup.query

        try:
            rec = get_customer_registry().create(hotel_id=hotel_id, data=cleaned)
        except RegistryError as exc:
            logger.warning("customer registration failed hotel=%s: %s", hotel_id, exc)
            return T.customer_lookup_failed(state, str(exc) or "registry error")

        logger.info("customer registered id=%s hotel=%s", rec.id, hotel_id)
        return T.customer_lookup_resolved(state, _customer_ref(rec))

    # -------------------------
    # Reservation (Room / Reference No.)
    # -------------------------
    @staticmethod
    def lookup_reservation(*, hotel_id: UUID, state: WizardState, query: str) -> WizardState:
        state = T.begin_reservation_lookup(state, query)
        try:
            found = get_reservation_registry().find_by_room_or_reference(
                hotel_id=hotel_id,
                query=state.payer.lookup.query,
            )
        except RegistryError as exc:
            logger.warning("reservation lookup failed hotel=%s: %s", hotel_id, exc)
            return T.reservation_lookup_failed(state, str(exc) or "registry error")

        return T.reservation_lookup_resolved(state, [_reservation_ref(r) for r in found])

    # -------------------------
    # Cart
    # -------------------------
    @staticmethod
    def toggle_service(
        *,
        hotel_id: UUID,
        state: WizardState,
        service_id: UUID,
        currency: Optional[str] = None,
        quantity: Any = None,
        service_date: Optional[date] = None,
        service_time: Optional[time] = None,
        status: Optional[str] = None,
        notes: str = "",
    ) -> WizardState:
        """
        Add a service to the cart with its live catalog price, or remove it
        if it is already there.
        """
        T.expect_step(state, ServiceSelection)
        if T.in_cart(state, service_id):
            return T.toggle_service(state, CartLine(service_id=service_id))

        q = quote_item(hotel_id=hotel_id, item_id=service_id, currency=currency)
        line = CartLine(
            service_id=q.service_id,
            service_name=q.service_name,
            description=q.description,
            quantity=Decimal("1") if quantity in (None, "") else T.parse_quantity(quantity),
            unit_price=q.unit_price,
            currency=q.currency,
            unit_type=q.unit_type,
            tax_ids=q.tax_ids,
            service_date=T.parse_date(service_date) if service_date else timezone.localdate(),
            service_time=T.parse_time(service_time) if service_time else default_service_time(),
            status=status or AddonStatus.PENDING,
            notes=(notes or "").strip(),
        )
        if line.status not in AddonStatus.values:
            raise ValidationError({"status": f"Must be one of: {', '.join(AddonStatus.values)}."})
        return T.toggle_service(state, line)

    @staticmethod
    def preview_total(*, hotel_id: UUID, state: WizardState) -> Preview:
        lines: list[PreviewLine] = []
        totals: dict[str, Decimal] = {}

        for c in state.cart:
            try:
                item = get_item(hotel_id=hotel_id, item_id=c.service_id)
            except NotFoundError:
                lines.append(
                    PreviewLine(c.service_id, c.service_name, c.quantity, available=False, reason="Service removed.")
                )
                continue

            if not item.is_active:
                lines.append(
                    PreviewLine(c.service_id, item.service_name, c.quantity, available=False, reason="Service inactive.")
                )
                continue

            row = item.price_for(c.currency or None)
            if row is None:
                lines.append(
                    PreviewLine(
                        c.service_id,
                        item.service_name,
                        c.quantity,
                        currency=c.currency,
                        available=False,
                        reason=f"No price in {c.currency}.",
                    )
                )
                continue

            line_total = (c.quantity * row.amount).quantize(Decimal("0.01"))
            totals[row.currency] = totals.get(row.currency, Decimal("0.00")) + line_total
            lines.append(
                PreviewLine(
                    c.service_id,
                    item.service_name,
                    c.quantity,
                    currency=row.currency,
                    unit_price=row.amount,
                    line_total=line_total,
                )
            )

        return Preview(lines=tuple(lines), totals=totals)

    # -------------------------
    # Submit
    # -------------------------
    @staticmethod
    def _payer_context(state: Confirmation) -> PayerContext:
        payer = state.payer
        if isinstance(payer, CashPayer):
            return PayerContext(
                billing_method=BillingMethod.CASH,
                payer_ref=new_cash_payer_ref(),
                customer_id=payer.customer.id,
            )

        ctx = PayerContext(
            billing_method=payer.billing_method,
            payer_ref=payer.reservation.reservation_no,
            reservation_id=payer.reservation.id,
        )
        if isinstance(payer, ReferencePayer):
            ctx = replace(ctx, reference_no=payer.reference_no)
        return ctx

    @staticmethod
    def submit(*, hotel_id: UUID, state: WizardState, actor: str = "") -> tuple[WizardState, SubmissionResult]:
        """
        Commit one add-on per cart line, each in its own transaction.
        A failing line does not undo the lines already committed; it is
        reported in SubmissionResult.failures.
        """
        state = T.ensure_submittable(state)
        payer = OrderBuilderService._payer_context(state)

        committed: list[ReservationServiceAddon] = []
        failures: list[LineFailure] = []

        for line in state.cart:
            try:
                with transaction.atomic():
                    addon = AddonStoreService.commit(hotel_id=hotel_id, line=line, payer=payer, actor=actor)
            except DOMAIN_ERRORS as exc:
                logger.warning(
                    "submission line failed payer=%s service=%s: %s",
                    payer.payer_ref,
                    line.service_id,
                    error_message(exc),
                )
                failures.append(
                    LineFailure(
                        service_id=line.service_id,
                        service_name=line.service_name,
                        code=exc.default_code,
                        message=error_message(exc),
                    )
                )
                continue
            committed.append(addon)

        result = SubmissionResult(payer_ref=payer.payer_ref, committed=tuple(committed), failures=tuple(failures))
        logger.info(
            "order submitted payer=%s committed=%d failed=%d",
            payer.payer_ref,
            len(committed),
            len(failures),
        )
        new_state = T.mark_submitted(
            state,
            payer_ref=payer.payer_ref,
            committed_ids=result.committed_ids,
            failures=result.failures,
        )
        return new_state, result


class OrderDraftService:
    """
    Persisted wizard sessions.

    Every operation locks the draft row, decodes its state, applies one
    operation and stores the result. A rejected operation stores the state
    with the error attached to the current step, then re-raises.
    """

    @staticmethod
    def start(*, hotel_id: UUID, operator: str = "") -> OrderDraft:
        state = T.start()
        draft = OrderDraft.objects.create(
            hotel_id=hotel_id,
            operator=operator or "",
            step=state.name,
            status=DraftStatus.OPEN,
            state=encode_state(state),
        )
        logger.info("order draft started id=%s hotel=%s by=%s", draft.id, hotel_id, operator or "-")
        return draft

    @staticmethod
    def get(*, hotel_id: UUID, draft_id: UUID) -> OrderDraft:
        draft = OrderDraft.objects.filter(hotel_id=hotel_id, id=draft_id).first()
        if draft is None:
            raise NotFoundError({"detail": "Order draft not found.", "draft_id": str(draft_id)})
        return draft

    @staticmethod
    def state_of(draft: OrderDraft) -> WizardState:
        return decode_state(draft.state)

    @staticmethod
    def _store(draft: OrderDraft, state: WizardState) -> None:
        draft.state = encode_state(state)
        draft.step = state.name
        if isinstance(state, Submitted):
            draft.status = DraftStatus.SUBMITTED
            draft.payer_ref = state.payer_ref
            draft.submitted_at = timezone.now()
        elif isinstance(state, Cancelled):
            draft.status = DraftStatus.CANCELLED
        draft.save(update_fields=["state", "step", "status", "payer_ref", "submitted_at", "updated_at"])

    @staticmethod
    def _lock(*, hotel_id: UUID, draft_id: UUID) -> OrderDraft:
        try:
            draft = OrderDraft.objects.select_for_update().get(hotel_id=hotel_id, id=draft_id)
        except OrderDraft.DoesNotExist:
            raise NotFoundError({"detail": "Order draft not found.", "draft_id": str(draft_id)})

        if draft.status == DraftStatus.SUBMITTING:
            raise StateError({"detail": "Order draft is being submitted.", "draft_id": str(draft.id)})
        if draft.is_terminal:
            raise StateError({"detail": f"Order draft is already {draft.status.lower()}.", "draft_id": str(draft.id)})
        return draft

    @staticmethod
    def _reject(draft: OrderDraft, state: WizardState, exc: APIException) -> None:
        logger.info("order draft %s rejected at %s: %s", draft.id, state.name, error_message(exc))
        OrderDraftService._store(
            draft,
            T.with_error(
                state,
                StepError(code=exc.default_code, message=error_message(exc), details=plain_details(exc.detail)),
            ),
        )

    @staticmethod
    def _run(
        *,
        hotel_id: UUID,
        draft_id: UUID,
        op: Callable[[WizardState], WizardState],
    ) -> OrderDraft:
        failure = None

        with transaction.atomic():
            draft = OrderDraftService._lock(hotel_id=hotel_id, draft_id=draft_id)
            state = decode_state(draft.state)
            try:
                new_state = op(state)
            except DOMAIN_ERRORS as exc:
                failure = exc
                OrderDraftService._reject(draft, state, exc)
            else:
                OrderDraftService._store(draft, new_state)

        if failure is not None:
            raise failure
        return draft

    @staticmethod
    def apply(
        *,
        hotel_id: UUID,
        draft_id: UUID,
        op: Callable[[WizardState], WizardState],
    ) -> OrderDraft:
        """
        Apply any state -> state operation (pure transition or driver call).
        """
        return OrderDraftService._run(hotel_id=hotel_id, draft_id=draft_id, op=op)

    @staticmethod
    def submit(*, hotel_id: UUID, draft_id: UUID, actor: str = "") -> tuple[OrderDraft, SubmissionResult]:
        """
        Three phases so every cart line gets its own transaction:

        1. under the row lock, check the draft is submittable and flag it
           SUBMITTING (a concurrent submit is rejected with StateError);
        2. commit the lines with no outer transaction held;
        3. under the row lock again, store the resulting state.
        """
        failure = None

        with transaction.atomic():
            draft = OrderDraftService._lock(hotel_id=hotel_id, draft_id=draft_id)
            state = decode_state(draft.state)
            try:
                T.ensure_submittable(state)
            except DOMAIN_ERRORS as exc:
                failure = exc
                OrderDraftService._reject(draft, state, exc)
            else:
                draft.status = DraftStatus.SUBMITTING
                draft.save(update_fields=["status", "updated_at"])

        if failure is not None:
            raise failure

        try:
            new_state, result = OrderBuilderService.submit(hotel_id=hotel_id, state=state, actor=actor)
        except Exception:
            OrderDraft.objects.filter(id=draft.id, status=DraftStatus.SUBMITTING).update(status=DraftStatus.OPEN)
            raise

        with transaction.atomic():
            draft = OrderDraft.objects.select_for_update().get(id=draft.id)
            draft.status = DraftStatus.OPEN
            OrderDraftService._store(draft, new_state)

        return draft, result
