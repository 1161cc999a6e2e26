from datetime import time
from decimal import Decimal

import pytest

from hb_core.addons import services as addon_services
from hb_core.addons.models import BillingMethod, ReservationServiceAddon
from hb_core.catalog.services import ServiceCatalogService
from hb_core.common.errors import NotFoundError, StateError, ValidationError
from hb_core.common.registries import RegistryError
from hb_core.guests.models import Customer
from hb_core.guests.registry import ModelReservationRegistry
from hb_core.order_builder import transitions as T
from hb_core.order_builder.models import DraftStatus
from hb_core.order_builder.services import OrderBuilderService, OrderDraftService
from hb_core.order_builder.states import Confirmation, LookupStatus, ServiceSelection, Submitted

pytestmark = pytest.mark.django_db


def _room_at_services(hotel_id, reservation):
    s = T.choose_billing_mode(T.start(), "Room")
    s = OrderBuilderService.lookup_reservation(hotel_id=hotel_id, state=s, query=reservation.room_no)
    return T.proceed(s)


def _add(hotel_id, state, item, **kwargs):
    return OrderBuilderService.toggle_service(hotel_id=hotel_id, state=state, service_id=item.id, **kwargs)


class FlakyReservationRegistry(ModelReservationRegistry):
    """
    Answers normally, then misbehaves from call number `fail_from` on:
    returns None (reservation gone) or raises RegistryError.
    """

    def __init__(self, fail_from, error=None):
        self.calls = 0
        self.fail_from = fail_from
        self.error = error

    def get(self, *, hotel_id, reservation_id):
        self.calls += 1
        if self.calls >= self.fail_from:
            if self.error is not None:
                raise self.error
            return None
        return super().get(hotel_id=hotel_id, reservation_id=reservation_id)


@pytest.fixture
def flaky_commits(monkeypatch):
    """
    Install a FlakyReservationRegistry for add-on commits only (lookups stay real).
    """

    def install(fail_from, error=None):
        registry = FlakyReservationRegistry(fail_from, error)
        monkeypatch.setattr(addon_services, "get_reservation_registry", lambda: registry)
        return registry

    return install


def test_customer_lookup_found(hotel_id, customer):
    s = T.choose_billing_mode(T.start(), "Cash")
    s = OrderBuilderService.lookup_customer(hotel_id=hotel_id, state=s, identification_number="901234567v")

    assert s.payer.lookup.status == LookupStatus.RESOLVED
    assert s.payer.customer.id == customer.id
    assert s.payer.customer.name == "Nimal Perera"


def test_customer_lookup_is_hotel_scoped(other_hotel_id, customer):
    s = T.choose_billing_mode(T.start(), "Cash")
    s = OrderBuilderService.lookup_customer(hotel_id=other_hotel_id, state=s, identification_number="901234567V")

    assert s.payer.customer is None
    assert s.payer.registration_open is True


def test_register_defaults_identification_to_lookup_query(hotel_id):
    s = T.choose_billing_mode(T.start(), "Cash")
    s = OrderBuilderService.lookup_customer(hotel_id=hotel_id, state=s, identification_number="N1234567")
    s = OrderBuilderService.register_customer(
        hotel_id=hotel_id,
        state=s,
        data={"first_name": "Kamal", "last_name": "Silva", "email": "kamal@example.com", "phone": "0771111111"},
    )

    assert s.payer.customer.name == "Kamal Silva"
    assert Customer.objects.get(id=s.payer.customer.id).identification_number == "N1234567"
    assert isinstance(T.proceed(s), ServiceSelection)


def test_reservation_lookup_by_room(hotel_id, reservation):
    s = _room_at_services(hotel_id, reservation)
    assert s.payer.reservation.reservation_no == "RES-2025-0042"
    assert s.payer.reservation.room_no == "204"


def test_toggle_quotes_live_catalog_price(hotel_id, airport_transfer, reservation):
    s = _add(hotel_id, _room_at_services(hotel_id, reservation), airport_transfer, quantity="2")

    line = s.cart[0]
    assert (line.currency, line.unit_price) == ("LKR", Decimal("3000.00"))
    assert line.tax_ids == ("VAT", "SC")
    assert line.service_time == time(10, 0)
    assert line.line_total == Decimal("6000.00")

    usd = _add(hotel_id, _room_at_services(hotel_id, reservation), airport_transfer, currency="USD")
    assert (usd.cart[0].currency, usd.cart[0].unit_price) == ("USD", Decimal("10.00"))

    with pytest.raises(ValidationError):
        _add(hotel_id, _room_at_services(hotel_id, reservation), airport_transfer, currency="EUR")


def test_toggle_rejects_wrong_step_before_quoting(hotel_id, airport_transfer):
    with pytest.raises(StateError):
        _add(hotel_id, T.start(), airport_transfer)


def test_preview_uses_live_prices_and_flags_unavailable(hotel_id, airport_transfer, spa_session, reservation):
    s = _room_at_services(hotel_id, reservation)
    s = _add(hotel_id, s, airport_transfer, quantity="2")
    s = _add(hotel_id, s, spa_session)

    ServiceCatalogService.update_item(
        hotel_id=hotel_id,
        item_id=airport_transfer.id,
        service_name="Airport Transfer",
        unit_type="Trip",
        pricing=[{"currency": "LKR", "amount": "3500"}],
    )
    ServiceCatalogService.delete_item(hotel_id=hotel_id, item_id=spa_session.id)

    preview = OrderBuilderService.preview_total(hotel_id=hotel_id, state=s)
    assert preview.totals == {"LKR": Decimal("7000.00")}
    assert [line.reason for line in preview.unavailable] == ["Service inactive."]

    # the cart itself still carries the quoted price
    assert s.cart[0].unit_price == Decimal("3000.00")


def test_submit_room_order(hotel_id, airport_transfer, spa_session, reservation):
    s = _room_at_services(hotel_id, reservation)
    s = _add(hotel_id, s, airport_transfer, quantity="2")
    s = _add(hotel_id, s, spa_session)
    s = T.proceed(s)

    s, result = OrderBuilderService.submit(hotel_id=hotel_id, state=s, actor="frontdesk")

    assert isinstance(s, Submitted)
    assert result.payer_ref == "RES-2025-0042"
    assert result.failures == ()
    assert len(result.committed) == 2
    assert {a.room_no for a in result.committed} == {"204"}
    assert sum(a.total_price for a in result.committed) == Decimal("10500.00")


def test_submit_cash_shares_one_payer_ref(hotel_id, airport_transfer, spa_session, customer):
    s = T.choose_billing_mode(T.start(), "Cash")
    s = OrderBuilderService.lookup_customer(hotel_id=hotel_id, state=s, identification_number="901234567V")
    s = T.proceed(s)
    s = _add(hotel_id, s, airport_transfer)
    s = _add(hotel_id, s, spa_session)
    s = T.proceed(s)

    s, result = OrderBuilderService.submit(hotel_id=hotel_id, state=s, actor="frontdesk")

    assert result.payer_ref.startswith("CASH-")
    refs = set(ReservationServiceAddon.objects.filter(hotel_id=hotel_id).values_list("payer_ref", flat=True))
    assert refs == {result.payer_ref}
    assert all(a.billing_method == BillingMethod.CASH and a.room_no == "N/A" for a in result.committed)


def test_partial_submission_keeps_committed_lines(hotel_id, airport_transfer, spa_session, reservation):
    s = _room_at_services(hotel_id, reservation)
    s = _add(hotel_id, s, airport_transfer)
    s = _add(hotel_id, s, spa_session)
    s = T.proceed(s)

    ServiceCatalogService.delete_item(hotel_id=hotel_id, item_id=spa_session.id)

    s, result = OrderBuilderService.submit(hotel_id=hotel_id, state=s)

    assert isinstance(s, Submitted)
    assert [a.service_name for a in result.committed] == ["Airport Transfer"]
    assert [(f.service_name, f.code) for f in result.failures] == [("Spa Session", "not_found")]
    assert ReservationServiceAddon.objects.filter(hotel_id=hotel_id).count() == 1


def test_all_lines_failing_stays_on_confirmation(hotel_id, spa_session, reservation):
    s = T.proceed(_add(hotel_id, _room_at_services(hotel_id, reservation), spa_session))
    ServiceCatalogService.delete_item(hotel_id=hotel_id, item_id=spa_session.id)

    s, result = OrderBuilderService.submit(hotel_id=hotel_id, state=s)

    assert isinstance(s, Confirmation)
    assert s.error.code == "submission_failed"
    assert result.committed == ()


def test_reservation_gone_before_second_line(hotel_id, airport_transfer, spa_session, reservation, flaky_commits):
    s = _room_at_services(hotel_id, reservation)
    s = _add(hotel_id, s, airport_transfer)
    s = _add(hotel_id, s, spa_session)
    s = T.proceed(s)

    flaky_commits(fail_from=2)
    s, result = OrderBuilderService.submit(hotel_id=hotel_id, state=s)

    assert isinstance(s, Submitted)
    assert [a.service_name for a in result.committed] == ["Airport Transfer"]
    assert [(f.service_name, f.code) for f in result.failures] == [("Spa Session", "not_found")]
    assert s.failures == result.failures
    assert ReservationServiceAddon.objects.filter(hotel_id=hotel_id).count() == 1


def test_registry_outage_is_a_line_failure(hotel_id, airport_transfer, spa_session, reservation, flaky_commits):
    s = _room_at_services(hotel_id, reservation)
    s = _add(hotel_id, s, airport_transfer)
    s = _add(hotel_id, s, spa_session)
    s = T.proceed(s)

    flaky_commits(fail_from=2, error=RegistryError("PMS timeout"))
    s, result = OrderBuilderService.submit(hotel_id=hotel_id, state=s)

    assert isinstance(s, Submitted)
    assert len(result.committed) == 1
    assert [(f.code, f.message) for f in result.failures] == [("registry_unavailable", "PMS timeout")]


# -------------------------
# Persisted drafts
# -------------------------
def test_draft_error_is_stored_then_raised(hotel_id):
    draft = OrderDraftService.start(hotel_id=hotel_id, operator="frontdesk")
    draft = OrderDraftService.apply(hotel_id=hotel_id, draft_id=draft.id, op=lambda s: T.choose_billing_mode(s, "Cash"))

    with pytest.raises(StateError):
        OrderDraftService.apply(hotel_id=hotel_id, draft_id=draft.id, op=T.proceed)

    draft.refresh_from_db()
    assert draft.step == "customer_resolution"
    assert draft.state["error"]["code"] == "invalid_state"
    assert draft.state["error"]["message"] == "Find or register the customer before continuing."


def test_draft_submit_and_terminal(hotel_id, airport_transfer, reservation):
    draft = OrderDraftService.start(hotel_id=hotel_id)

    for op in (
        lambda s: T.choose_billing_mode(s, "Room"),
        lambda s: OrderBuilderService.lookup_reservation(hotel_id=hotel_id, state=s, query="RES-2025-0042"),
        T.proceed,
        lambda s: _add(hotel_id, s, airport_transfer),
        T.proceed,
    ):
        draft = OrderDraftService.apply(hotel_id=hotel_id, draft_id=draft.id, op=op)

    draft, result = OrderDraftService.submit(hotel_id=hotel_id, draft_id=draft.id, actor="frontdesk")

    assert draft.status == DraftStatus.SUBMITTED
    assert draft.payer_ref == "RES-2025-0042"
    assert draft.submitted_at is not None
    assert draft.state["committed_ids"] == [str(result.committed[0].id)]

    with pytest.raises(StateError):
        OrderDraftService.apply(hotel_id=hotel_id, draft_id=draft.id, op=T.cancel)


def test_draft_is_hotel_scoped(hotel_id, other_hotel_id):
    draft = OrderDraftService.start(hotel_id=hotel_id)
    with pytest.raises(NotFoundError):
        OrderDraftService.get(hotel_id=other_hotel_id, draft_id=draft.id)
    with pytest.raises(NotFoundError):
        OrderDraftService.apply(hotel_id=other_hotel_id, draft_id=draft.id, op=T.cancel)


def _room_draft_at_confirmation(hotel_id, *items):
    draft = OrderDraftService.start(hotel_id=hotel_id)
    ops = [
        lambda s: T.choose_billing_mode(s, "Room"),
        lambda s: OrderBuilderService.lookup_reservation(hotel_id=hotel_id, state=s, query="RES-2025-0042"),
        T.proceed,
    ]
    ops += [lambda s, item=item: _add(hotel_id, s, item) for item in items]
    ops.append(T.proceed)
    for op in ops:
        draft = OrderDraftService.apply(hotel_id=hotel_id, draft_id=draft.id, op=op)
    return draft


def test_draft_submit_keeps_lines_committed_before_outage(
    hotel_id, airport_transfer, spa_session, reservation, flaky_commits
):
    draft = _room_draft_at_confirmation(hotel_id, airport_transfer, spa_session)

    flaky_commits(fail_from=2, error=RegistryError("PMS timeout"))
    draft, result = OrderDraftService.submit(hotel_id=hotel_id, draft_id=draft.id, actor="frontdesk")

    draft.refresh_from_db()
    assert draft.status == DraftStatus.SUBMITTED
    assert draft.state["committed_ids"] == [str(result.committed[0].id)]
    assert draft.state["failures"][0]["service_name"] == "Spa Session"
    assert draft.state["failures"][0]["code"] == "registry_unavailable"

    rows = ReservationServiceAddon.objects.filter(hotel_id=hotel_id)
    assert [a.service_name for a in rows] == ["Airport Transfer"]


def test_draft_submit_all_failed_stays_open_and_can_retry(
    hotel_id, airport_transfer, reservation, flaky_commits
):
    draft = _room_draft_at_confirmation(hotel_id, airport_transfer)

    flaky_commits(fail_from=1)
    draft, result = OrderDraftService.submit(hotel_id=hotel_id, draft_id=draft.id)

    draft.refresh_from_db()
    assert result.committed == ()
    assert draft.status == DraftStatus.OPEN
    assert draft.step == "confirmation"
    assert draft.state["error"]["code"] == "submission_failed"
    assert draft.state["error"]["details"][0]["code"] == "not_found"

    flaky_commits(fail_from=99)
    draft, result = OrderDraftService.submit(hotel_id=hotel_id, draft_id=draft.id)
    assert draft.status == DraftStatus.SUBMITTED
    assert len(result.committed) == 1


def test_draft_in_submission_rejects_second_submit(hotel_id, airport_transfer, reservation):
    draft = _room_draft_at_confirmation(hotel_id, airport_transfer)
    draft.status = DraftStatus.SUBMITTING
    draft.save(update_fields=["status"])

    with pytest.raises(StateError):
        OrderDraftService.submit(hotel_id=hotel_id, draft_id=draft.id)
    assert ReservationServiceAddon.objects.count() == 0
