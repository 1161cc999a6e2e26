import uuid
from decimal import Decimal

import pytest

from hb_core.addons.models import BillingMethod
from hb_core.addons.services import AddonStoreService
from hb_core.addons.types import CartLine, PayerContext
from hb_core.common.permissions import ROLE_READONLY
from hb_core.tests.helpers import client_for, scoped

pytestmark = pytest.mark.django_db


@pytest.fixture
def room_line(hotel_id, airport_transfer, reservation):
    return AddonStoreService.commit(
        hotel_id=hotel_id,
        line=CartLine(service_id=airport_transfer.id, quantity=Decimal("2")),
        payer=PayerContext(billing_method=BillingMethod.ROOM, reservation_id=reservation.id),
        actor="frontdesk",
    )


def test_list_and_retrieve(api_client, hotel_id, room_line):
    r = api_client.get("/api/v1/addon-invoices/", **scoped(hotel_id))
    assert r.status_code == 200, r.data
    assert r.data["count"] == 1

    row = r.data["results"][0]
    assert row["addon_id"] == str(room_line.id)
    assert row["status"] == "Pending"
    assert row["subtotal"] == "6000.00"
    assert row["tax_amount"] == "720.00"
    assert row["total_amount"] == "6720.00"
    assert row["room_no"] == "204"
    assert row["customer_name"] is None
    assert row["audit_log"][0]["actor"] == "frontdesk"

    r = api_client.get(f"/api/v1/addon-invoices/{room_line.id}/", **scoped(hotel_id))
    assert r.status_code == 200, r.data
    assert r.data["invoice_number"] == row["invoice_number"]


def test_reflects_invoicing_on_next_read(api_client, hotel_id, room_line):
    AddonStoreService.mark_addon_invoiced(hotel_id=hotel_id, addon_id=room_line.id, invoice_ref="INV-1")

    r = api_client.get("/api/v1/addon-invoices/", {"status": "Posted"}, **scoped(hotel_id))
    assert r.status_code == 200, r.data
    assert [row["payment_status"] for row in r.data["results"]] == ["Paid"]


def test_unknown_status_filter(api_client, hotel_id, room_line):
    r = api_client.get("/api/v1/addon-invoices/", {"status": "Lost"}, **scoped(hotel_id))
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"


def test_other_hotel_sees_nothing(api_client, other_hotel_id, room_line):
    r = api_client.get(f"/api/v1/addon-invoices/{room_line.id}/", **scoped(other_hotel_id))
    assert r.status_code == 404

    r = api_client.get(f"/api/v1/addon-invoices/{uuid.uuid4()}/", **scoped(other_hotel_id))
    assert r.status_code == 404


def test_readonly_role_can_read(hotel_id, room_line, roles):
    c = client_for("auditor", ROLE_READONLY)
    r = c.get("/api/v1/addon-invoices/", **scoped(hotel_id))
    assert r.status_code == 200, r.data
