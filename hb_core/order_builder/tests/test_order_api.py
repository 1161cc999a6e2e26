import pytest

from hb_core.addons.models import ReservationServiceAddon
from hb_core.common.permissions import ROLE_READONLY
from hb_core.tests.helpers import client_for, scoped

pytestmark = pytest.mark.django_db

BASE = "/api/v1/order-drafts/"


def _post(client, hotel_id, draft_id, action, payload=None, **extra):
    return client.post(f"{BASE}{draft_id}/{action}/", payload or {}, format="json", **scoped(hotel_id), **extra)


def _start(client, hotel_id):
    r = client.post(BASE, {}, format="json", **scoped(hotel_id))
    assert r.status_code == 201, r.data
    assert r.data["step"] == "select_billing_mode"
    assert r.data["status"] == "OPEN"
    return r.data["id"]


def test_cash_flow_with_registration(api_client, hotel_id, airport_transfer, spa_session):
    draft_id = _start(api_client, hotel_id)

    r = _post(api_client, hotel_id, draft_id, "billing-mode", {"billing_method": "Cash"})
    assert r.status_code == 200, r.data
    assert r.data["state"]["payer"]["billing_method"] == "Cash"

    r = _post(api_client, hotel_id, draft_id, "customer-lookup", {"identification_number": "N998877"})
    assert r.status_code == 200, r.data
    payer = r.data["state"]["payer"]
    assert payer["lookup"]["status"] == "failed"
    assert payer["registration_open"] is True

    # incomplete registration is rejected and kept on the draft
    r = _post(api_client, hotel_id, draft_id, "register-customer", {"first_name": "Kamal"})
    assert r.status_code == 400
    assert set(r.data["error"]["details"]) == {"email", "phone"}
    assert api_client.get(f"{BASE}{draft_id}/", **scoped(hotel_id)).data["state"]["error"]["code"] == "validation_error"

    r = _post(
        api_client,
        hotel_id,
        draft_id,
        "register-customer",
        {"first_name": "Kamal", "last_name": "Silva", "email": "kamal@example.com", "phone": "0771111111"},
    )
    assert r.status_code == 200, r.data
    assert r.data["state"]["payer"]["customer"]["identification_number"] == "N998877"
    assert r.data["state"]["error"] is None

    assert _post(api_client, hotel_id, draft_id, "proceed").data["step"] == "service_selection"

    for item in (airport_transfer, spa_session):
        r = _post(api_client, hotel_id, draft_id, "toggle-service", {"service_id": str(item.id)})
        assert r.status_code == 200, r.data

    r = api_client.patch(
        f"{BASE}{draft_id}/cart-line/",
        {"service_id": str(airport_transfer.id), "quantity": "2"},
        format="json",
        **scoped(hotel_id),
    )
    assert r.status_code == 200, r.data

    r = api_client.get(f"{BASE}{draft_id}/preview/", **scoped(hotel_id))
    assert r.status_code == 200, r.data
    assert r.data["totals"] == {"LKR": "10500.00"}

    assert _post(api_client, hotel_id, draft_id, "proceed").data["step"] == "confirmation"

    r = _post(api_client, hotel_id, draft_id, "submit")
    assert r.status_code == 200, r.data
    assert r.data["draft"]["status"] == "SUBMITTED"
    result = r.data["result"]
    assert result["payer_ref"].startswith("CASH-")
    assert len(result["committed"]) == 2
    assert {a["guest_name"] for a in result["committed"]} == {"Kamal Silva"}
    assert result["failures"] == []


def test_room_flow_and_idempotent_submit(api_client, hotel_id, airport_transfer, reservation):
    draft_id = _start(api_client, hotel_id)

    _post(api_client, hotel_id, draft_id, "billing-mode", {"billing_method": "Room"})
    r = _post(api_client, hotel_id, draft_id, "reservation-lookup", {"query": "204"})
    assert r.status_code == 200, r.data
    assert r.data["state"]["payer"]["reservation"]["reservation_no"] == "RES-2025-0042"

    _post(api_client, hotel_id, draft_id, "proceed")
    _post(api_client, hotel_id, draft_id, "toggle-service", {"service_id": str(airport_transfer.id)})
    _post(api_client, hotel_id, draft_id, "proceed")

    r1 = _post(api_client, hotel_id, draft_id, "submit", HTTP_IDEMPOTENCY_KEY="submit-1")
    assert r1.status_code == 200, r1.data
    assert r1.data["result"]["payer_ref"] == "RES-2025-0042"

    r2 = _post(api_client, hotel_id, draft_id, "submit", HTTP_IDEMPOTENCY_KEY="submit-1")
    assert r2.status_code == 200, r2.data
    assert r2.data["result"]["committed"][0]["id"] == r1.data["result"]["committed"][0]["id"]
    assert ReservationServiceAddon.objects.filter(hotel_id=hotel_id).count() == 1

    # without the key a submitted draft is terminal
    r3 = _post(api_client, hotel_id, draft_id, "submit")
    assert r3.status_code == 409
    assert r3.data["error"]["code"] == "invalid_state"


def test_empty_cart_cannot_proceed(api_client, hotel_id, reservation):
    draft_id = _start(api_client, hotel_id)
    _post(api_client, hotel_id, draft_id, "billing-mode", {"billing_method": "Room"})
    _post(api_client, hotel_id, draft_id, "proceed")

    r = _post(api_client, hotel_id, draft_id, "proceed")
    assert r.status_code == 409
    assert r.data["error"]["message"] == "Select at least one service before continuing."


def test_cancel(api_client, hotel_id):
    draft_id = _start(api_client, hotel_id)
    r = _post(api_client, hotel_id, draft_id, "cancel")
    assert r.status_code == 200, r.data
    assert (r.data["status"], r.data["step"]) == ("CANCELLED", "cancelled")

    r = _post(api_client, hotel_id, draft_id, "billing-mode", {"billing_method": "Cash"})
    assert r.status_code == 409


def test_other_hotel_cannot_see_draft(api_client, hotel_id, other_hotel_id):
    draft_id = _start(api_client, hotel_id)
    r = api_client.get(f"{BASE}{draft_id}/", **scoped(other_hotel_id))
    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"


def test_readonly_cannot_drive_the_wizard(api_client, hotel_id, roles):
    draft_id = _start(api_client, hotel_id)
    c = client_for("auditor", ROLE_READONLY)

    assert c.get(f"{BASE}{draft_id}/", **scoped(hotel_id)).status_code == 200
    r = _post(c, hotel_id, draft_id, "billing-mode", {"billing_method": "Cash"})
    assert r.status_code == 403
    assert r.data["error"]["code"] == "permission_denied"
