import pytest

from hb_core.common.errors import NotFoundError, StateError, error_message, plain_details
from hb_core.common.permissions import ROLE_READONLY
from hb_core.tests.helpers import client_for, scoped

pytestmark = pytest.mark.django_db


def test_unauthenticated_request_gets_envelope(client):
    r = client.get("/api/v1/addons/")
    assert r.status_code == 401
    body = r.json()
    assert body["error"]["code"] == "not_authenticated"
    assert body["error"]["request_id"]


def test_not_found_envelope(api_client, hotel_id):
    r = api_client.get("/api/v1/addons/00000000-0000-0000-0000-00000000dead/", **scoped(hotel_id))
    assert r.status_code == 404
    assert r.data["error"]["code"] == "not_found"
    assert r.data["error"]["details"] == {"addon_id": "00000000-0000-0000-0000-00000000dead"}
    assert r["X-Request-ID"] == r.data["error"]["request_id"]


def test_invalid_uuid_in_path(api_client, hotel_id):
    r = api_client.get("/api/v1/addons/not-a-uuid/", **scoped(hotel_id))
    assert r.status_code == 400
    assert r.data["error"]["code"] == "validation_error"


def test_permission_denied_envelope(hotel_id, roles):
    c = client_for("viewer", ROLE_READONLY)
    r = c.post("/api/v1/order-drafts/", {}, format="json", **scoped(hotel_id))
    assert r.status_code == 403
    assert r.data["error"]["code"] == "permission_denied"


def test_error_helpers():
    exc = StateError({"detail": "Order is already submitted.", "draft_id": "x"})
    assert error_message(exc) == "Order is already submitted."
    assert plain_details(exc.detail) == {"detail": "Order is already submitted.", "draft_id": "x"}

    assert error_message(NotFoundError()) == "Not found."


def test_caller_request_id_is_echoed(api_client, hotel_id):
    r = api_client.get("/api/v1/addons/not-a-uuid/", HTTP_X_REQUEST_ID="trace-42", **scoped(hotel_id))
    assert r.data["error"]["request_id"] == "trace-42"
