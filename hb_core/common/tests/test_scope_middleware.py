import json

import pytest
from django.contrib.auth.models import AnonymousUser, User
from django.test import RequestFactory

from hb_core.common.middleware import HotelScopeMiddleware

HOTEL = "11111111-1111-1111-1111-111111111111"


def _process(path, user, **headers):
    req = RequestFactory().get(path, **headers)
    req.user = user
    mw = HotelScopeMiddleware(get_response=lambda r: None)
    return req, mw.process_request(req)


@pytest.mark.django_db
def test_missing_scope_returns_error_envelope():
    _, resp = _process("/api/v1/addons/", User.objects.create_user(username="u1", password="pass123"))

    assert resp is not None
    assert resp.status_code == 400

    body = json.loads(resp.content.decode("utf-8"))
    assert body["error"]["code"] == "validation_error"
    assert "Missing scope header" in body["error"]["message"]
    assert "request_id" in body["error"]


@pytest.mark.django_db
def test_invalid_scope_returns_error_envelope():
    _, resp = _process(
        "/api/v1/addons/",
        User.objects.create_user(username="u2", password="pass123"),
        HTTP_X_HOTEL_ID="not-a-uuid",
    )

    assert resp.status_code == 400
    body = json.loads(resp.content.decode("utf-8"))
    assert "Invalid X-Hotel-Id" in body["error"]["message"]


@pytest.mark.django_db
def test_valid_scope_is_attached():
    req, resp = _process(
        "/api/v1/addons/",
        User.objects.create_user(username="u3", password="pass123"),
        HTTP_X_HOTEL_ID=HOTEL,
    )

    assert resp is None
    assert str(req.hotel_id) == HOTEL
    assert str(req.scope.hotel_id) == HOTEL


@pytest.mark.django_db
def test_legacy_header_is_accepted():
    req, resp = _process(
        "/api/v1/addons/",
        User.objects.create_user(username="u4", password="pass123"),
        HTTP_X_HB_HOTEL_ID=HOTEL,
    )
    assert resp is None
    assert str(req.hotel_id) == HOTEL


@pytest.mark.parametrize("path", ["/api/docs/", "/api/schema/", "/api/v1/auth/token/", "/admin/", "/healthz"])
def test_public_paths_need_no_scope(path):
    _, resp = _process(path, AnonymousUser())
    assert resp is None


def test_anonymous_passes_through_to_drf():
    _, resp = _process("/api/v1/addons/", AnonymousUser())
    assert resp is None
