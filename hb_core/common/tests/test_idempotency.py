from datetime import timedelta

import pytest
from django.contrib.auth.models import User
from django.test import RequestFactory
from django.utils import timezone

from hb_core.common import idempotency
from hb_core.common.errors import ValidationError
from hb_core.common.models import IdempotencyRecord

pytestmark = pytest.mark.django_db

PATH = "/api/v1/order-drafts/x/submit/"


def _request(key=None):
    headers = {"HTTP_IDEMPOTENCY_KEY": key} if key is not None else {}
    req = RequestFactory().post(PATH, **headers)
    req.user = User.objects.get_or_create(username="cashier")[0]
    return req


def test_no_header_means_no_key(hotel_id):
    assert idempotency.key_for(_request(), hotel_id) is None
    assert idempotency.key_for(_request("   "), hotel_id) is None
    assert idempotency.replay(None) is None


def test_overlong_key_is_rejected(hotel_id):
    with pytest.raises(ValidationError):
        idempotency.key_for(_request("k" * 300), hotel_id)


def test_remember_then_replay(hotel_id, other_hotel_id):
    ident = idempotency.key_for(_request("submit-1"), hotel_id)
    idempotency.remember(ident, {"ok": True}, 200)
    idempotency.remember(ident, {"ok": False}, 200)

    stored = idempotency.replay(ident)
    assert (stored.status_code, stored.data) == (200, {"ok": True})

    # same key under another hotel is a different request
    assert idempotency.replay(idempotency.key_for(_request("submit-1"), other_hotel_id)) is None


def test_expired_keys_are_not_replayed(hotel_id, settings):
    settings.COMMON_IDEMPOTENCY_TTL_HOURS = 1
    ident = idempotency.key_for(_request("old"), hotel_id)
    idempotency.remember(ident, {"ok": True})
    IdempotencyRecord.objects.update(created_at=timezone.now() - timedelta(hours=2))

    assert idempotency.replay(ident) is None

    idempotency.remember(ident, {"ok": "again"})
    assert idempotency.replay(ident).data == {"ok": "again"}
