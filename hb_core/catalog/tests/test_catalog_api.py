import pytest

from hb_core.tests.helpers import scoped

pytestmark = pytest.mark.django_db

URL = "/api/v1/catalog/items/"


def test_create_list_retrieve(api_client, hotel_id, currencies, taxes):
    c = api_client.post(
        URL,
        {
            "service_name": "Airport Transfer",
            "unit_type": "Trip",
            "pricing": [{"currency": "LKR", "amount": "3000"}, {"currency": "", "amount": ""}],
            "tax_ids": ["VAT"],
        },
        format="json",
        **scoped(hotel_id),
    )
    assert c.status_code == 201, c.data
    assert c.data["status"] == "Active"
    assert c.data["created_by"] == "frontdesk"
    assert c.data["primary_price"] == {"currency": "LKR", "amount": "3000.00"}

    r = api_client.get(f"{URL}{c.data['id']}/", **scoped(hotel_id))
    assert r.status_code == 200, r.data
    assert r.data["service_name"] == "Airport Transfer"

    lst = api_client.get(URL, **scoped(hotel_id))
    assert lst.status_code == 200, lst.data
    assert lst.data["count"] == 1


def test_create_without_price_returns_validation_envelope(api_client, hotel_id, currencies):
    r = api_client.post(
        URL,
        {"service_name": "Laundry", "unit_type": "Piece", "pricing": []},
        format="json",
        **scoped(hotel_id),
    )
    assert r.status_code == 400, r.data
    assert r.data["error"]["code"] == "validation_error"
    assert r.data["error"]["details"]["pricing"] == "Please add at least one currency and price."


def test_soft_delete_restore_and_status_filter(api_client, hotel_id, airport_transfer):
    d = api_client.delete(f"{URL}{airport_transfer.id}/", **scoped(hotel_id))
    assert d.status_code == 200, d.data
    assert d.data["status"] == "Inactive"

    assert api_client.get(URL, **scoped(hotel_id)).data["count"] == 0
    assert api_client.get(URL, {"status": "Inactive"}, **scoped(hotel_id)).data["count"] == 1

    r = api_client.post(f"{URL}{airport_transfer.id}/restore/", **scoped(hotel_id))
    assert r.status_code == 200, r.data
    assert r.data["status"] == "Active"


def test_quote_and_price_history(api_client, hotel_id, airport_transfer):
    q = api_client.get(f"{URL}{airport_transfer.id}/quote/", {"currency": "USD"}, **scoped(hotel_id))
    assert q.status_code == 200, q.data
    assert q.data["unit_price"] == "10.00"

    u = api_client.put(
        f"{URL}{airport_transfer.id}/",
        {
            "service_name": "Airport Transfer",
            "unit_type": "Trip",
            "pricing": [{"currency": "LKR", "amount": "3500"}],
        },
        format="json",
        **scoped(hotel_id),
    )
    assert u.status_code == 200, u.data

    h = api_client.get(f"{URL}{airport_transfer.id}/price-history/", **scoped(hotel_id))
    assert h.status_code == 200, h.data
    assert {row["currency"] for row in h.data} == {"LKR", "USD"}


def test_unknown_item_is_404_envelope(api_client, hotel_id, currencies):
    r = api_client.get(f"{URL}00000000-0000-0000-0000-0000000000ff/", **scoped(hotel_id))
    assert r.status_code == 404, r.data
    assert r.data["error"]["code"] == "not_found"
