from decimal import Decimal

import pytest

from hb_core.catalog.models import ServiceCategory, ServiceItemPriceChange, ServiceItemStatus
from hb_core.catalog.selectors import list_active, list_inactive, list_items, quote_item
from hb_core.catalog.services import NO_PRICE_MSG, ServiceCatalogService
from hb_core.common.errors import NotFoundError, ValidationError

pytestmark = pytest.mark.django_db


def _add(hotel_id, **overrides):
    kwargs = dict(
        hotel_id=hotel_id,
        service_name="Laundry",
        unit_type="Piece",
        pricing=[{"currency": "LKR", "amount": "250"}],
    )
    kwargs.update(overrides)
    return ServiceCatalogService.add_item(**kwargs)


def test_add_item_is_active_with_prices_in_input_order(hotel_id, currencies):
    item = _add(
        hotel_id,
        pricing=[{"currency": "usd", "amount": "5"}, {"currency": "LKR", "amount": "1500.5"}],
    )

    assert item.status == ServiceItemStatus.ACTIVE
    assert [(p.currency, p.amount) for p in item.price_rows()] == [
        ("USD", Decimal("5.00")),
        ("LKR", Decimal("1500.50")),
    ]
    # base currency wins as the primary price
    assert item.price_for().currency == "LKR"


def test_add_item_requires_at_least_one_price(hotel_id, currencies):
    with pytest.raises(ValidationError) as exc:
        _add(hotel_id, pricing=[{"currency": "", "amount": ""}, {"currency": "", "amount": "0"}])

    assert str(exc.value.detail["pricing"]) == NO_PRICE_MSG


@pytest.mark.parametrize(
    "row, message",
    [
        ({"currency": "LKR", "amount": "0"}, "Amount must be > 0."),
        ({"currency": "LKR", "amount": "-10"}, "Amount must be > 0."),
        ({"currency": "LKR", "amount": "abc"}, "Invalid amount."),
        ({"currency": "", "amount": "100"}, "Currency is required."),
        ({"currency": "JPY", "amount": "100"}, "Unknown currency 'JPY'."),
    ],
)
def test_add_item_rejects_bad_price_rows(hotel_id, currencies, row, message):
    with pytest.raises(ValidationError) as exc:
        _add(hotel_id, pricing=[row])

    assert str(exc.value.detail["pricing[0]"]) == message


def test_add_item_rejects_duplicate_currency(hotel_id, currencies):
    with pytest.raises(ValidationError) as exc:
        _add(hotel_id, pricing=[{"currency": "LKR", "amount": "1"}, {"currency": "lkr", "amount": "2"}])

    assert "pricing[1]" in exc.value.detail


def test_add_item_rejects_unknown_tax(hotel_id, currencies, taxes):
    with pytest.raises(ValidationError) as exc:
        _add(hotel_id, tax_ids=["VAT", "GST"])

    assert "GST" in str(exc.value.detail["tax_ids"])


def test_add_item_requires_name_and_unit(hotel_id, currencies):
    with pytest.raises(ValidationError) as exc:
        _add(hotel_id, service_name=" ", unit_type="")

    assert set(exc.value.detail) == {"service_name", "unit_type"}


def test_update_item_replaces_prices_and_records_history(hotel_id, airport_transfer):
    item = ServiceCatalogService.update_item(
        hotel_id=hotel_id,
        item_id=airport_transfer.id,
        service_name="Airport Transfer",
        unit_type="Trip",
        pricing=[{"currency": "LKR", "amount": "3500"}, {"currency": "EUR", "amount": "12"}],
        tax_ids=["VAT"],
        actor="manager",
    )

    assert {p.currency: p.amount for p in item.price_rows()} == {"LKR": Decimal("3500.00"), "EUR": Decimal("12.00")}
    assert item.tax_ids == ["VAT"]
    assert item.updated_by == "manager"

    changes = {c.currency: c for c in ServiceItemPriceChange.objects.filter(item_id=item.id)}
    assert set(changes) == {"LKR", "USD"}
    assert changes["LKR"].old_amount == Decimal("3000.00")
    assert changes["LKR"].new_amount == Decimal("3500.00")
    assert changes["USD"].new_amount is None  # removed from the price list
    assert changes["LKR"].changed_by == "manager"


def test_update_item_without_price_change_records_no_history(hotel_id, airport_transfer):
    ServiceCatalogService.update_item(
        hotel_id=hotel_id,
        item_id=airport_transfer.id,
        service_name="Airport Transfer (VIP)",
        unit_type="Trip",
        pricing=[{"currency": "LKR", "amount": "3000"}, {"currency": "USD", "amount": "10"}],
    )

    assert not ServiceItemPriceChange.objects.filter(item_id=airport_transfer.id).exists()


def test_update_item_validation_failure_leaves_item_unchanged(hotel_id, airport_transfer):
    with pytest.raises(ValidationError):
        ServiceCatalogService.update_item(
            hotel_id=hotel_id,
            item_id=airport_transfer.id,
            service_name="Renamed",
            unit_type="Trip",
            pricing=[],
        )

    airport_transfer.refresh_from_db()
    assert airport_transfer.service_name == "Airport Transfer"
    assert airport_transfer.prices.count() == 2


def test_delete_and_restore_are_idempotent(hotel_id, airport_transfer):
    item = ServiceCatalogService.delete_item(hotel_id=hotel_id, item_id=airport_transfer.id, actor="admin")
    assert item.status == ServiceItemStatus.INACTIVE
    assert item.deleted_at is not None
    assert item.deleted_by == "admin"

    again = ServiceCatalogService.delete_item(hotel_id=hotel_id, item_id=airport_transfer.id)
    assert again.deleted_at == item.deleted_at

    assert list(list_active(hotel_id=hotel_id)) == []
    assert [i.id for i in list_inactive(hotel_id=hotel_id)] == [airport_transfer.id]

    restored = ServiceCatalogService.restore_item(hotel_id=hotel_id, item_id=airport_transfer.id)
    assert restored.status == ServiceItemStatus.ACTIVE
    assert restored.deleted_at is None


def test_inactive_item_cannot_be_quoted(hotel_id, airport_transfer):
    ServiceCatalogService.delete_item(hotel_id=hotel_id, item_id=airport_transfer.id)

    with pytest.raises(NotFoundError):
        quote_item(hotel_id=hotel_id, item_id=airport_transfer.id)


def test_quote_in_currency(hotel_id, airport_transfer):
    q = quote_item(hotel_id=hotel_id, item_id=airport_transfer.id, currency="usd")
    assert (q.currency, q.unit_price) == ("USD", Decimal("10.00"))
    assert q.tax_ids == ("VAT", "SC")

    with pytest.raises(ValidationError):
        quote_item(hotel_id=hotel_id, item_id=airport_transfer.id, currency="EUR")


def test_category_filter_includes_both(hotel_id, currencies):
    _add(hotel_id, service_name="Room Service", category=ServiceCategory.RESERVATION)
    _add(hotel_id, service_name="Stage Lighting", category=ServiceCategory.EVENT)
    _add(hotel_id, service_name="Photography", category=ServiceCategory.BOTH)

    names = [i.service_name for i in list_items(hotel_id=hotel_id, category=ServiceCategory.EVENT)]
    assert names == ["Photography", "Stage Lighting"]


def test_items_are_hotel_scoped(hotel_id, other_hotel_id, airport_transfer):
    assert list(list_items(hotel_id=other_hotel_id)) == []

    with pytest.raises(NotFoundError):
        ServiceCatalogService.delete_item(hotel_id=other_hotel_id, item_id=airport_transfer.id)
