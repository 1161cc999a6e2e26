from decimal import Decimal

import pytest

from hb_core.rates.models import Currency, TaxRate
from hb_core.rates.registry import ModelCurrencyTable, ModelTaxCatalog

pytestmark = pytest.mark.django_db


def test_currency_codes_are_normalized_and_active_only(currencies):
    Currency.objects.create(code=" gbp ", name="Pound Sterling", is_active=False)

    assert Currency.objects.filter(code="GBP").exists()
    assert ModelCurrencyTable().list_codes() == ["EUR", "LKR", "USD"]


def test_tax_catalog_keeps_order_and_drops_unknown(taxes):
    TaxRate.objects.create(code="OLD", name="Retired levy", rate_percent=Decimal("1.00"), is_active=False)

    rates = ModelTaxCatalog().get(["SC", "NOPE", "VAT", "OLD", "SC"])
    assert [(r.id, r.rate_percent) for r in rates] == [("SC", Decimal("2.00")), ("VAT", Decimal("10.00"))]
    assert ModelTaxCatalog().get([]) == []
