# hb_core/common/conf.py
from __future__ import annotations

from decimal import Decimal
from typing import Any

from django.conf import settings

DEFAULTS: dict[str, Any] = {
    "BASE_CURRENCY": "LKR",
    "DEFAULT_TAX_RATE": "0.12",
    "CASH_PAYER_PREFIX": "CASH",
    "DEFAULT_SERVICE_TIME": "10:00",
    "CUSTOMER_REGISTRY": "hb_core.guests.registry.ModelCustomerRegistry",
    "RESERVATION_REGISTRY": "hb_core.guests.registry.ModelReservationRegistry",
    "CURRENCY_TABLE": "hb_core.rates.registry.ModelCurrencyTable",
    "TAX_CATALOG": "hb_core.rates.registry.ModelTaxCatalog",
}


def addon_setting(name: str) -> Any:
    """
    Read one key of settings.HB_ADDONS, falling back to DEFAULTS.
    """
    overrides = getattr(settings, "HB_ADDONS", None) or {}
    if name in overrides:
        return overrides[name]
    return DEFAULTS[name]


def base_currency() -> str:
    return str(addon_setting("BASE_CURRENCY")).upper()


def default_tax_rate() -> Decimal:
    return Decimal(str(addon_setting("DEFAULT_TAX_RATE")))
