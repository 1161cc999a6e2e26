from __future__ import annotations

from typing import Iterable

from hb_core.common.registries import TaxRateRecord
from hb_core.rates.models import Currency, TaxRate


class ModelCurrencyTable:
    def list_codes(self) -> list[str]:
        return list(Currency.objects.filter(is_active=True).order_by("code").values_list("code", flat=True))


class ModelTaxCatalog:
    def get(self, ids: Iterable[str]) -> list[TaxRateRecord]:
        wanted = [str(i) for i in ids]
        if not wanted:
            return []

        by_code = {t.code: t for t in TaxRate.objects.filter(code__in=wanted, is_active=True)}

        # keep caller order, drop unknown ids
        return [
            TaxRateRecord(id=t.code, name=t.name, rate_percent=t.rate_percent)
            for t in (by_code.get(code) for code in dict.fromkeys(wanted))
            if t is not None
        ]
