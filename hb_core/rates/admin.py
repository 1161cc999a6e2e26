from django.contrib import admin

from hb_core.rates.models import Currency, TaxRate


@admin.register(Currency)
class CurrencyAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "is_active")
    list_filter = ("is_active",)


@admin.register(TaxRate)
class TaxRateAdmin(admin.ModelAdmin):
    list_display = ("code", "name", "rate_percent", "is_active")
    list_filter = ("is_active",)
    search_fields = ("code", "name")
