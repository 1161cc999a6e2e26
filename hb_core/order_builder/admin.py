from django.contrib import admin

from hb_core.order_builder.models import OrderDraft


@admin.register(OrderDraft)
class OrderDraftAdmin(admin.ModelAdmin):
    list_display = ("id", "step", "status", "operator", "payer_ref", "hotel_id", "updated_at")
    list_filter = ("hotel_id", "status", "step")
    search_fields = ("payer_ref", "operator")
    readonly_fields = ("state",)
