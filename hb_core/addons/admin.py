from django.contrib import admin

from hb_core.addons.models import ReservationServiceAddon


@admin.register(ReservationServiceAddon)
class ReservationServiceAddonAdmin(admin.ModelAdmin):
    list_display = (
        "payer_ref",
        "service_name",
        "quantity",
        "unit_price",
        "currency",
        "total_price",
        "billing_method",
        "status",
        "is_invoiced",
        "deleted_at",
    )
    list_filter = ("hotel_id", "billing_method", "status", "is_invoiced")
    search_fields = ("payer_ref", "guest_name", "service_name", "room_no")
    readonly_fields = (
        "service_id",
        "service_name",
        "unit_type",
        "unit_price",
        "currency",
        "tax_ids",
        "total_price",
        "is_invoiced",
        "invoice_ref",
        "invoiced_at",
        "created_at",
        "updated_at",
    )
    ordering = ("-created_at",)
