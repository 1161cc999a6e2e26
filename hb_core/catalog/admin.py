from django.contrib import admin

from hb_core.catalog.models import ServiceItem, ServiceItemPrice, ServiceItemPriceChange


class ServiceItemPriceInline(admin.TabularInline):
    model = ServiceItemPrice
    extra = 0


class ServiceItemPriceChangeInline(admin.TabularInline):
    model = ServiceItemPriceChange
    extra = 0
    can_delete = False
    readonly_fields = ("currency", "old_amount", "new_amount", "changed_by", "created_at")


@admin.register(ServiceItem)
class ServiceItemAdmin(admin.ModelAdmin):
    list_display = ("service_name", "category", "unit_type", "status", "hotel_id", "updated_at")
    list_filter = ("hotel_id", "status", "category")
    search_fields = ("service_name", "description")
    inlines = [ServiceItemPriceInline, ServiceItemPriceChangeInline]
