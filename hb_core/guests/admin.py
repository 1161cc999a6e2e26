from django.contrib import admin

from hb_core.guests.models import Customer, Reservation


@admin.register(Customer)
class CustomerAdmin(admin.ModelAdmin):
    list_display = ("first_name", "last_name", "identification_number", "email", "phone", "hotel_id")
    search_fields = ("first_name", "last_name", "identification_number", "email")
    list_filter = ("hotel_id",)


@admin.register(Reservation)
class ReservationAdmin(admin.ModelAdmin):
    list_display = ("reservation_no", "customer", "room_no", "check_in", "check_out", "status")
    search_fields = ("reservation_no", "room_no", "customer__identification_number")
    list_filter = ("hotel_id", "status")
