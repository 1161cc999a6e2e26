# hb_core/addons/filters.py
import django_filters
from django.db.models import Q

from hb_core.addons.models import AddonStatus, BillingMethod, ReservationServiceAddon


class AddonFilter(django_filters.FilterSet):
    """
    Query-string filters for committed add-on lines.

    ?status=Pending&billing_method=Room&payer_ref=RES-2025-0042
    ?is_invoiced=false&service_date_from=2025-01-01&service_date_to=2025-01-31
    ?search=spa  (guest name, payer reference, service name, room number)
    """
    status = django_filters.ChoiceFilter(choices=AddonStatus.choices)
    billing_method = django_filters.ChoiceFilter(choices=BillingMethod.choices)
    payer_ref = django_filters.CharFilter(field_name="payer_ref", lookup_expr="iexact")
    reservation_id = django_filters.UUIDFilter(field_name="reservation_id")
    service_id = django_filters.UUIDFilter(field_name="service_id")
    is_invoiced = django_filters.BooleanFilter(field_name="is_invoiced")
    service_date_from = django_filters.DateFilter(field_name="service_date", lookup_expr="gte")
    service_date_to = django_filters.DateFilter(field_name="service_date", lookup_expr="lte")
    search = django_filters.CharFilter(method="filter_search")

    class Meta:
        model = ReservationServiceAddon
        fields = [
            "status",
            "billing_method",
            "payer_ref",
            "reservation_id",
            "service_id",
            "is_invoiced",
        ]

    def filter_search(self, queryset, name, value):
        value = (value or "").strip()
        if not value:
            return queryset
        return queryset.filter(
            Q(guest_name__icontains=value)
            | Q(payer_ref__icontains=value)
            | Q(service_name__icontains=value)
            | Q(room_no__iexact=value)
        )
