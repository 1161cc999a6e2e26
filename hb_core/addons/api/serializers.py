# hb_core/addons/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hb_core.addons.models import AddonStatus, BillingMethod, ReservationServiceAddon


class AddonSerializer(serializers.ModelSerializer):
    class Meta:
        model = ReservationServiceAddon
        fields = [
            "id",
            "payer_ref",
            "reservation_id",
            "customer_id",
            "guest_name",
            "room_no",
            "check_in",
            "check_out",
            "service_id",
            "service_name",
            "unit_type",
            "quantity",
            "unit_price",
            "currency",
            "tax_ids",
            "total_price",
            "service_date",
            "service_time",
            "billing_method",
            "reference_no",
            "notes",
            "status",
            "is_invoiced",
            "invoice_ref",
            "invoiced_at",
            "created_by",
            "created_at",
            "updated_by",
            "updated_at",
        ]
        read_only_fields = fields


class AddonCreateSerializer(serializers.Serializer):
    """
    Direct store commit. No unit_price field: the price is read from the
    catalog at commit time.
    """
    service_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, default="1")
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True, default="")
    service_date = serializers.DateField(required=False, allow_null=True, default=None)
    service_time = serializers.TimeField(required=False, allow_null=True, default=None)
    status = serializers.ChoiceField(choices=AddonStatus.choices, default=AddonStatus.PENDING)
    notes = serializers.CharField(required=False, allow_blank=True, default="")

    billing_method = serializers.ChoiceField(choices=BillingMethod.choices)
    reservation_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    reference_no = serializers.CharField(max_length=128, required=False, allow_blank=True, default="")
    customer_id = serializers.UUIDField(required=False, allow_null=True, default=None)
    payer_ref = serializers.CharField(max_length=64, required=False, allow_blank=True, default="")


class AddonPatchSerializer(serializers.Serializer):
    """
    Accepts any keys; the store rejects non-editable fields by name.
    """

    def to_internal_value(self, data):
        if not isinstance(data, dict):
            raise serializers.ValidationError({"detail": "JSON object expected."})
        return dict(data)


class MarkInvoicedSerializer(serializers.Serializer):
    payer_ref = serializers.CharField(max_length=64)
    invoice_ref = serializers.CharField(max_length=64)


class AddonInvoiceSerializer(serializers.Serializer):
    invoice_ref = serializers.CharField(max_length=64)


class PayerTotalSerializer(serializers.Serializer):
    payer = serializers.CharField()
    totals = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))
    count = serializers.IntegerField()
