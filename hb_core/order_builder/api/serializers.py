# hb_core/order_builder/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hb_core.addons.api.serializers import AddonSerializer
from hb_core.addons.models import AddonStatus, BillingMethod
from hb_core.order_builder.models import OrderDraft


class OrderDraftSerializer(serializers.ModelSerializer):
    class Meta:
        model = OrderDraft
        fields = [
            "id",
            "hotel_id",
            "operator",
            "step",
            "status",
            "state",
            "payer_ref",
            "submitted_at",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class BillingModeSerializer(serializers.Serializer):
    billing_method = serializers.ChoiceField(choices=BillingMethod.choices)


class CustomerLookupSerializer(serializers.Serializer):
    identification_number = serializers.CharField(max_length=64, allow_blank=True)


class CustomerRegistrationSerializer(serializers.Serializer):
    """
    Required fields (first_name, email, phone) are checked by the workflow
    so the error is attached to the draft like any other rejection.
    """
    first_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    last_name = serializers.CharField(max_length=150, required=False, allow_blank=True)
    email = serializers.CharField(max_length=254, required=False, allow_blank=True)
    phone = serializers.CharField(max_length=32, required=False, allow_blank=True)
    identification_number = serializers.CharField(max_length=64, required=False, allow_blank=True)
    nationality = serializers.CharField(max_length=64, required=False, allow_blank=True)
    address = serializers.CharField(max_length=255, required=False, allow_blank=True)
    city = serializers.CharField(max_length=100, required=False, allow_blank=True)
    country = serializers.CharField(max_length=100, required=False, allow_blank=True)


class ReservationLookupSerializer(serializers.Serializer):
    query = serializers.CharField(max_length=64, allow_blank=True)


class SelectReservationSerializer(serializers.Serializer):
    reservation_id = serializers.UUIDField()


class ReferenceSerializer(serializers.Serializer):
    reference_no = serializers.CharField(max_length=64, allow_blank=True)


class ToggleServiceSerializer(serializers.Serializer):
    service_id = serializers.UUIDField()
    currency = serializers.CharField(max_length=3, required=False, allow_blank=True)
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    service_date = serializers.DateField(required=False)
    service_time = serializers.TimeField(required=False)
    status = serializers.ChoiceField(choices=AddonStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class CartLineSerializer(serializers.Serializer):
    """
    service_id selects the line; every other field present is a change.
    """
    service_id = serializers.UUIDField()
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    service_date = serializers.DateField(required=False)
    service_time = serializers.TimeField(required=False)
    status = serializers.ChoiceField(choices=AddonStatus.choices, required=False)
    notes = serializers.CharField(required=False, allow_blank=True)


class PreviewLineSerializer(serializers.Serializer):
    service_id = serializers.UUIDField()
    service_name = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2)
    currency = serializers.CharField(allow_blank=True)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, allow_null=True)
    line_total = serializers.DecimalField(max_digits=14, decimal_places=2, allow_null=True)
    available = serializers.BooleanField()
    reason = serializers.CharField(allow_blank=True)


class PreviewSerializer(serializers.Serializer):
    lines = PreviewLineSerializer(many=True)
    totals = serializers.DictField(child=serializers.DecimalField(max_digits=14, decimal_places=2))


class LineFailureSerializer(serializers.Serializer):
    service_id = serializers.UUIDField()
    service_name = serializers.CharField(allow_blank=True)
    code = serializers.CharField()
    message = serializers.CharField()


class SubmissionResultSerializer(serializers.Serializer):
    payer_ref = serializers.CharField()
    committed = AddonSerializer(many=True)
    failures = LineFailureSerializer(many=True)


class SubmitResponseSerializer(serializers.Serializer):
    draft = OrderDraftSerializer()
    result = SubmissionResultSerializer(allow_null=True)
