from __future__ import annotations

from rest_framework import serializers


class AuditEntrySerializer(serializers.Serializer):
    action = serializers.CharField()
    actor = serializers.CharField()
    at = serializers.DateTimeField(allow_null=True)


class DerivedInvoiceSerializer(serializers.Serializer):
    """
    Read-only: serializes the DerivedInvoice dataclass.
    """
    invoice_number = serializers.CharField()
    status = serializers.CharField()
    payment_status = serializers.CharField()
    subtotal = serializers.DecimalField(max_digits=14, decimal_places=2)
    tax_rate = serializers.DecimalField(max_digits=6, decimal_places=4)
    tax_amount = serializers.DecimalField(max_digits=14, decimal_places=2)
    total_amount = serializers.DecimalField(max_digits=14, decimal_places=2)

    addon_id = serializers.UUIDField()
    payer_ref = serializers.CharField()
    service_id = serializers.UUIDField()
    service_name = serializers.CharField()
    guest_name = serializers.CharField()
    billing_mode = serializers.CharField()
    quantity = serializers.DecimalField(max_digits=10, decimal_places=2)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    currency = serializers.CharField()

    customer_name = serializers.CharField(allow_null=True)
    room_no = serializers.CharField(allow_null=True)
    reference_number = serializers.CharField(allow_null=True)
    linked_reservation_id = serializers.UUIDField(allow_null=True)

    service_date = serializers.DateField(allow_null=True)
    service_time = serializers.TimeField(allow_null=True)
    invoice_date = serializers.DateTimeField(allow_null=True)
    notes = serializers.CharField(allow_blank=True)
    created_by = serializers.CharField(allow_blank=True)

    paid_at = serializers.DateTimeField(allow_null=True)
    voided_at = serializers.DateTimeField(allow_null=True)
    void_reason = serializers.CharField(allow_null=True)

    audit_log = AuditEntrySerializer(many=True)
