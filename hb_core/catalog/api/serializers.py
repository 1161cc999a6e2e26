# hb_core/catalog/api/serializers.py
from __future__ import annotations

from rest_framework import serializers

from hb_core.catalog.models import ServiceCategory, ServiceItem, ServiceItemPrice, ServiceItemPriceChange


class ServiceItemPriceSerializer(serializers.ModelSerializer):
    class Meta:
        model = ServiceItemPrice
        fields = ["currency", "amount"]


class ServiceItemSerializer(serializers.ModelSerializer):
    pricing = ServiceItemPriceSerializer(source="prices", many=True, read_only=True)
    primary_price = serializers.SerializerMethodField()

    class Meta:
        model = ServiceItem
        fields = [
            "id",
            "service_name",
            "description",
            "category",
            "unit_type",
            "pricing",
            "primary_price",
            "tax_ids",
            "status",
            "created_by",
            "created_at",
            "updated_by",
            "updated_at",
            "deleted_by",
            "deleted_at",
        ]
        read_only_fields = fields

    def get_primary_price(self, obj: ServiceItem):
        row = obj.price_for()
        return None if row is None else ServiceItemPriceSerializer(row).data


class PricingRowSerializer(serializers.Serializer):
    # raw values: blank rows are dropped and amounts parsed by the service
    currency = serializers.CharField(required=False, allow_blank=True, default="")
    amount = serializers.CharField(required=False, allow_blank=True, allow_null=True, default=None)


class ServiceItemWriteSerializer(serializers.Serializer):
    service_name = serializers.CharField(max_length=255)
    description = serializers.CharField(required=False, allow_blank=True, default="")
    category = serializers.ChoiceField(choices=ServiceCategory.choices, default=ServiceCategory.RESERVATION)
    unit_type = serializers.CharField(max_length=64)
    pricing = PricingRowSerializer(many=True)
    tax_ids = serializers.ListField(child=serializers.CharField(), required=False, default=list)


class ServiceItemPriceChangeSerializer(serializers.ModelSerializer):
    changed_at = serializers.DateTimeField(source="created_at", read_only=True)

    class Meta:
        model = ServiceItemPriceChange
        fields = ["currency", "old_amount", "new_amount", "changed_by", "changed_at"]
        read_only_fields = fields


class QuoteSerializer(serializers.Serializer):
    service_id = serializers.UUIDField()
    service_name = serializers.CharField()
    description = serializers.CharField()
    unit_type = serializers.CharField()
    currency = serializers.CharField()
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2)
    tax_ids = serializers.ListField(child=serializers.CharField())
