from rest_framework import serializers

from hb_core.audit.models import AuditEvent


class AuditEventSerializer(serializers.ModelSerializer):
    timestamp = serializers.DateTimeField(source="occurred_at", read_only=True)

    class Meta:
        model = AuditEvent
        fields = [
            "id",
            "hotel_id",
            "entity_type",
            "entity_id",
            "event_code",
            "actor",
            "timestamp",
            "metadata",
        ]
        read_only_fields = fields
