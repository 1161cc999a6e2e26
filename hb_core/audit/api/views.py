# hb_core/audit/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from hb_core.audit.api.serializers import AuditEventSerializer
from hb_core.audit.models import AuditEvent
from hb_core.audit.selectors import list_audit_events
from hb_core.common.api.helpers import HOTEL_HEADER, uuid_or_none
from hb_core.common.permissions import AuditPermission
from hb_core.common.scope import require_scope

DEFAULT_LIMIT = 200
MAX_LIMIT = 500


class AuditEventViewSet(viewsets.GenericViewSet):
    """
    List audit events (scoped, newest first).
    """
    permission_classes = [AuditPermission]
    serializer_class = AuditEventSerializer
    queryset = AuditEvent.objects.none()

    @extend_schema(
        tags=["Audit"],
        responses={200: AuditEventSerializer(many=True)},
        parameters=[
            HOTEL_HEADER,
            OpenApiParameter(
                name="entity_type",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Filter by entity type (ReservationServiceAddon, ServiceItem).",
            ),
            OpenApiParameter(name="entity_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="event_code",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Filter by event code (e.g. addon.invoiced, catalog.item.updated).",
            ),
            OpenApiParameter(name="actor", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="limit",
                type=OpenApiTypes.INT,
                location=OpenApiParameter.QUERY,
                required=False,
                description=f"Max records to return (default {DEFAULT_LIMIT}, max {MAX_LIMIT}).",
            ),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        qs = list_audit_events(
            hotel_id=scope.hotel_id,
            entity_type=request.query_params.get("entity_type") or None,
            entity_id=uuid_or_none(request.query_params.get("entity_id"), "entity_id"),
            event_code=request.query_params.get("event_code") or None,
            actor=request.query_params.get("actor") or None,
        )

        limit = request.query_params.get("limit")
        try:
            limit_n = int(limit) if limit else DEFAULT_LIMIT
        except ValueError:
            limit_n = DEFAULT_LIMIT
        limit_n = max(1, min(limit_n, MAX_LIMIT))

        return Response(AuditEventSerializer(qs[:limit_n], many=True).data, status=status.HTTP_200_OK)
