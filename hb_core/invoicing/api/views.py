from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.response import Response

from hb_core.addons.models import ReservationServiceAddon
from hb_core.common.api.helpers import HOTEL_HEADER, uuid_or_400
from hb_core.common.api.pagination import paginate
from hb_core.common.permissions import InvoicePermission
from hb_core.common.scope import require_scope
from hb_core.invoicing.api.serializers import DerivedInvoiceSerializer
from hb_core.invoicing.services import InvoiceDeriverService


class AddonInvoiceViewSet(viewsets.GenericViewSet):
    """
    Derived invoices (read-only, computed on every request).
    The detail key is the add-on id.
    """
    permission_classes = [InvoicePermission]
    serializer_class = DerivedInvoiceSerializer
    queryset = ReservationServiceAddon.objects.none()

    @extend_schema(
        tags=["Invoicing"],
        responses={200: DerivedInvoiceSerializer(many=True)},
        parameters=[
            HOTEL_HEADER,
            OpenApiParameter(
                name="status",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Derived status: Pending / Paid / Posted / Voided.",
            ),
            OpenApiParameter(
                name="billing_method", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False
            ),
            OpenApiParameter(
                name="search",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Invoice number, guest name or service name.",
            ),
        ],
    )
    def list(self, request):
        scope = require_scope(request)
        rows = InvoiceDeriverService.list_invoices(
            hotel_id=scope.hotel_id,
            status=request.query_params.get("status") or None,
            billing_method=request.query_params.get("billing_method") or None,
            search=request.query_params.get("search") or None,
        )
        return paginate(request, rows, DerivedInvoiceSerializer)

    @extend_schema(tags=["Invoicing"], responses={200: DerivedInvoiceSerializer}, parameters=[HOTEL_HEADER])
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        inv = InvoiceDeriverService.derive_for_addon(hotel_id=scope.hotel_id, addon_id=uuid_or_400(pk))
        return Response(DerivedInvoiceSerializer(inv).data, status=status.HTTP_200_OK)
