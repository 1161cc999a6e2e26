# hb_core/addons/api/views.py
from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response

from hb_core.addons.api.serializers import (
    AddonCreateSerializer,
    AddonInvoiceSerializer,
    AddonPatchSerializer,
    AddonSerializer,
    MarkInvoicedSerializer,
    PayerTotalSerializer,
)
from hb_core.addons.models import ReservationServiceAddon
from hb_core.addons.selectors import get_addon, list_addons, list_for_payer, total_for_payer
from hb_core.addons.services import AddonStoreService
from hb_core.addons.types import CartLine, PayerContext
from hb_core.common.api.helpers import HOTEL_HEADER, actor_name, uuid_or_400
from hb_core.common.api.pagination import paginate
from hb_core.common.permissions import AddonPermission
from hb_core.common.scope import require_scope


class AddonViewSet(viewsets.GenericViewSet):
    """
    Order store (committed add-on lines):
    - list/retrieve, filters via AddonFilter
    - create: direct commit priced from the live catalog
    - partial_update / destroy: blocked once invoiced (409 locked)
    - mark_invoiced (per payer), invoice (per line), total (per payer)
    """
    permission_classes = [AddonPermission]
    serializer_class = AddonSerializer
    queryset = ReservationServiceAddon.objects.none()

    @extend_schema(
        tags=["Add-ons"],
        responses={200: AddonSerializer(many=True)},
        parameters=[
            HOTEL_HEADER,
            OpenApiParameter(name="status", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="billing_method", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False
            ),
            OpenApiParameter(name="payer_ref", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="reservation_id", type=OpenApiTypes.UUID, location=OpenApiParameter.QUERY, required=False
            ),
            OpenApiParameter(name="is_invoiced", type=OpenApiTypes.BOOL, location=OpenApiParameter.QUERY, required=False),
            OpenApiParameter(
                name="search",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Guest name, payer reference, service name or room number.",
            ),
        ],
    )
    def list(self, request):
        scope = require_scope(request)
        qs = list_addons(hotel_id=scope.hotel_id, params=request.query_params)
        return paginate(request, qs, AddonSerializer)

    @extend_schema(tags=["Add-ons"], responses={200: AddonSerializer}, parameters=[HOTEL_HEADER])
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        addon = get_addon(hotel_id=scope.hotel_id, addon_id=uuid_or_400(pk))
        return Response(AddonSerializer(addon).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Add-ons"],
        request=AddonCreateSerializer,
        responses={201: AddonSerializer},
        parameters=[HOTEL_HEADER],
    )
    def create(self, request):
        scope = require_scope(request)

        ser = AddonCreateSerializer(data=request.data)
        ser.is_valid(raise_exception=True)
        data = ser.validated_data

        line = CartLine(
            service_id=data["service_id"],
            quantity=data["quantity"],
            currency=(data.get("currency") or "").upper(),
            service_date=data.get("service_date"),
            service_time=data.get("service_time"),
            status=data["status"],
            notes=data.get("notes", ""),
        )
        payer = PayerContext(
            billing_method=data["billing_method"],
            payer_ref=data.get("payer_ref", ""),
            reservation_id=data.get("reservation_id"),
            customer_id=data.get("customer_id"),
            reference_no=data.get("reference_no", ""),
        )

        addon = AddonStoreService.commit(
            hotel_id=scope.hotel_id,
            line=line,
            payer=payer,
            actor=actor_name(request),
        )
        return Response(AddonSerializer(addon).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Add-ons"],
        request=OpenApiTypes.OBJECT,
        responses={200: AddonSerializer},
        parameters=[HOTEL_HEADER],
        description="Editable: quantity, service_date, service_time, status, notes, reference_no.",
    )
    def partial_update(self, request, pk=None):
        scope = require_scope(request)

        ser = AddonPatchSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        addon = AddonStoreService.update(
            hotel_id=scope.hotel_id,
            addon_id=uuid_or_400(pk),
            patch=ser.validated_data,
            actor=actor_name(request),
        )
        return Response(AddonSerializer(addon).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Add-ons"], responses={204: None}, parameters=[HOTEL_HEADER])
    def destroy(self, request, pk=None):
        scope = require_scope(request)
        AddonStoreService.soft_delete(
            hotel_id=scope.hotel_id,
            addon_id=uuid_or_400(pk),
            actor=actor_name(request),
        )
        return Response(status=status.HTTP_204_NO_CONTENT)

    @extend_schema(
        tags=["Add-ons"],
        request=MarkInvoicedSerializer,
        responses={200: OpenApiTypes.OBJECT},
        parameters=[HOTEL_HEADER],
    )
    @action(detail=False, methods=["post"], url_path="mark-invoiced")
    def mark_invoiced(self, request):
        scope = require_scope(request)

        ser = MarkInvoicedSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        count = AddonStoreService.mark_invoiced(
            hotel_id=scope.hotel_id,
            payer_ref=ser.validated_data["payer_ref"],
            invoice_ref=ser.validated_data["invoice_ref"],
            actor=actor_name(request),
        )
        return Response({"invoiced": count}, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Add-ons"],
        request=AddonInvoiceSerializer,
        responses={200: AddonSerializer},
        parameters=[HOTEL_HEADER],
    )
    @action(detail=True, methods=["post"], url_path="invoice")
    def invoice(self, request, pk=None):
        scope = require_scope(request)

        ser = AddonInvoiceSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        addon = AddonStoreService.mark_addon_invoiced(
            hotel_id=scope.hotel_id,
            addon_id=uuid_or_400(pk),
            invoice_ref=ser.validated_data["invoice_ref"],
            actor=actor_name(request),
        )
        return Response(AddonSerializer(addon).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Add-ons"],
        responses={200: PayerTotalSerializer},
        parameters=[
            HOTEL_HEADER,
            OpenApiParameter(
                name="payer",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=True,
                description="Payer reference (reservation no. / CASH-...) or reservation id.",
            ),
        ],
    )
    @action(detail=False, methods=["get"], url_path="total")
    def total(self, request):
        scope = require_scope(request)

        payer = (request.query_params.get("payer") or "").strip()
        if not payer:
            raise DRFValidationError({"payer": "This field is required."})

        out = {
            "payer": payer,
            "totals": total_for_payer(hotel_id=scope.hotel_id, payer=payer),
            "count": list_for_payer(hotel_id=scope.hotel_id, payer=payer).count(),
        }
        return Response(PayerTotalSerializer(out).data, status=status.HTTP_200_OK)
