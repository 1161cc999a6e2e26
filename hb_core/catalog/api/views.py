from __future__ import annotations

from drf_spectacular.types import OpenApiTypes
from drf_spectacular.utils import OpenApiParameter, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from hb_core.catalog.api.serializers import (
    QuoteSerializer,
    ServiceItemPriceChangeSerializer,
    ServiceItemSerializer,
    ServiceItemWriteSerializer,
)
from hb_core.catalog.models import ServiceItem, ServiceItemStatus
from hb_core.catalog.selectors import get_item, list_items, list_price_changes, quote_item
from hb_core.catalog.services import ServiceCatalogService
from hb_core.common.api.helpers import HOTEL_HEADER, actor_name, uuid_or_400
from hb_core.common.api.pagination import paginate
from hb_core.common.permissions import CatalogPermission
from hb_core.common.scope import require_scope


class ServiceItemViewSet(viewsets.GenericViewSet):
    """
    Service catalog:
    - list/retrieve (status + category filters)
    - create / update (full replace) / destroy (soft)
    - restore, quote, price_history
    """
    permission_classes = [CatalogPermission]
    serializer_class = ServiceItemSerializer
    queryset = ServiceItem.objects.none()

    @extend_schema(
        tags=["Catalog"],
        responses={200: ServiceItemSerializer(many=True)},
        parameters=[
            HOTEL_HEADER,
            OpenApiParameter(
                name="status",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Active (default) or Inactive.",
            ),
            OpenApiParameter(
                name="category",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Reservation / Event. Items of category Both always match.",
            ),
            OpenApiParameter(name="search", type=OpenApiTypes.STR, location=OpenApiParameter.QUERY, required=False),
        ],
    )
    def list(self, request):
        scope = require_scope(request)

        status_q = request.query_params.get("status") or ServiceItemStatus.ACTIVE
        qs = list_items(
            hotel_id=scope.hotel_id,
            status=status_q,
            category=request.query_params.get("category") or None,
            search=request.query_params.get("search") or None,
        )
        return paginate(request, qs, ServiceItemSerializer)

    @extend_schema(tags=["Catalog"], responses={200: ServiceItemSerializer}, parameters=[HOTEL_HEADER])
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        item = get_item(hotel_id=scope.hotel_id, item_id=uuid_or_400(pk))
        return Response(ServiceItemSerializer(item).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Catalog"],
        request=ServiceItemWriteSerializer,
        responses={201: ServiceItemSerializer},
        parameters=[HOTEL_HEADER],
    )
    def create(self, request):
        scope = require_scope(request)

        ser = ServiceItemWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        item = ServiceCatalogService.add_item(
            hotel_id=scope.hotel_id,
            actor=actor_name(request),
            **ser.validated_data,
        )
        return Response(ServiceItemSerializer(item).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        tags=["Catalog"],
        request=ServiceItemWriteSerializer,
        responses={200: ServiceItemSerializer},
        parameters=[HOTEL_HEADER],
    )
    def update(self, request, pk=None):
        scope = require_scope(request)

        ser = ServiceItemWriteSerializer(data=request.data)
        ser.is_valid(raise_exception=True)

        item = ServiceCatalogService.update_item(
            hotel_id=scope.hotel_id,
            item_id=uuid_or_400(pk),
            actor=actor_name(request),
            **ser.validated_data,
        )
        return Response(ServiceItemSerializer(item).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Catalog"], responses={200: ServiceItemSerializer}, parameters=[HOTEL_HEADER])
    def destroy(self, request, pk=None):
        scope = require_scope(request)
        item = ServiceCatalogService.delete_item(
            hotel_id=scope.hotel_id,
            item_id=uuid_or_400(pk),
            actor=actor_name(request),
        )
        return Response(ServiceItemSerializer(item).data, status=status.HTTP_200_OK)

    @extend_schema(tags=["Catalog"], request=None, responses={200: ServiceItemSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="restore")
    def restore(self, request, pk=None):
        scope = require_scope(request)
        item = ServiceCatalogService.restore_item(
            hotel_id=scope.hotel_id,
            item_id=uuid_or_400(pk),
            actor=actor_name(request),
        )
        return Response(ServiceItemSerializer(item).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Catalog"],
        responses={200: QuoteSerializer},
        parameters=[
            HOTEL_HEADER,
            OpenApiParameter(
                name="currency",
                type=OpenApiTypes.STR,
                location=OpenApiParameter.QUERY,
                required=False,
                description="Defaults to the primary price.",
            ),
        ],
    )
    @action(detail=True, methods=["get"], url_path="quote")
    def quote(self, request, pk=None):
        scope = require_scope(request)
        q = quote_item(
            hotel_id=scope.hotel_id,
            item_id=uuid_or_400(pk),
            currency=request.query_params.get("currency") or None,
        )
        return Response(QuoteSerializer(q).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Catalog"],
        responses={200: ServiceItemPriceChangeSerializer(many=True)},
        parameters=[HOTEL_HEADER],
    )
    @action(detail=True, methods=["get"], url_path="price-history")
    def price_history(self, request, pk=None):
        scope = require_scope(request)
        qs = list_price_changes(hotel_id=scope.hotel_id, item_id=uuid_or_400(pk))
        return Response(ServiceItemPriceChangeSerializer(qs, many=True).data, status=status.HTTP_200_OK)
