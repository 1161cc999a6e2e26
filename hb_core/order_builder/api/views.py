# hb_core/order_builder/api/views.py
from __future__ import annotations

from drf_spectacular.utils import extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from hb_core.common import idempotency
from hb_core.common.api.helpers import HOTEL_HEADER, IDEMPOTENCY_HEADER, actor_name, uuid_or_400
from hb_core.common.permissions import OrderDraftPermission
from hb_core.common.scope import require_scope
from hb_core.order_builder import transitions as T
from hb_core.order_builder.api.serializers import (
    BillingModeSerializer,
    CartLineSerializer,
    CustomerLookupSerializer,
    CustomerRegistrationSerializer,
    OrderDraftSerializer,
    PreviewSerializer,
    ReferenceSerializer,
    ReservationLookupSerializer,
    SelectReservationSerializer,
    SubmitResponseSerializer,
    ToggleServiceSerializer,
)
from hb_core.order_builder.models import OrderDraft
from hb_core.order_builder.services import OrderBuilderService, OrderDraftService


class OrderDraftViewSet(viewsets.GenericViewSet):
    """
    Order wizard sessions.

    Each action applies one operation to the draft and returns the draft
    (its `state` is the current step with cart, payer and last error).
    Rejected operations return the error envelope; the error is also kept
    on the draft's current step.
    Submit is idempotent per Idempotency-Key.
    """
    permission_classes = [OrderDraftPermission]
    serializer_class = OrderDraftSerializer
    queryset = OrderDraft.objects.none()

    def _apply(self, request, pk, op):
        scope = require_scope(request)
        draft = OrderDraftService.apply(hotel_id=scope.hotel_id, draft_id=uuid_or_400(pk), op=op)
        return Response(OrderDraftSerializer(draft).data, status=status.HTTP_200_OK)

    @staticmethod
    def _validated(serializer_class, request) -> dict:
        ser = serializer_class(data=request.data)
        ser.is_valid(raise_exception=True)
        return ser.validated_data

    @extend_schema(tags=["Order Builder"], request=None, responses={201: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    def create(self, request):
        scope = require_scope(request)
        draft = OrderDraftService.start(hotel_id=scope.hotel_id, operator=actor_name(request))
        return Response(OrderDraftSerializer(draft).data, status=status.HTTP_201_CREATED)

    @extend_schema(tags=["Order Builder"], responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    def retrieve(self, request, pk=None):
        scope = require_scope(request)
        draft = OrderDraftService.get(hotel_id=scope.hotel_id, draft_id=uuid_or_400(pk))
        return Response(OrderDraftSerializer(draft).data, status=status.HTTP_200_OK)

    @extend_schema(
        tags=["Order Builder"],
        responses={200: PreviewSerializer},
        parameters=[HOTEL_HEADER],
        description="Cart priced from the live catalog (may differ from the prices quoted when lines were added).",
    )
    @action(detail=True, methods=["get"], url_path="preview")
    def preview(self, request, pk=None):
        scope = require_scope(request)
        draft = OrderDraftService.get(hotel_id=scope.hotel_id, draft_id=uuid_or_400(pk))
        preview = OrderBuilderService.preview_total(hotel_id=scope.hotel_id, state=OrderDraftService.state_of(draft))
        return Response(PreviewSerializer(preview).data, status=status.HTTP_200_OK)

    # -------------------------
    # Payer
    # -------------------------
    @extend_schema(tags=["Order Builder"], request=BillingModeSerializer, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="billing-mode")
    def billing_mode(self, request, pk=None):
        data = self._validated(BillingModeSerializer, request)
        return self._apply(request, pk, lambda s: T.choose_billing_mode(s, data["billing_method"]))

    @extend_schema(tags=["Order Builder"], request=CustomerLookupSerializer, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="customer-lookup")
    def customer_lookup(self, request, pk=None):
        scope = require_scope(request)
        data = self._validated(CustomerLookupSerializer, request)
        return self._apply(
            request,
            pk,
            lambda s: OrderBuilderService.lookup_customer(
                hotel_id=scope.hotel_id, state=s, identification_number=data["identification_number"]
            ),
        )

    @extend_schema(tags=["Order Builder"], request=CustomerRegistrationSerializer, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="register-customer")
    def register_customer(self, request, pk=None):
        scope = require_scope(request)
        data = self._validated(CustomerRegistrationSerializer, request)
        return self._apply(
            request,
            pk,
            lambda s: OrderBuilderService.register_customer(hotel_id=scope.hotel_id, state=s, data=data),
        )

    @extend_schema(tags=["Order Builder"], request=ReservationLookupSerializer, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="reservation-lookup")
    def reservation_lookup(self, request, pk=None):
        scope = require_scope(request)
        data = self._validated(ReservationLookupSerializer, request)
        return self._apply(
            request,
            pk,
            lambda s: OrderBuilderService.lookup_reservation(hotel_id=scope.hotel_id, state=s, query=data["query"]),
        )

    @extend_schema(tags=["Order Builder"], request=SelectReservationSerializer, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="select-reservation")
    def select_reservation(self, request, pk=None):
        data = self._validated(SelectReservationSerializer, request)
        return self._apply(request, pk, lambda s: T.select_reservation(s, data["reservation_id"]))

    @extend_schema(tags=["Order Builder"], request=ReferenceSerializer, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="reference")
    def reference(self, request, pk=None):
        data = self._validated(ReferenceSerializer, request)
        return self._apply(request, pk, lambda s: T.set_reference_no(s, data["reference_no"]))

    # -------------------------
    # Cart
    # -------------------------
    @extend_schema(
        tags=["Order Builder"],
        request=ToggleServiceSerializer,
        responses={200: OrderDraftSerializer},
        parameters=[HOTEL_HEADER],
        description="Adds the service with its current catalog price, or removes it if already in the cart.",
    )
    @action(detail=True, methods=["post"], url_path="toggle-service")
    def toggle_service(self, request, pk=None):
        scope = require_scope(request)
        data = self._validated(ToggleServiceSerializer, request)
        return self._apply(
            request,
            pk,
            lambda s: OrderBuilderService.toggle_service(
                hotel_id=scope.hotel_id,
                state=s,
                service_id=data["service_id"],
                currency=(data.get("currency") or "").upper() or None,
                quantity=data.get("quantity"),
                service_date=data.get("service_date"),
                service_time=data.get("service_time"),
                status=data.get("status"),
                notes=data.get("notes", ""),
            ),
        )

    @extend_schema(tags=["Order Builder"], request=CartLineSerializer, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["patch"], url_path="cart-line")
    def cart_line(self, request, pk=None):
        data = dict(self._validated(CartLineSerializer, request))
        service_id = data.pop("service_id")
        return self._apply(request, pk, lambda s: T.update_cart_line(s, service_id, data))

    # -------------------------
    # Navigation
    # -------------------------
    @extend_schema(tags=["Order Builder"], request=None, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="proceed")
    def proceed(self, request, pk=None):
        return self._apply(request, pk, T.proceed)

    @extend_schema(tags=["Order Builder"], request=None, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="back")
    def back(self, request, pk=None):
        return self._apply(request, pk, T.go_back)

    @extend_schema(tags=["Order Builder"], request=None, responses={200: OrderDraftSerializer}, parameters=[HOTEL_HEADER])
    @action(detail=True, methods=["post"], url_path="cancel")
    def cancel(self, request, pk=None):
        return self._apply(request, pk, T.cancel)

    @extend_schema(
        tags=["Order Builder"],
        request=None,
        responses={200: SubmitResponseSerializer},
        parameters=[HOTEL_HEADER, IDEMPOTENCY_HEADER],
        description="Commits one add-on per cart line. Failed lines are reported in result.failures.",
    )
    @action(detail=True, methods=["post"], url_path="submit")
    def submit(self, request, pk=None):
        scope = require_scope(request)
        draft_id = uuid_or_400(pk)

        ident = idempotency.key_for(request, scope.hotel_id)
        stored = idempotency.replay(ident)
        if stored is not None:
            return Response(stored.data, status=stored.status_code)

        draft, result = OrderDraftService.submit(
            hotel_id=scope.hotel_id,
            draft_id=draft_id,
            actor=actor_name(request),
        )
        out = SubmitResponseSerializer({"draft": draft, "result": result}).data
        idempotency.remember(ident, out, status.HTTP_200_OK)

        return Response(out, status=status.HTTP_200_OK)
