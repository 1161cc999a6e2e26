# hb_core/api/urls.py
from __future__ import annotations

from django.urls import include, path
from rest_framework.routers import DefaultRouter
from rest_framework_simplejwt.views import TokenObtainPairView, TokenRefreshView

from hb_core.addons.api.views import AddonViewSet
from hb_core.audit.api.views import AuditEventViewSet
from hb_core.catalog.api.views import ServiceItemViewSet
from hb_core.invoicing.api.views import AddonInvoiceViewSet
from hb_core.order_builder.api.views import OrderDraftViewSet

router = DefaultRouter()

router.register(r"catalog/items", ServiceItemViewSet, basename="catalog-items")
router.register(r"addons", AddonViewSet, basename="addons")
router.register(r"order-drafts", OrderDraftViewSet, basename="order-drafts")
router.register(r"addon-invoices", AddonInvoiceViewSet, basename="addon-invoices")
router.register(r"audit/events", AuditEventViewSet, basename="audit-events")

urlpatterns = [
    # JWT
    path("auth/token/", TokenObtainPairView.as_view(), name="token-obtain"),
    path("auth/token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),

    path("", include(router.urls)),
]
