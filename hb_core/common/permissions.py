# hb_core/common/permissions.py
"""
Role-based access for the API, resolved from Django auth groups.

Each viewset names a permission class whose `allowed_roles_per_action` maps
DRF action names (including @action method names) to the roles allowed to
call them. ADMIN may call everything. Hotel scope is checked by the views
(require_scope), so a missing header answers 400 rather than 403.
"""
from __future__ import annotations

from typing import FrozenSet

from rest_framework.permissions import SAFE_METHODS, BasePermission

ROLE_ADMIN = "ADMIN"
ROLE_RECEPTION = "RECEPTION"
ROLE_CASHIER = "CASHIER"
ROLE_BILLING = "BILLING"
ROLE_READONLY = "READONLY"

ALL_ROLES = (ROLE_ADMIN, ROLE_RECEPTION, ROLE_CASHIER, ROLE_BILLING, ROLE_READONLY)

_READERS = {ROLE_ADMIN, ROLE_RECEPTION, ROLE_CASHIER, ROLE_BILLING, ROLE_READONLY}
_FRONT_DESK = {ROLE_ADMIN, ROLE_RECEPTION, ROLE_CASHIER}

# action assumed when a view does not set one (plain APIView, schema generation)
_METHOD_ACTIONS = {
    "POST": "create",
    "PUT": "update",
    "PATCH": "partial_update",
    "DELETE": "destroy",
}


def user_roles(user) -> FrozenSet[str]:
    """
    Superusers are ADMIN; an authenticated user with no groups is READONLY.
    """
    if user is None or not user.is_authenticated:
        return frozenset()
    if user.is_superuser:
        return frozenset({ROLE_ADMIN})

    names = frozenset(user.groups.values_list("name", flat=True))
    return names or frozenset({ROLE_READONLY})


class BaseRolePermission(BasePermission):
    message = "You do not have permission to perform this action."

    allowed_roles_per_action = {
        "list": _READERS,
        "retrieve": _READERS,
        "create": {ROLE_ADMIN},
        "update": {ROLE_ADMIN},
        "partial_update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
    }

    @staticmethod
    def _read_action(view) -> str:
        return "retrieve" if "pk" in (getattr(view, "kwargs", None) or {}) else "list"

    def allowed_roles(self, request, view):
        """
        Roles for the view's action. Unmapped safe requests fall back to the
        list/retrieve roles; unmapped writes get None (denied).
        """
        method = request.method.upper()
        action = getattr(view, "action", None)
        if not action:
            action = self._read_action(view) if method in SAFE_METHODS else _METHOD_ACTIONS.get(method)

        allowed = self.allowed_roles_per_action.get(action)
        if allowed is None and method in SAFE_METHODS:
            allowed = self.allowed_roles_per_action.get(self._read_action(view))
        return allowed

    def has_permission(self, request, view) -> bool:
        roles = user_roles(request.user)
        if not roles:
            return False
        if ROLE_ADMIN in roles:
            return True

        allowed = self.allowed_roles(request, view)
        return allowed is not None and bool(roles & allowed)

    def has_object_permission(self, request, view, obj) -> bool:
        return self.has_permission(request, view)


class CatalogPermission(BaseRolePermission):
    """Service catalog maintenance is an admin task; everyone can read."""
    allowed_roles_per_action = {
        "list": _READERS,
        "retrieve": _READERS,
        "quote": _READERS,
        "price_history": _READERS,
        "create": {ROLE_ADMIN},
        "update": {ROLE_ADMIN},
        "destroy": {ROLE_ADMIN},
        "restore": {ROLE_ADMIN},
    }


class AddonPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": _READERS,
        "retrieve": _READERS,
        "total": _READERS,
        "create": _FRONT_DESK,
        "partial_update": _FRONT_DESK,
        "destroy": _FRONT_DESK,
        "mark_invoiced": {ROLE_ADMIN, ROLE_BILLING},
        "invoice": {ROLE_ADMIN, ROLE_BILLING},
    }


class OrderDraftPermission(BaseRolePermission):
    """Every wizard step is a front-desk operation."""
    allowed_roles_per_action = {
        "retrieve": _READERS,
        "preview": _READERS,
        "create": _FRONT_DESK,
        "billing_mode": _FRONT_DESK,
        "customer_lookup": _FRONT_DESK,
        "register_customer": _FRONT_DESK,
        "reservation_lookup": _FRONT_DESK,
        "select_reservation": _FRONT_DESK,
        "reference": _FRONT_DESK,
        "toggle_service": _FRONT_DESK,
        "cart_line": _FRONT_DESK,
        "proceed": _FRONT_DESK,
        "back": _FRONT_DESK,
        "submit": _FRONT_DESK,
        "cancel": _FRONT_DESK,
    }


class InvoicePermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_CASHIER, ROLE_BILLING, ROLE_READONLY},
        "retrieve": {ROLE_ADMIN, ROLE_CASHIER, ROLE_BILLING, ROLE_READONLY},
    }


class AuditPermission(BaseRolePermission):
    allowed_roles_per_action = {
        "list": {ROLE_ADMIN, ROLE_BILLING, ROLE_READONLY},
    }
