# hb_core/common/scope.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional
from uuid import UUID

from rest_framework.exceptions import ValidationError

MISSING_SCOPE_MSG = "Missing scope header. Provide X-Hotel-Id."
INVALID_SCOPE_MSG = "Invalid X-Hotel-Id header (UUID expected)."


@dataclass(frozen=True)
class Scope:
    hotel_id: UUID


# Preferred header name
HDR_HOTEL = "X-Hotel-Id"

# Legacy variant (kept for compatibility with the desktop client)
HDR_HOTEL_LEGACY = "X-HB-Hotel-Id"


def parse_uuid(value) -> Optional[UUID]:
    try:
        return UUID(str(value))
    except (TypeError, ValueError, AttributeError):
        return None


def get_header(request, name: str) -> Optional[str]:
    """
    request.headers is case-insensitive; fallback to META for pytest/RequestFactory.
    """
    headers = getattr(request, "headers", None)
    if headers is not None:
        v = headers.get(name)
        if v:
            return v

    meta_key = "HTTP_" + name.upper().replace("-", "_")
    return request.META.get(meta_key)


def raw_hotel_header(request) -> Optional[str]:
    return get_header(request, HDR_HOTEL) or get_header(request, HDR_HOTEL_LEGACY)


def require_scope(request) -> Scope:
    """
    Returns the request Scope or raises a 400 ValidationError.

    Prefers the middleware-attached hotel_id; otherwise reads the headers
    (DRF force_authenticate bypasses middleware in tests).
    """
    hotel_id = parse_uuid(getattr(request, "hotel_id", None)) if getattr(request, "hotel_id", None) else None
    if hotel_id:
        return Scope(hotel_id=hotel_id)

    raw = raw_hotel_header(request)
    if not raw:
        raise ValidationError({"detail": MISSING_SCOPE_MSG})

    hotel_id = parse_uuid(raw)
    if not hotel_id:
        raise ValidationError({"detail": INVALID_SCOPE_MSG})

    # Attach for downstream consistency
    request.hotel_id = hotel_id
    request.scope = Scope(hotel_id=hotel_id)
    return request.scope
