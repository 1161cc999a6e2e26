from __future__ import annotations

from uuid import UUID

from drf_spectacular.utils import OpenApiParameter
from rest_framework.exceptions import ValidationError as DRFValidationError

from hb_core.common.scope import HDR_HOTEL

HOTEL_HEADER = OpenApiParameter(name=HDR_HOTEL, location=OpenApiParameter.HEADER, required=True, type=str)
IDEMPOTENCY_HEADER = OpenApiParameter(name="Idempotency-Key", location=OpenApiParameter.HEADER, required=False, type=str)


def uuid_or_none(value: str | None, field_name: str) -> UUID | None:
    if not value:
        return None
    try:
        return UUID(str(value))
    except (TypeError, ValueError):
        raise DRFValidationError({field_name: "Invalid UUID"})


def uuid_or_400(value, field_name: str = "id") -> UUID:
    parsed = uuid_or_none(value, field_name)
    if parsed is None:
        raise DRFValidationError({field_name: "This field is required."})
    return parsed


def actor_name(request) -> str:
    user = getattr(request, "user", None)
    if user is None or not getattr(user, "is_authenticated", False):
        return ""
    return user.get_username()
