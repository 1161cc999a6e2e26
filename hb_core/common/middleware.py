from __future__ import annotations

from django.http import JsonResponse
from django.utils.deprecation import MiddlewareMixin

from hb_core.common.api.exceptions import build_error_envelope
from hb_core.common.scope import (
    INVALID_SCOPE_MSG,
    MISSING_SCOPE_MSG,
    Scope,
    parse_uuid,
    raw_hotel_header,
)


class HotelScopeMiddleware(MiddlewareMixin):
    """
    Enforces hotel scope for API requests.

    Behavior:
      - Enforced for /api/v1/*.
      - Docs/schema/admin and token endpoints: public.
      - Unauthenticated requests pass through (DRF answers 401).
      - Missing or invalid X-Hotel-Id -> 400 error envelope.
      - On success -> attaches request.scope and request.hotel_id
    """

    ENFORCED_PREFIXES = ("/api/v1/",)

    PUBLIC_PATH_PREFIXES = (
        "/admin/",
        "/api/docs/",
        "/api/schema/",
        "/api/v1/auth/",
    )

    ALLOW_NO_SCOPE_EXACT_PATHS = ("/api/v1/",)

    def _json_error(self, request, *, status_code: int, code: str, message: str) -> JsonResponse:
        return JsonResponse(
            build_error_envelope(request=request, code=code, message=message, details=None),
            status=status_code,
        )

    def process_request(self, request):
        request.scope = None
        request.hotel_id = None

        path = getattr(request, "path", "") or ""

        if any(path.startswith(p) for p in self.PUBLIC_PATH_PREFIXES):
            return None
        if not any(path.startswith(p) for p in self.ENFORCED_PREFIXES):
            return None
        if path in self.ALLOW_NO_SCOPE_EXACT_PATHS:
            return None

        user = getattr(request, "user", None)
        if not user or not user.is_authenticated:
            return None

        raw = raw_hotel_header(request)
        if not raw:
            return self._json_error(request, status_code=400, code="validation_error", message=MISSING_SCOPE_MSG)

        hotel_id = parse_uuid(raw)
        if not hotel_id:
            return self._json_error(request, status_code=400, code="validation_error", message=INVALID_SCOPE_MSG)

        request.scope = Scope(hotel_id=hotel_id)
        request.hotel_id = hotel_id
        return None
