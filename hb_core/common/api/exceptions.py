# hb_core/common/api/exceptions.py
"""
Single error envelope for every API failure:

    {"error": {"code", "message", "details", "request_id"}}

The same builder is used by HotelScopeMiddleware, which answers before DRF runs.
"""
from __future__ import annotations

import logging
import uuid
from typing import Any

from django.core.exceptions import ValidationError as DjangoValidationError
from django.http import Http404
from rest_framework import status
from rest_framework.exceptions import APIException, NotAuthenticated, PermissionDenied
from rest_framework.exceptions import ValidationError as DRFValidationError
from rest_framework.response import Response
from rest_framework.views import exception_handler as drf_exception_handler

from hb_core.common.errors import plain_details

logger = logging.getLogger(__name__)

REQUEST_ID_HEADER = "X-Request-ID"
FALLBACK_MESSAGE = "Request failed."


def ensure_request_id(request) -> str:
    """
    Reuse the caller's X-Request-ID when sent, otherwise mint one and keep
    it on the request so middleware and handler report the same id.
    """
    if request is None:
        return uuid.uuid4().hex

    rid = getattr(request, "request_id", None)
    if not rid:
        rid = request.META.get("HTTP_X_REQUEST_ID") or uuid.uuid4().hex
        request.request_id = rid
    return rid


def build_error_envelope(*, request=None, code: str, message: str, details: Any = None) -> dict[str, Any]:
    return {
        "error": {
            "code": code,
            "message": message,
            "details": details,
            "request_id": ensure_request_id(request),
        }
    }


def _as_drf(exc: Exception) -> Exception:
    # model-level clean() errors surface as 400s like serializer errors
    if isinstance(exc, DjangoValidationError):
        if hasattr(exc, "message_dict"):
            return DRFValidationError(exc.message_dict)
        return DRFValidationError(exc.messages)
    return exc


def _code_for(exc: Exception, http_status: int) -> str:
    if isinstance(exc, DRFValidationError):
        return "validation_error"
    if isinstance(exc, NotAuthenticated):
        return "not_authenticated"
    if isinstance(exc, PermissionDenied):
        return "permission_denied"
    if isinstance(exc, Http404):
        return "not_found"
    if isinstance(exc, APIException):
        return exc.default_code or "api_error"
    return "server_error" if http_status >= 500 else "error"


def _split(data: Any) -> tuple[str, Any]:
    """
    Pick the human message out of DRF's error payload; the rest becomes details.
      {"detail": m}            -> m, None
      {"detail": m, **rest}    -> m, rest
      [m]                      -> m, None
      {field: msg, ...}        -> "Request failed.", {field: msg, ...}
    """
    if isinstance(data, dict) and "detail" in data:
        msg = data["detail"]
        if isinstance(msg, list) and len(msg) == 1:
            msg = msg[0]
        rest = {k: v for k, v in data.items() if k != "detail"}
        return str(msg), (plain_details(rest) if rest else None)
    if isinstance(data, list) and len(data) == 1:
        return str(data[0]), None
    return FALLBACK_MESSAGE, plain_details(data)


def api_exception_handler(exc: Exception, context: dict[str, Any]):
    request = context.get("request")
    exc = _as_drf(exc)
    response = drf_exception_handler(exc, context)

    if response is None:
        rid = ensure_request_id(request)
        logger.exception("unhandled API error request_id=%s", rid, exc_info=exc)
        return Response(
            build_error_envelope(request=request, code="server_error", message="Unexpected server error."),
            status=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers={REQUEST_ID_HEADER: rid},
        )

    code = _code_for(exc, response.status_code)
    message, details = _split(response.data)
    if response.status_code == status.HTTP_409_CONFLICT:
        logger.info("conflict %s: %s", code, message)

    headers = dict(response.headers)
    headers[REQUEST_ID_HEADER] = ensure_request_id(request)
    return Response(
        build_error_envelope(request=request, code=code, message=message, details=details),
        status=response.status_code,
        headers=headers,
    )
