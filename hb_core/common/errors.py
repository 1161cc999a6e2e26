# hb_core/common/errors.py
"""
Domain error taxonomy.

Every error is a DRF APIException so services can raise them directly and the
global handler (hb_core.common.api.exceptions.api_exception_handler) renders
them into the standard envelope with a stable `code`.
"""
from __future__ import annotations

from rest_framework import status
from rest_framework.exceptions import APIException
from rest_framework.exceptions import ValidationError as DRFValidationError


class ValidationError(DRFValidationError):
    """
    Missing/invalid field, non-positive quantity or amount, no currency selected.
    Raise with a {field: message} dict so callers know exactly what is wrong.
    """
    default_code = "validation_error"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail, code=code or self.default_code)


class NotFoundError(APIException):
    """
    Unknown service / reservation / customer / addon / draft in this hotel.
    """
    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found."
    default_code = "not_found"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class ConflictError(APIException):
    """
    409: a business rule blocks the action (invoice lock, workflow state).
    """
    status_code = status.HTTP_409_CONFLICT
    default_detail = "Conflict."
    default_code = "conflict"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


class LockedError(ConflictError):
    """
    Mutation attempted on an invoiced addon.
    """
    default_detail = "Invoiced add-ons cannot be changed."
    default_code = "locked"


class StateError(ConflictError):
    """
    Operation attempted out of order in the order workflow
    (empty cart, unresolved payer, terminal draft, wrong step).
    """
    default_detail = "Operation not allowed in the current state."
    default_code = "invalid_state"


class UpstreamUnavailableError(APIException):
    """
    A registry adapter (customer / reservation backend) could not answer.
    """
    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    default_detail = "Upstream registry unavailable."
    default_code = "registry_unavailable"

    def __init__(self, detail=None, code=None):
        super().__init__(detail=detail or self.default_detail, code=code or self.default_code)


DOMAIN_ERRORS = (ValidationError, NotFoundError, LockedError, StateError, UpstreamUnavailableError)


def plain_details(detail):
    """
    Convert DRF ErrorDetail structures to plain JSON-safe python values.
    """
    if isinstance(detail, dict):
        return {str(k): plain_details(v) for k, v in detail.items()}
    if isinstance(detail, (list, tuple)):
        return [plain_details(v) for v in detail]
    return str(detail)


def error_message(exc: APIException) -> str:
    detail = exc.detail
    if isinstance(detail, dict):
        if "detail" in detail:
            return str(detail["detail"])
        return "Request failed."
    if isinstance(detail, list):
        return str(detail[0]) if len(detail) == 1 else "Request failed."
    return str(detail)
