# hb_core/common/idempotency.py
"""
Replay protection for non-repeatable POSTs (order submission).

A request is identified by (hotel, user, method, path, Idempotency-Key).
The first response for that identity is stored; a retry with the same key
gets the stored response back instead of running the operation again.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional
from uuid import UUID

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone

from hb_core.common.errors import ValidationError
from hb_core.common.models import IdempotencyRecord

logger = logging.getLogger(__name__)

HEADER = "HTTP_IDEMPOTENCY_KEY"
MAX_KEY_LENGTH = 255

_LOCK = threading.Lock()
_MEMORY: dict[tuple, tuple[int, Any]] = {}  # single-process dev servers only


@dataclass(frozen=True)
class IdempotencyKey:
    hotel_id: UUID
    user_id: int
    method: str
    path: str
    key: str

    def as_tuple(self) -> tuple:
        return (str(self.hotel_id), self.user_id, self.method, self.path, self.key)


@dataclass(frozen=True)
class StoredResponse:
    status_code: int
    data: Any


def _use_db() -> bool:
    """
    COMMON_IDEMPOTENCY_USE_DB = True keeps keys in IdempotencyRecord, which
    survives restarts and is shared between workers.
    """
    return bool(getattr(settings, "COMMON_IDEMPOTENCY_USE_DB", False))


def _ttl() -> timedelta:
    return timedelta(hours=int(getattr(settings, "COMMON_IDEMPOTENCY_TTL_HOURS", 24)))


def key_for(request, hotel_id: UUID) -> Optional[IdempotencyKey]:
    """
    None when the caller sent no Idempotency-Key.
    """
    raw = (request.META.get(HEADER) or "").strip()
    if not raw:
        return None
    if len(raw) > MAX_KEY_LENGTH:
        raise ValidationError({"Idempotency-Key": f"Must be at most {MAX_KEY_LENGTH} characters."})

    return IdempotencyKey(
        hotel_id=hotel_id,
        user_id=int(request.user.pk),
        method=request.method.upper(),
        path=request.path,
        key=raw,
    )


def replay(ident: Optional[IdempotencyKey]) -> Optional[StoredResponse]:
    if ident is None:
        return None

    if not _use_db():
        with _LOCK:
            hit = _MEMORY.get(ident.as_tuple())
        return None if hit is None else StoredResponse(*hit)

    rec = IdempotencyRecord.objects.filter(
        hotel_id=ident.hotel_id,
        user_id=ident.user_id,
        method=ident.method,
        path=ident.path,
        idempotency_key=ident.key,
        created_at__gte=timezone.now() - _ttl(),
    ).first()
    if rec is None:
        return None

    logger.info("idempotent replay %s %s key=%s", ident.method, ident.path, ident.key)
    return StoredResponse(status_code=rec.status_code, data=rec.response_data)


def remember(ident: Optional[IdempotencyKey], data: Any, status_code: int = 200) -> None:
    if ident is None:
        return

    if not _use_db():
        with _LOCK:
            _MEMORY[ident.as_tuple()] = (status_code, data)
        return

    try:
        with transaction.atomic():
            IdempotencyRecord.objects.filter(
                hotel_id=ident.hotel_id,
                user_id=ident.user_id,
                method=ident.method,
                path=ident.path,
                idempotency_key=ident.key,
                created_at__lt=timezone.now() - _ttl(),
            ).delete()
            IdempotencyRecord.objects.create(
                hotel_id=ident.hotel_id,
                user_id=ident.user_id,
                method=ident.method,
                path=ident.path,
                idempotency_key=ident.key,
                status_code=status_code,
                response_data=data,
            )
    except IntegrityError:
        # a concurrent retry stored it first
        logger.info("idempotency key already stored %s %s key=%s", ident.method, ident.path, ident.key)
