# hb_core/audit/subscribers.py
from __future__ import annotations

from uuid import UUID

from hb_core.audit.services import AuditService
from hb_core.common.events import subscribe

_IDS = ("hotel_id", "addon_id", "item_id", "actor")


def _metadata(payload: dict) -> dict:
    return {k: v for k, v in payload.items() if k not in _IDS}


def _log_addon(event_code: str, payload: dict) -> None:
    AuditService.log(
        event_code=event_code,
        entity_type="ReservationServiceAddon",
        entity_id=UUID(payload["addon_id"]),
        hotel_id=UUID(payload["hotel_id"]),
        actor=payload.get("actor") or "",
        metadata=_metadata(payload),
    )


def _log_catalog(event_code: str, payload: dict) -> None:
    AuditService.log(
        event_code=event_code,
        entity_type="ServiceItem",
        entity_id=UUID(payload["item_id"]),
        hotel_id=UUID(payload["hotel_id"]),
        actor=payload.get("actor") or "",
        metadata=_metadata(payload),
    )


# -------------------------
# Order store
# -------------------------
@subscribe("addon.committed")
def on_addon_committed(payload: dict) -> None:
    _log_addon("addon.committed", payload)


@subscribe("addon.updated")
def on_addon_updated(payload: dict) -> None:
    _log_addon("addon.updated", payload)


@subscribe("addon.deleted")
def on_addon_deleted(payload: dict) -> None:
    _log_addon("addon.deleted", payload)


@subscribe("addon.invoiced")
def on_addon_invoiced(payload: dict) -> None:
    _log_addon("addon.invoiced", payload)


# -------------------------
# Catalog
# -------------------------
@subscribe("catalog.item.created")
def on_item_created(payload: dict) -> None:
    _log_catalog("catalog.item.created", payload)


@subscribe("catalog.item.updated")
def on_item_updated(payload: dict) -> None:
    _log_catalog("catalog.item.updated", payload)


@subscribe("catalog.item.deleted")
def on_item_deleted(payload: dict) -> None:
    _log_catalog("catalog.item.deleted", payload)


@subscribe("catalog.item.restored")
def on_item_restored(payload: dict) -> None:
    _log_catalog("catalog.item.restored", payload)
