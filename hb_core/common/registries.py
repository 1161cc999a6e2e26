# hb_core/common/registries.py
"""
Collaborators the add-on core consumes but does not own.

The core only talks to these protocols. Default implementations are backed by
the guests/rates Django models; a deployment can point HB_ADDONS at its own
classes (e.g. a PMS client) without touching the services.
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import Any, Iterable, Mapping, Optional, Protocol
from uuid import UUID

from django.utils.module_loading import import_string

from hb_core.common.conf import addon_setting


class RegistryError(Exception):
    """
    Raised by a registry adapter when its backing store cannot answer.
    Lookups record it as a failed lookup; commits surface it as
    UpstreamUnavailableError.
    """


@dataclass(frozen=True)
class CustomerRecord:
    id: UUID
    name: str
    identification_number: str = ""
    email: str = ""
    phone: str = ""


@dataclass(frozen=True)
class ReservationRecord:
    id: UUID
    reservation_no: str
    customer_id: Optional[UUID]
    guest_name: str
    room_no: str
    check_in: Optional[date]
    check_out: Optional[date]
    identification_number: str = ""


@dataclass(frozen=True)
class TaxRateRecord:
    id: str
    name: str
    rate_percent: Decimal


class CustomerRegistry(Protocol):
    def get(self, *, hotel_id: UUID, customer_id: UUID) -> Optional[CustomerRecord]: ...

    def find_by_identification(self, *, hotel_id: UUID, identification_number: str) -> Optional[CustomerRecord]: ...

    def create(self, *, hotel_id: UUID, data: Mapping[str, Any]) -> CustomerRecord: ...


class ReservationRegistry(Protocol):
    def get(self, *, hotel_id: UUID, reservation_id: UUID) -> Optional[ReservationRecord]: ...

    def find_by_room_or_reference(self, *, hotel_id: UUID, query: str) -> list[ReservationRecord]: ...


class CurrencyTable(Protocol):
    def list_codes(self) -> list[str]: ...


class TaxCatalog(Protocol):
    def get(self, ids: Iterable[str]) -> list[TaxRateRecord]: ...


def _load(setting_name: str):
    return import_string(addon_setting(setting_name))()


def get_customer_registry() -> CustomerRegistry:
    return _load("CUSTOMER_REGISTRY")


def get_reservation_registry() -> ReservationRegistry:
    return _load("RESERVATION_REGISTRY")


def get_currency_table() -> CurrencyTable:
    return _load("CURRENCY_TABLE")


def get_tax_catalog() -> TaxCatalog:
    return _load("TAX_CATALOG")
