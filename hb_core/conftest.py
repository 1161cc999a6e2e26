# hb_core/conftest.py
import uuid
from datetime import date
from decimal import Decimal

import pytest
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient

from hb_core.common.permissions import ALL_ROLES, ROLE_ADMIN
from hb_core.guests.models import Customer, Reservation
from hb_core.rates.models import Currency, TaxRate


@pytest.fixture
def hotel_id():
    return uuid.UUID("00000000-0000-0000-0000-000000000001")


@pytest.fixture
def other_hotel_id():
    return uuid.UUID("00000000-0000-0000-0000-000000000002")


@pytest.fixture
def roles(db):
    return {name: Group.objects.get_or_create(name=name)[0] for name in ALL_ROLES}


@pytest.fixture
def user(db, roles):
    """
    Test user in the ADMIN group.
    """
    User = get_user_model()
    user = User.objects.create_user(username="frontdesk", password="testpass", is_active=True)
    user.groups.add(roles[ROLE_ADMIN])
    return user


@pytest.fixture
def api_client(user):
    c = APIClient()
    c.force_authenticate(user=user)
    return c


@pytest.fixture
def currencies(db):
    return [
        Currency.objects.create(code="LKR", name="Sri Lankan Rupee"),
        Currency.objects.create(code="USD", name="US Dollar"),
        Currency.objects.create(code="EUR", name="Euro"),
    ]


@pytest.fixture
def taxes(db):
    return [
        TaxRate.objects.create(code="VAT", name="Value Added Tax", rate_percent=Decimal("10.00")),
        TaxRate.objects.create(code="SC", name="Service Charge", rate_percent=Decimal("2.00")),
    ]


@pytest.fixture
def airport_transfer(hotel_id, currencies, taxes):
    from hb_core.catalog.services import ServiceCatalogService

    return ServiceCatalogService.add_item(
        hotel_id=hotel_id,
        service_name="Airport Transfer",
        unit_type="Trip",
        description="One-way transfer to BIA",
        pricing=[{"currency": "LKR", "amount": "3000"}, {"currency": "USD", "amount": "10"}],
        tax_ids=["VAT", "SC"],
        actor="admin",
    )


@pytest.fixture
def spa_session(hotel_id, currencies):
    from hb_core.catalog.services import ServiceCatalogService

    return ServiceCatalogService.add_item(
        hotel_id=hotel_id,
        service_name="Spa Session",
        unit_type="Hour",
        pricing=[{"currency": "LKR", "amount": "4500"}],
        actor="admin",
    )


@pytest.fixture
def customer(db, hotel_id):
    return Customer.objects.create(
        hotel_id=hotel_id,
        first_name="Nimal",
        last_name="Perera",
        email="nimal@example.com",
        phone="+94771234567",
        identification_number="901234567V",
    )


@pytest.fixture
def reservation(db, hotel_id, customer):
    return Reservation.objects.create(
        hotel_id=hotel_id,
        reservation_no="RES-2025-0042",
        customer=customer,
        room_no="204",
        check_in=date(2025, 3, 1),
        check_out=date(2025, 3, 5),
    )
