# hb_core/tests/helpers.py
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group
from rest_framework.test import APIClient


def scoped(hotel_id):
    """
    Scope header for the DRF test client (HTTP_ prefix required).
    """
    return {"HTTP_X_HOTEL_ID": str(hotel_id)}


def client_for(username: str, role: str | None) -> APIClient:
    User = get_user_model()
    u = User.objects.create_user(username=username, password="pass123")
    if role:
        group, _ = Group.objects.get_or_create(name=role)
        u.groups.add(group)
    c = APIClient()
    c.force_authenticate(user=u)
    return c
