from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from accounts.models import PayoutAccount, User
from properties.models import Property


@pytest.fixture(autouse=True)
def clear_throttle_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    return APIClient()


def _create_user(email: str, role: str, display_name: str) -> User:
    return User.objects.create_user(
        username=email,
        email=email,
        password="password123",
        display_name=display_name,
        role=role,
    )


@pytest.fixture
def owner(db):
    user = _create_user("owner@pgstay.test", User.OWNER, "Priya Owner")
    PayoutAccount.objects.create(owner=user, payee_identifier="priya@upi", payee_name="Priya Owner")
    return user


@pytest.fixture
def tenant(db):
    return _create_user("tenant@pgstay.test", User.TENANT, "Tarun Tenant")


@pytest.fixture
def other_tenant(db):
    return _create_user("other@pgstay.test", User.TENANT, "Olga Other")


@pytest.fixture
def outsider(db):
    return _create_user("outsider@pgstay.test", User.TENANT, "Ollie Outsider")


@pytest.fixture
def pg_property(owner):
    return Property.objects.create(
        owner=owner,
        name="Lakeview PG",
        address="12 Lake Road",
        nightly_rate=Decimal("100.00"),
        capacity=2,
    )


@pytest.fixture
def frozen_today(monkeypatch):
    today = date(2024, 1, 15)
    monkeypatch.setattr(timezone, "localdate", lambda *args, **kwargs: today)
    return today


@pytest.fixture
def stay_dates():
    check_in = timezone.localdate() + timedelta(days=10)
    return check_in, check_in + timedelta(days=2)
