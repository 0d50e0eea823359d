"""Pytest configuration and shared fixtures."""

from datetime import timedelta

import pytest
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient

from seminars import models


@pytest.fixture
def api_client() -> APIClient:
    return APIClient()


@pytest.fixture
def staff_user(db):
    return get_user_model().objects.create_user(username="operator", password="pw")


@pytest.fixture
def admin_user(db):
    return get_user_model().objects.create_user(username="admin", password="pw", is_staff=True)


@pytest.fixture
def super_admin(db):
    return get_user_model().objects.create_superuser(username="root", password="pw")


@pytest.fixture
def seminar_session(db) -> models.Session:
    seminar = models.Seminar.objects.create(title="Python for Finance", slug="python-finance")
    starts_at = timezone.now() + timedelta(days=30)
    return models.Session.objects.create(
        seminar=seminar,
        starts_at=starts_at,
        ends_at=starts_at + timedelta(hours=3),
        capacity=50,
    )


@pytest.fixture
def ticket_type(seminar_session) -> models.TicketType:
    return models.TicketType.objects.create(
        session=seminar_session,
        name="General",
        price=1000,
        tax_rate_percent=10,
        max_per_order=5,
    )


@pytest.fixture
def coupon_row(db) -> models.Coupon:
    now = timezone.now()
    return models.Coupon.objects.create(
        code="SAVE500",
        discount_type=models.Coupon.DiscountType.AMOUNT,
        discount_value=500,
        valid_from=now - timedelta(days=1),
        valid_until=now + timedelta(days=1),
        min_amount=1000,
    )
