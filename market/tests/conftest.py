from datetime import timedelta
from decimal import Decimal

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient

from market.models import Address, ServiceBooking, ServiceCategory, TaskerService, User


@pytest.fixture(autouse=True)
def _clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client(db):
    return APIClient()


def make_user(email, role='customer', wallet=Decimal('0.00'), **extra):
    return User.objects.create_user(
        username=email.split('@')[0],
        email=email,
        password="Pass1234!",
        role=role,
        wallet_balance=wallet,
        email_verified=True,
        **extra,
    )


@pytest.fixture
def customer(db):
    return make_user("client1@example.com", first_name="Salma", last_name="Idrissi")


@pytest.fixture
def tasker(db):
    return make_user("pro1@example.com", role='tasker', wallet=Decimal('50.00'),
                     first_name="Youssef", last_name="Amrani")


@pytest.fixture
def other_tasker(db):
    return make_user("pro2@example.com", role='tasker', wallet=Decimal('100.00'))


@pytest.fixture
def admin_user(db):
    return make_user("admin@example.com", role='admin', is_staff=True)


@pytest.fixture
def category(db):
    return ServiceCategory.objects.create(
        slug="plumbing", name_en="Plumbing", name_fr="Plomberie", name_ar="سباكة", icon="wrench",
    )


@pytest.fixture
def service(db, tasker, category):
    return TaskerService.objects.create(
        tasker=tasker,
        category=category,
        title="Réparation fuite",
        description="Recherche et réparation de fuite",
        pricing_type="fixed",
        price=Decimal('150.00'),
    )


@pytest.fixture
def address(db, customer):
    return Address.objects.create(
        user=customer, street_address="12 rue Tarik", city="Casablanca", region="Casablanca-Settat",
        is_default=True,
    )


@pytest.fixture
def booking_factory(db, customer, service, address):
    def factory(status='pending', price=Decimal('200.00'), **extra):
        return ServiceBooking.objects.create(
            customer=extra.pop('customer', customer),
            tasker=service.tasker,
            tasker_service=extra.pop('tasker_service', service),
            address=address,
            agreed_price=price,
            status=status,
            **extra,
        )
    return factory


@pytest.fixture
def booking(booking_factory):
    return booking_factory()


@pytest.fixture
def tomorrow():
    return timezone.localdate() + timedelta(days=1)


@pytest.fixture
def customer_client(api_client, customer):
    api_client.force_authenticate(user=customer)
    return api_client


@pytest.fixture
def tasker_client(db, tasker):
    client = APIClient()
    client.force_authenticate(user=tasker)
    return client


@pytest.fixture
def admin_client(db, admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client
