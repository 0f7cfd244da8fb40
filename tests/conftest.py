import itertools
from decimal import Decimal

import pytest

from rest_framework.test import APIClient

from modules.accounts.constants import Role
from modules.accounts.models import User
from modules.orders.constants import OrderStatus, PaymentMethod
from modules.orders.models import Order, OrderItem
from modules.products.models import Product
from modules.zones.models import DeliveryZone


@pytest.fixture(autouse=True)
def _use_db(db):
    """Automatically use the test database for all tests."""


@pytest.fixture()
def api_client():
    """DRF APIClient for testing API endpoints."""
    return APIClient()


@pytest.fixture()
def api_client_with_correlation(api_client):
    """APIClient pre-configured with a known correlation ID header."""
    cid = "test-correlation-id-fixture"
    api_client.defaults["HTTP_X_REQUEST_ID"] = cid
    return api_client, cid


@pytest.fixture()
def client_for():
    """Build an APIClient authenticated as the given user."""

    def _client(user):
        client = APIClient()
        client.force_authenticate(user=user)
        return client

    return _client


# ---------------------------------------------------------------------------
# Users per role
# ---------------------------------------------------------------------------


@pytest.fixture()
def make_user():
    counter = itertools.count(1)

    def _make(role=Role.USER, **extra):
        n = next(counter)
        username = extra.pop("username", f"{str(role).lower()}{n}")
        return User.objects.create_user(
            username=username,
            email=extra.pop("email", f"{username}@example.com"),
            password="testpass123",
            name=extra.pop("name", f"{str(role).title()} {n}"),
            role=role,
            **extra,
        )

    return _make


@pytest.fixture()
def admin_user(make_user):
    return make_user(Role.ADMIN, username="admin", name="Admin")


@pytest.fixture()
def financial_user(make_user):
    return make_user(Role.FINANCIAL, username="financeiro", name="Financeiro")


@pytest.fixture()
def management_user(make_user):
    return make_user(Role.MANAGEMENT, username="gerencia", name="Gerência")


@pytest.fixture()
def courier(make_user):
    return make_user(Role.DELIVERY, username="entregador", name="Carlos Entregador")


@pytest.fixture()
def customer(make_user):
    return make_user(Role.USER, username="cliente", name="Maria Silva")


# ---------------------------------------------------------------------------
# Catalogue and orders
# ---------------------------------------------------------------------------


@pytest.fixture()
def zone():
    return DeliveryZone.objects.create(
        city="São Paulo", state="SP", delivery_fee=Decimal("15.00")
    )


@pytest.fixture()
def product():
    return Product.objects.create(
        name="Cesta Básica", price=Decimal("100.00"), stock=50
    )


@pytest.fixture()
def make_order(customer, zone, product):
    """Create an order directly through the ORM (subtotal 100, fee 15)."""

    def _make(
        status=OrderStatus.PENDING,
        payment_method=PaymentMethod.PIX,
        **fields,
    ):
        order = Order.objects.create(
            user=fields.pop("user", customer),
            status=status,
            payment_method=payment_method,
            customer_name=fields.pop("customer_name", "Maria Silva"),
            phone=fields.pop("phone", "11988887777"),
            delivery_address="Rua das Flores",
            delivery_number="10",
            delivery_neighborhood="Centro",
            delivery_city=zone.city,
            delivery_state=zone.state,
            delivery_zone=zone,
            subtotal=Decimal("100.00"),
            delivery_fee=zone.delivery_fee,
            total=Decimal("100.00") + zone.delivery_fee,
            **fields,
        )
        OrderItem.objects.create(
            order=order, product=product, quantity=1, unit_price=product.price
        )
        return order

    return _make
