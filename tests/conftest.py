"""Shared fixtures: in-memory stores, a frozen clock and small entity builders."""

import os
from datetime import datetime, timezone
from decimal import Decimal
from unittest.mock import Mock

import pytest

# The app module builds its engine at import time; keep it off Postgres
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("RUN_MIGRATIONS_ON_STARTUP", "false")

from boozebuddies.application.delivery_service import DeliveryService
from boozebuddies.application.notification_service import NotificationService
from boozebuddies.application.order_service import OrderService
from boozebuddies.application.payment_service import PaymentService
from boozebuddies.application.validator import OrderValidator
from boozebuddies.domain.models import (
    CertificationStatus,
    Delivery,
    DeliveryStatus,
    Driver,
    Merchant,
    Order,
    OrderItem,
    OrderStatus,
    Product,
    User,
)

FIXED_NOW = datetime(2024, 5, 1, 18, 30, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now=FIXED_NOW):
        self.current = now

    def now(self):
        return self.current


class _IdSequence:
    def __init__(self):
        self.rows = {}
        self.saved = []
        self._next_id = 1

    def _store(self, row):
        if row.id is None:
            row.id = self._next_id
            self._next_id += 1
        self.rows[row.id] = row
        self.saved.append(row)
        return row


class FakeOrderStore(_IdSequence):
    def find_by_id(self, order_id, for_update=False):
        return self.rows.get(order_id)

    def find_by_user(self, user_id):
        return [o for o in self.rows.values() if o.user is not None and o.user.id == user_id]

    def find_by_merchant(self, merchant_id):
        return [o for o in self.rows.values() if o.merchant is not None and o.merchant.id == merchant_id]

    def find_by_driver(self, driver_id):
        return [o for o in self.rows.values() if o.driver is not None and o.driver.id == driver_id]

    def find_all(self):
        return list(self.rows.values())

    def find_available_for_assignment(self):
        return [o for o in self.rows.values() if o.driver is None]

    def save(self, order):
        return self._store(order)

    def delete(self, order):
        self.rows.pop(order.id, None)


class FakeDeliveryStore(_IdSequence):
    def find_by_id(self, delivery_id, for_update=False):
        return self.rows.get(delivery_id)

    def find_by_order_id(self, order_id):
        return next((d for d in self.rows.values() if d.order is not None and d.order.id == order_id), None)

    def find_by_driver_id(self, driver_id):
        return [d for d in self.rows.values() if d.driver is not None and d.driver.id == driver_id]

    def find_by_status(self, status):
        return [d for d in self.rows.values() if d.status == status]

    def find_all(self):
        return list(self.rows.values())

    def save(self, delivery):
        return self._store(delivery)

    def delete(self, delivery):
        self.rows.pop(delivery.id, None)


class FakePaymentStore(_IdSequence):
    def find_by_order_id(self, order_id):
        return [p for p in self.rows.values() if p.order is not None and p.order.id == order_id]

    def find_by_user_id(self, user_id, skip=0, limit=100):
        rows = [p for p in self.rows.values() if p.user is not None and p.user.id == user_id]
        return rows[skip:skip + limit]

    def find_all(self, skip=0, limit=100):
        return list(self.rows.values())[skip:skip + limit]

    def find_created_between(self, start, end):
        return [p for p in self.rows.values() if start <= p.created_at <= end]

    def save(self, payment):
        return self._store(payment)


class FakeProductCatalog:
    def __init__(self, *products):
        self.products = {p.id: p for p in products}
        self.lookups = []

    def get_product_by_id(self, product_id):
        self.lookups.append(product_id)
        return self.products.get(product_id)


class FakeUserDirectory:
    def __init__(self, *users):
        self.users = {u.id: u for u in users}
        self.lookups = []

    def find_by_id(self, user_id):
        self.lookups.append(user_id)
        return self.users.get(user_id)


def make_user(user_id=1, age_verified=True, **kwargs):
    return User(id=user_id, name=f"user-{user_id}", email=f"user{user_id}@example.com",
                age_verified=age_verified, is_active=True, **kwargs)


def make_merchant(merchant_id=1, latitude=40.7128, longitude=-74.0060, **kwargs):
    return Merchant(id=merchant_id, name=f"merchant-{merchant_id}", address="1 Main St",
                    is_active=True, latitude=latitude, longitude=longitude, **kwargs)


def make_product(product_id, price, is_alcohol=False, merchant_id=1):
    return Product(id=product_id, merchant_id=merchant_id, name=f"product-{product_id}",
                   price=Decimal(price), is_alcohol=is_alcohol, available=True)


def make_driver(driver_id=1, available=True, certification=CertificationStatus.APPROVED):
    return Driver(id=driver_id, name=f"driver-{driver_id}", is_available=available,
                  certification_status=certification, total_deliveries=0)


def make_order(user=None, merchant=None, items=(), status=None, order_id=None):
    return Order(
        id=order_id,
        user=user,
        merchant=merchant,
        status=status,
        delivery_address="221B Baker St",
        items=list(items),
    )


def make_item(product_id, quantity, unit_price=None):
    return OrderItem(product_id=product_id, quantity=quantity,
                     unit_price=Decimal(unit_price) if unit_price is not None else None)


def make_delivery(status=DeliveryStatus.PENDING, order=None, delivery_id=None, driver=None):
    return Delivery(id=delivery_id, status=status, order=order, driver=driver, age_verified=False)


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def order_store():
    return FakeOrderStore()


@pytest.fixture
def delivery_store():
    return FakeDeliveryStore()


@pytest.fixture
def payment_store():
    return FakePaymentStore()


@pytest.fixture
def user():
    return make_user()


@pytest.fixture
def merchant():
    return make_merchant()


@pytest.fixture
def beer():
    return make_product(10, "10.00", is_alcohol=True)


@pytest.fixture
def chips():
    return make_product(20, "15.00")


@pytest.fixture
def catalog(beer, chips):
    return FakeProductCatalog(beer, chips)


@pytest.fixture
def users(user):
    return FakeUserDirectory(user)


@pytest.fixture
def payment_service(payment_store, clock):
    return PaymentService(payment_store, clock)


@pytest.fixture
def notifications():
    return Mock(spec=NotificationService)


@pytest.fixture
def order_service(order_store, delivery_store, catalog, users, payment_service, notifications, clock):
    return OrderService(
        orders=order_store,
        deliveries=delivery_store,
        validator=OrderValidator(catalog, users, clock),
        payments=payment_service,
        notifications=notifications,
        clock=clock,
    )


@pytest.fixture
def delivery_service(delivery_store, clock):
    return DeliveryService(delivery_store, clock)


@pytest.fixture
def placed_order(order_store, user, merchant):
    """An order already persisted in the fake store at PENDING."""
    order = make_order(user=user, merchant=merchant, status=OrderStatus.PENDING)
    return order_store.save(order)
