from datetime import timedelta
from decimal import Decimal

import pytest

from boozebuddies.application.errors import PaymentAuthorizationError, RefundError
from boozebuddies.domain.models import OrderStatus, PaymentStatus

from conftest import FIXED_NOW, make_order, make_user


@pytest.fixture
def priced_order(order_store, user, merchant):
    order = make_order(user=user, merchant=merchant, status=OrderStatus.PENDING)
    order.total_amount = Decimal("42.50")
    return order_store.save(order)


@pytest.mark.parametrize("method, expected", [
    ("test_payment", True),
    ("test", True),
    ("card", True),
    ("   ", False),
    (None, False),
])
def test_validate_payment_method(payment_service, user, method, expected):
    assert payment_service.validate_payment_method(user, method) is expected


def test_validate_payment_method_needs_user(payment_service):
    assert payment_service.validate_payment_method(None, "test") is False


def test_authorize_records_ledger_row(payment_service, priced_order):
    payment = payment_service.authorize(priced_order, "test")
    assert payment.status == PaymentStatus.AUTHORIZED
    assert payment.amount == Decimal("42.50")
    assert payment.created_at == FIXED_NOW
    assert payment.user is priced_order.user


def test_authorize_twice_is_rejected(payment_service, priced_order):
    payment_service.authorize(priced_order, "test")
    with pytest.raises(PaymentAuthorizationError):
        payment_service.authorize(priced_order, "test")


def test_authorize_with_blank_method(payment_service, priced_order, payment_store):
    with pytest.raises(PaymentAuthorizationError):
        payment_service.authorize(priced_order, "")
    assert payment_store.saved == []


def test_refund_appends_and_keeps_original(payment_service, priced_order):
    original = payment_service.authorize(priced_order, "test")

    refund = payment_service.refund(priced_order, "changed my mind")

    assert refund is not original
    assert original.status == PaymentStatus.AUTHORIZED
    assert refund.status == PaymentStatus.REFUNDED
    assert refund.transaction_id.startswith("RFD-")
    assert payment_service.get_by_order(priced_order.id) is refund


def test_refund_without_authorization(payment_service, priced_order):
    with pytest.raises(RefundError):
        payment_service.refund(priced_order, "nothing to refund")


def test_revenue_counts_authorized_rows_in_range(payment_service, payment_store, clock, order_store, merchant):
    first = order_store.save(make_order(user=make_user(1), merchant=merchant, status=OrderStatus.PENDING))
    first.total_amount = Decimal("20.00")
    second = order_store.save(make_order(user=make_user(2), merchant=merchant, status=OrderStatus.PENDING))
    second.total_amount = Decimal("30.00")

    payment_service.authorize(first, "test")
    payment_service.authorize(second, "test")
    payment_service.refund(second, "cancelled")
    clock.current = FIXED_NOW + timedelta(days=2)
    late = order_store.save(make_order(user=make_user(3), merchant=merchant, status=OrderStatus.PENDING))
    late.total_amount = Decimal("99.00")
    payment_service.authorize(late, "test")

    total = payment_service.calculate_total_revenue(FIXED_NOW - timedelta(hours=1), FIXED_NOW + timedelta(hours=1))

    # Refund rows are not netted against the authorization
    assert total == Decimal("50.00")


def test_revenue_of_empty_range_is_zero(payment_service):
    assert payment_service.calculate_total_revenue(FIXED_NOW, FIXED_NOW) == Decimal("0")


def test_list_by_user(payment_service, priced_order, user):
    payment = payment_service.authorize(priced_order, "test")
    assert payment_service.list_by_user(user.id) == [payment]
    assert payment_service.list_by_user(user.id, skip=1) == []
