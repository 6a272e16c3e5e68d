from decimal import Decimal

import pytest

from boozebuddies.application.errors import (
    AgeVerificationRequiredError,
    EmptyOrderError,
    InvalidArgumentError,
    MissingMerchantError,
    MissingUserError,
    ProductNotFoundError,
)
from boozebuddies.application.validator import OrderValidator

from conftest import FIXED_NOW, FakeUserDirectory, make_item, make_order, make_user


@pytest.fixture
def validator(catalog, users, clock):
    return OrderValidator(catalog, users, clock)


def test_missing_user_is_reported_first(validator):
    with pytest.raises(MissingUserError):
        validator.validate(make_order(user=None, merchant=None, items=[]))


def test_missing_merchant_before_empty_items(validator, user):
    with pytest.raises(MissingMerchantError):
        validator.validate(make_order(user=user, merchant=None, items=[]))


def test_empty_order(validator, user, merchant):
    with pytest.raises(EmptyOrderError):
        validator.validate(make_order(user=user, merchant=merchant, items=[]))


def test_unknown_product(validator, user, merchant):
    with pytest.raises(ProductNotFoundError) as exc:
        validator.validate(make_order(user=user, merchant=merchant, items=[make_item(999, 1)]))
    assert exc.value.detail == "Product not found with id: 999"


@pytest.mark.parametrize("quantity", [0, -2])
def test_non_positive_quantity(validator, user, merchant, quantity):
    with pytest.raises(InvalidArgumentError):
        validator.validate(make_order(user=user, merchant=merchant, items=[make_item(20, quantity)]))


def test_alcohol_requires_verified_user_from_directory(catalog, clock, merchant):
    # The user on the order says verified, the directory says otherwise
    stale = make_user(user_id=7, age_verified=True)
    validator = OrderValidator(catalog, FakeUserDirectory(make_user(user_id=7, age_verified=False)), clock)
    order = make_order(user=stale, merchant=merchant, items=[make_item(10, 1)])

    with pytest.raises(AgeVerificationRequiredError):
        validator.validate(order)


def test_alcohol_with_unknown_user(catalog, clock, merchant):
    validator = OrderValidator(catalog, FakeUserDirectory(), clock)
    with pytest.raises(MissingUserError):
        validator.validate(make_order(user=make_user(user_id=3), merchant=merchant, items=[make_item(10, 1)]))


def test_no_user_lookup_without_alcohol(validator, users, user, merchant):
    validator.validate(make_order(user=user, merchant=merchant, items=[make_item(20, 1)]))
    assert users.lookups == []


def test_alcohol_order_looks_user_up_once(validator, users, user, merchant):
    validator.validate(make_order(user=user, merchant=merchant, items=[make_item(10, 1), make_item(10, 2)]))
    assert users.lookups == [user.id]


def test_items_are_stamped_and_priced(validator, user, merchant):
    order = make_order(user=user, merchant=merchant, items=[make_item(10, 2), make_item(20, 3)])

    validator.validate(order)

    first, second = order.items
    assert [first.line_no, second.line_no] == [1, 2]
    assert first.name == "product-10"
    assert first.unit_price == Decimal("10.00")
    assert first.subtotal == Decimal("20.00")
    assert second.subtotal == Decimal("45.00")
    assert order.total_amount == Decimal("65.00")
    assert order.created_at == FIXED_NOW
    assert order.updated_at == FIXED_NOW


def test_explicit_unit_price_wins_over_catalog(validator, user, merchant):
    order = make_order(user=user, merchant=merchant, items=[make_item(20, 2, unit_price="12.50")])
    validator.validate(order)
    assert order.items[0].subtotal == Decimal("25.00")


def test_caller_supplied_total_is_kept(validator, user, merchant):
    order = make_order(user=user, merchant=merchant, items=[make_item(20, 1)])
    order.total_amount = Decimal("1.00")
    validator.validate(order)
    assert order.total_amount == Decimal("1.00")


def test_failed_validation_leaves_items_untouched(validator, user, merchant):
    items = [make_item(20, 1), make_item(999, 1)]
    order = make_order(user=user, merchant=merchant, items=items)

    with pytest.raises(ProductNotFoundError):
        validator.validate(order)

    assert all(item.line_no is None and item.subtotal is None for item in order.items)
    assert order.total_amount is None
    assert order.created_at is None
