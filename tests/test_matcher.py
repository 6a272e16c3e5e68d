import pytest

from boozebuddies.application.errors import InvalidArgumentError
from boozebuddies.application.geo import distance_km
from boozebuddies.application.matcher import OrderMatcher, eta_minutes
from boozebuddies.domain.models import OrderStatus

from conftest import make_driver, make_merchant, make_order

DRIVER = (40.7128, -74.0060)


@pytest.fixture
def matcher(order_store):
    return OrderMatcher(order_store)


def _place(order_store, merchant):
    return order_store.save(make_order(merchant=merchant, status=OrderStatus.CONFIRMED))


def test_orders_within_radius_nearest_first(matcher, order_store):
    far = _place(order_store, make_merchant(2, 40.7578, -74.0060))   # ~5 km
    near = _place(order_store, make_merchant(1, 40.7218, -74.0060))  # ~1 km
    _place(order_store, make_merchant(3, 41.7128, -74.0060))         # ~111 km

    matches = matcher.find_within_radius(*DRIVER, radius_km=10)

    assert [m.order for m in matches] == [near, far]
    assert matches[0].distance_km < matches[1].distance_km


def test_merchant_without_coordinates_is_skipped(matcher, order_store):
    _place(order_store, make_merchant(1, latitude=None, longitude=None))
    _place(order_store, None)
    assert matcher.find_within_radius(*DRIVER, radius_km=1000) == []


def test_radius_boundary_is_inclusive(matcher, order_store):
    merchant = make_merchant(1, 40.7578, -74.0060)
    order = _place(order_store, merchant)
    exact = distance_km(*DRIVER, merchant.latitude, merchant.longitude)

    assert [m.order for m in matcher.find_within_radius(*DRIVER, radius_km=exact)] == [order]
    assert matcher.find_within_radius(*DRIVER, radius_km=exact - 0.001) == []


def test_assigned_orders_are_not_offered(matcher, order_store):
    order = _place(order_store, make_merchant(1))
    order.driver = make_driver()
    assert matcher.find_within_radius(*DRIVER, radius_km=5) == []


@pytest.mark.parametrize("lat, lon, radius", [(95, 0, 5), (0, 200, 5), (0, 0, -1)])
def test_invalid_query(matcher, lat, lon, radius):
    with pytest.raises(InvalidArgumentError):
        matcher.find_within_radius(lat, lon, radius)


@pytest.mark.parametrize("distance, expected", [
    (0, 5),
    (7.5, 20),
    (7.51, 21),
    (15, 35),
])
def test_eta_minutes(distance, expected):
    assert eta_minutes(distance) == expected


def test_eta_uses_configured_speed_and_buffer():
    assert eta_minutes(30, average_speed_kmh=60, pickup_buffer_minutes=2) == 32
