import pytest

from boozebuddies.application.geo import distance_km, is_valid_coordinate


def test_distance_to_same_point_is_zero():
    assert distance_km(40.7128, -74.0060, 40.7128, -74.0060) == 0.0


def test_distance_is_symmetric():
    there = distance_km(40.7128, -74.0060, 34.0522, -118.2437)
    back = distance_km(34.0522, -118.2437, 40.7128, -74.0060)
    assert there == pytest.approx(back)


def test_short_hop_north_in_manhattan():
    # ~0.045 degrees of latitude is roughly 5 km
    d = distance_km(40.7128, -74.0060, 40.7578, -74.0060)
    assert 4.5 <= d <= 5.5


def test_new_york_to_los_angeles():
    assert distance_km(40.7128, -74.0060, 34.0522, -118.2437) == pytest.approx(3936, rel=0.01)


def test_across_the_antimeridian_is_short():
    assert distance_km(0.0, 179.9, 0.0, -179.9) < 25


def test_antipodal_points_do_not_blow_up():
    d = distance_km(90.0, 0.0, -90.0, 0.0)
    assert d == pytest.approx(20015.1, rel=1e-3)


@pytest.mark.parametrize("lat, lon, expected", [
    (0, 0, True),
    (90, 180, True),
    (-90, -180, True),
    (90.0001, 0, False),
    (0, -180.5, False),
    (None, 10, False),
    (10, None, False),
])
def test_is_valid_coordinate(lat, lon, expected):
    assert is_valid_coordinate(lat, lon) is expected
