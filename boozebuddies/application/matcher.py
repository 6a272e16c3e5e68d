import math
from dataclasses import dataclass
from typing import List

from boozebuddies.application.errors import InvalidArgumentError
from boozebuddies.application.geo import distance_km, is_valid_coordinate
from boozebuddies.application.ports import OrderStore
from boozebuddies.domain.models import Order


@dataclass(frozen=True)
class OrderMatch:
    order: Order
    distance_km: float


def eta_minutes(distance: float, average_speed_kmh: float = 30.0, pickup_buffer_minutes: int = 5) -> int:
    """Travel time at an average speed, rounded up, plus a fixed pickup buffer."""
    return math.ceil(distance / average_speed_kmh * 60) + pickup_buffer_minutes


class OrderMatcher:
    """Finds unassigned orders whose merchant lies within a radius of a point."""

    def __init__(self, orders: OrderStore):
        self.orders = orders

    def find_within_radius(self, latitude: float, longitude: float, radius_km: float) -> List[OrderMatch]:
        if not is_valid_coordinate(latitude, longitude):
            raise InvalidArgumentError(f"Invalid coordinates: ({latitude}, {longitude})")
        if radius_km is None or radius_km < 0:
            raise InvalidArgumentError(f"Invalid radius: {radius_km}")

        matches = []
        for order in self.orders.find_available_for_assignment():
            merchant = order.merchant
            if merchant is None or not merchant.has_coordinates():
                continue
            distance = distance_km(latitude, longitude, merchant.latitude, merchant.longitude)
            if distance <= radius_km:
                matches.append(OrderMatch(order=order, distance_km=distance))
        matches.sort(key=lambda match: match.distance_km)
        return matches
