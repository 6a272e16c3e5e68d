from typing import List, Optional

from boozebuddies.application.clock import Clock, SystemClock
from boozebuddies.application.errors import (
    DeliveryNotFoundError,
    DriverNotAvailableError,
    InvalidArgumentError,
    InvalidTransitionError,
    OrderNotAssignableError,
)
from boozebuddies.application.geo import is_valid_coordinate
from boozebuddies.application.ports import DeliveryStore
from boozebuddies.domain.models import (
    ASSIGNABLE_ORDER_STATUSES,
    INACTIVE_DELIVERY_STATUSES,
    Delivery,
    DeliveryStatus,
    Driver,
    Order,
)
from shared.core import get_logger

logger = get_logger(__name__)

ID_NUMBER_KEPT_CHARS = 4


def mask_id_number(id_number: Optional[str]) -> Optional[str]:
    """Keep at most the last 4 characters of an ID number."""
    if id_number is None:
        return None
    return id_number[-ID_NUMBER_KEPT_CHARS:]


class DeliveryService:
    """Delivery lifecycle: driver assignment, pickup/drop-off, age check at
    the door, live location and cancellation.

    Only state invariants are enforced here; whether the caller may act on a
    delivery is decided upstream.
    """

    def __init__(self, deliveries: DeliveryStore, clock: Clock = None):
        self.deliveries = deliveries
        self.clock = clock or SystemClock()

    def get(self, delivery_id: int) -> Delivery:
        delivery = self.deliveries.find_by_id(delivery_id)
        if delivery is None:
            raise DeliveryNotFoundError(delivery_id)
        return delivery

    def get_by_order(self, order_id: int) -> Optional[Delivery]:
        return self.deliveries.find_by_order_id(order_id)

    def list_by_driver(self, driver_id: int) -> List[Delivery]:
        return self.deliveries.find_by_driver_id(driver_id)

    def list_all(self) -> List[Delivery]:
        return self.deliveries.find_all()

    def list_active(self) -> List[Delivery]:
        return [d for d in self.deliveries.find_all() if d.status not in INACTIVE_DELIVERY_STATUSES]

    def assign(self, order: Order, driver: Driver) -> Delivery:
        if order.status not in ASSIGNABLE_ORDER_STATUSES:
            raise OrderNotAssignableError(order.id, order.status)
        if not driver.can_accept_deliveries():
            raise DriverNotAvailableError(driver.id)

        now = self.clock.now()
        delivery = order.delivery
        if delivery is None:
            delivery = Delivery(
                order=order,
                delivery_address=order.delivery_address,
                age_verified=False,
                created_at=now,
            )
        elif not delivery.is_valid_status_transition(DeliveryStatus.ASSIGNED):
            raise InvalidTransitionError(delivery.status, DeliveryStatus.ASSIGNED)

        delivery.driver = driver
        delivery.status = DeliveryStatus.ASSIGNED
        delivery.updated_at = now
        order.driver = driver
        order.updated_at = now

        saved = self.deliveries.save(delivery)
        logger.info(
            "Driver assigned",
            extra={'extra_fields': {'order_id': order.id, 'driver_id': driver.id, 'delivery_id': saved.id}},
        )
        return saved

    def update_status(self, delivery_id: int, new_status: DeliveryStatus) -> Delivery:
        delivery = self._load_for_update(delivery_id)
        if not delivery.is_valid_status_transition(new_status):
            raise InvalidTransitionError(delivery.status, new_status)

        now = self.clock.now()
        previous = delivery.status
        delivery.status = new_status
        delivery.updated_at = now
        if new_status == DeliveryStatus.PICKED_UP and delivery.pickup_time is None:
            delivery.pickup_time = now
        elif new_status == DeliveryStatus.DELIVERED and delivery.delivered_time is None:
            delivery.delivered_time = now
            if delivery.driver is not None:
                delivery.driver.total_deliveries = (delivery.driver.total_deliveries or 0) + 1

        saved = self.deliveries.save(delivery)
        logger.info(
            "Delivery status updated",
            extra={'extra_fields': {
                'delivery_id': delivery_id,
                'from_status': previous.name if previous else None,
                'to_status': new_status.name,
            }},
        )
        return saved

    def update_age_verification(
        self,
        delivery_id: int,
        age_verified: bool,
        id_type: Optional[str],
        id_number: Optional[str],
    ) -> Delivery:
        delivery = self._load_for_update(delivery_id)
        now = self.clock.now()
        delivery.age_verified = age_verified
        delivery.id_type = id_type
        delivery.id_number = mask_id_number(id_number)
        delivery.age_verified_at = now
        delivery.updated_at = now
        saved = self.deliveries.save(delivery)
        logger.info(
            "Age verification recorded",
            extra={'extra_fields': {'delivery_id': delivery_id, 'verified': age_verified, 'id_type': id_type}},
        )
        return saved

    def update_location(self, delivery_id: int, latitude: float, longitude: float) -> Delivery:
        if not is_valid_coordinate(latitude, longitude):
            raise InvalidArgumentError(f"Invalid coordinates: ({latitude}, {longitude})")
        delivery = self._load_for_update(delivery_id)
        now = self.clock.now()
        delivery.current_latitude = latitude
        delivery.current_longitude = longitude
        delivery.last_location_update = now
        delivery.updated_at = now
        return self.deliveries.save(delivery)

    def cancel(self, delivery_id: int, reason: Optional[str]) -> Delivery:
        delivery = self._load_for_update(delivery_id)
        if not delivery.is_valid_status_transition(DeliveryStatus.CANCELLED):
            raise InvalidTransitionError(delivery.status, DeliveryStatus.CANCELLED)
        delivery.status = DeliveryStatus.CANCELLED
        delivery.cancellation_reason = reason
        delivery.updated_at = self.clock.now()
        saved = self.deliveries.save(delivery)
        logger.info(
            "Delivery cancelled",
            extra={'extra_fields': {'delivery_id': delivery_id, 'reason': reason}},
        )
        return saved

    def _load_for_update(self, delivery_id: int) -> Delivery:
        delivery = self.deliveries.find_by_id(delivery_id, for_update=True)
        if delivery is None:
            raise DeliveryNotFoundError(delivery_id)
        return delivery
