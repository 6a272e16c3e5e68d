from datetime import datetime
from typing import List, Optional

from boozebuddies.application.clock import Clock, SystemClock
from boozebuddies.application.errors import (
    CancellationNotAllowedError,
    InvalidTransitionError,
    OrderNotFoundError,
)
from boozebuddies.application.ports import (
    DeliveryStore,
    NotificationSink,
    OrderStore,
    PaymentOrchestrator,
)
from boozebuddies.application.validator import OrderValidator
from boozebuddies.domain.models import Delivery, DeliveryStatus, Order, OrderStatus
from shared.core import get_logger

logger = get_logger(__name__)

CANCELLATION_REFUND_REASON = "Order cancelled by user"


class OrderService:
    """Order lifecycle: creation, status transitions and cancellation.

    Transition legality is always asked of the order itself
    (``Order.is_valid_status_transition``); nothing is saved, charged or
    notified before that check passes.
    """

    def __init__(
        self,
        orders: OrderStore,
        deliveries: DeliveryStore,
        validator: OrderValidator,
        payments: PaymentOrchestrator,
        notifications: NotificationSink,
        clock: Clock = None,
        default_payment_method: str = "test_payment",
    ):
        self.orders = orders
        self.deliveries = deliveries
        self.validator = validator
        self.payments = payments
        self.notifications = notifications
        self.clock = clock or SystemClock()
        self.default_payment_method = default_payment_method

    def get(self, order_id: int) -> Order:
        order = self.orders.find_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id)
        return order

    def list_all(self) -> List[Order]:
        return self.orders.find_all()

    def list_by_user(self, user_id: int) -> List[Order]:
        return self.orders.find_by_user(user_id)

    def list_by_merchant(self, merchant_id: int) -> List[Order]:
        return self.orders.find_by_merchant(merchant_id)

    def list_by_driver(self, driver_id: int) -> List[Order]:
        return self.orders.find_by_driver(driver_id)

    def create(self, order: Order, payment_method: Optional[str] = None) -> Order:
        """Validate, price and persist a new order, authorize its payment and
        open the paired delivery record."""
        self.validator.validate(order)
        order.status = OrderStatus.PENDING
        saved = self.orders.save(order)

        self.payments.authorize(saved, payment_method or self.default_payment_method)

        now = self.clock.now()
        delivery = Delivery(
            order=saved,
            status=DeliveryStatus.PENDING,
            delivery_address=saved.delivery_address,
            age_verified=False,
            created_at=now,
            updated_at=now,
        )
        delivery = self.deliveries.save(delivery)

        logger.info(
            "Order created",
            extra={'extra_fields': {
                'order_id': saved.id,
                'user_id': saved.user.id,
                'merchant_id': saved.merchant.id,
                'total_amount': saved.total_amount,
                'items': len(saved.items),
            }},
        )
        self.notifications.send_order_confirmation(delivery)
        return saved

    def update_status(self, order_id: int, new_status_name: str) -> Order:
        order = self.orders.find_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)

        new_status = OrderStatus.parse(new_status_name)
        if not order.is_valid_status_transition(new_status):
            raise InvalidTransitionError(order.status, new_status)

        previous = order.status
        order.status = new_status
        order.updated_at = self.clock.now()
        updated = self.orders.save(order)
        logger.info(
            "Order status updated",
            extra={'extra_fields': {
                'order_id': order_id,
                'from_status': previous.name if previous else None,
                'to_status': new_status.name,
            }},
        )
        self._handle_status_change(updated, new_status)
        return updated

    def cancel(self, order_id: int) -> Order:
        order = self.orders.find_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        # Also the only guard against refunding twice on a retried cancel
        if not order.can_be_cancelled():
            raise CancellationNotAllowedError(order.status)

        order.status = OrderStatus.CANCELLED
        order.updated_at = self.clock.now()
        cancelled = self.orders.save(order)
        self.payments.refund(cancelled, CANCELLATION_REFUND_REASON)

        delivery = cancelled.delivery
        if delivery is not None and delivery.is_valid_status_transition(DeliveryStatus.CANCELLED):
            delivery.status = DeliveryStatus.CANCELLED
            delivery.cancellation_reason = CANCELLATION_REFUND_REASON
            delivery.updated_at = cancelled.updated_at
            self.deliveries.save(delivery)

        logger.info("Order cancelled", extra={'extra_fields': {'order_id': order_id}})
        self.notifications.send_order_cancellation(cancelled.delivery)
        return cancelled

    def update_estimated_delivery_time(self, order_id: int, estimated_delivery_time: datetime) -> Order:
        order = self.orders.find_by_id(order_id, for_update=True)
        if order is None:
            raise OrderNotFoundError(order_id)
        order.estimated_delivery_time = estimated_delivery_time
        order.updated_at = self.clock.now()
        return self.orders.save(order)

    def _handle_status_change(self, order: Order, new_status: OrderStatus) -> None:
        if new_status == OrderStatus.CONFIRMED:
            # delivery may still be None; the sink ignores it then
            self.notifications.send_delivery_status_update(order.user, order.delivery)
