from typing import Optional

from boozebuddies.domain.models import Delivery, Merchant, User
from shared.core import get_logger

logger = get_logger(__name__)


class NotificationService:
    """Notification trigger points.

    Messages are emitted as structured log records; pushing them to devices
    is left to whatever consumes the log stream. Every method is a no-op for
    a missing user or delivery.
    """

    def notify_user(self, user: Optional[User], message: str) -> None:
        if user is None:
            return
        logger.info(
            "User notification",
            extra={'extra_fields': {'channel': 'user', 'user_id': user.id, 'text': message}},
        )

    def notify_merchant(self, merchant: Optional[Merchant], message: str) -> None:
        if merchant is None:
            return
        logger.info(
            "Merchant notification",
            extra={'extra_fields': {'channel': 'merchant', 'merchant_id': merchant.id, 'text': message}},
        )

    def send_order_confirmation(self, delivery: Optional[Delivery]) -> None:
        if delivery is None or delivery.order is None:
            return
        order = delivery.order
        self.notify_user(order.user, "Your order has been confirmed!")
        self.notify_merchant(order.merchant, "A new order has been placed.")

    def send_order_cancellation(self, delivery: Optional[Delivery]) -> None:
        if delivery is None or delivery.order is None:
            return
        order = delivery.order
        self.notify_user(order.user, "Your order has been cancelled.")
        self.notify_merchant(order.merchant, "An order has been cancelled.")

    def send_delivery_status_update(self, user: Optional[User], delivery: Optional[Delivery]) -> None:
        if user is None or delivery is None:
            return
        status = delivery.status.name if delivery.status is not None else None
        self.notify_user(user, f"Delivery {delivery.id} is now {status}")
