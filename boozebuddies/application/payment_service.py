import uuid
from datetime import datetime
from decimal import Decimal
from typing import List, Optional

from boozebuddies.application.clock import Clock, SystemClock
from boozebuddies.application.errors import PaymentAuthorizationError, RefundError
from boozebuddies.application.ports import PaymentStore
from boozebuddies.domain.models import Order, Payment, PaymentStatus, User
from shared.core import get_logger

logger = get_logger(__name__)


class PaymentService:
    """Payment ledger behind order creation and cancellation.

    Rows are append-only: a refund adds a REFUNDED payment next to the
    original AUTHORIZED one, which is left as it was.
    """

    def __init__(self, payments: PaymentStore, clock: Clock = None):
        self.payments = payments
        self.clock = clock or SystemClock()

    def validate_payment_method(self, user: Optional[User], payment_method: Optional[str]) -> bool:
        if user is None:
            return False
        if payment_method is None or not payment_method.strip():
            return False
        # "test" / "test_payment" and any other non-blank token are accepted
        # until a real gateway is wired in
        return True

    def authorize(self, order: Order, payment_method: str) -> Payment:
        if not self.validate_payment_method(order.user, payment_method):
            raise PaymentAuthorizationError("Invalid payment method")
        if self.payments.find_by_order_id(order.id):
            raise PaymentAuthorizationError(f"Payment already exists for order: {order.id}")

        now = self.clock.now()
        payment = Payment(
            order=order,
            user=order.user,
            amount=order.total_amount,
            payment_method=payment_method.strip(),
            status=PaymentStatus.AUTHORIZED,
            transaction_id=f"TXN-{uuid.uuid4().hex[:16].upper()}",
            created_at=now,
            updated_at=now,
        )
        payment = self.payments.save(payment)
        logger.info(
            "Payment authorized",
            extra={'extra_fields': {
                'order_id': order.id,
                'amount': payment.amount,
                'payment_method': payment.payment_method,
            }},
        )
        return payment

    def refund(self, order: Order, reason: str) -> Payment:
        authorized = [
            p for p in self.payments.find_by_order_id(order.id)
            if p.status == PaymentStatus.AUTHORIZED
        ]
        if not authorized:
            raise RefundError(f"Payment not found for order: {order.id}")
        original = authorized[-1]

        now = self.clock.now()
        refund = Payment(
            order=order,
            user=order.user,
            amount=original.amount,
            payment_method=original.payment_method,
            status=PaymentStatus.REFUNDED,
            transaction_id=f"RFD-{uuid.uuid4().hex[:16].upper()}",
            refund_reason=reason,
            created_at=now,
            updated_at=now,
        )
        refund = self.payments.save(refund)
        logger.info(
            "Payment refunded",
            extra={'extra_fields': {'order_id': order.id, 'amount': refund.amount, 'reason': reason}},
        )
        return refund

    def get_by_order(self, order_id: int) -> Optional[Payment]:
        """Latest ledger row for the order"""
        rows = self.payments.find_by_order_id(order_id)
        return rows[-1] if rows else None

    def list_by_user(self, user_id: int, skip: int = 0, limit: int = 100) -> List[Payment]:
        return self.payments.find_by_user_id(user_id, skip=skip, limit=limit)

    def list_all(self, skip: int = 0, limit: int = 100) -> List[Payment]:
        return self.payments.find_all(skip=skip, limit=limit)

    def calculate_total_revenue(self, start: datetime, end: datetime) -> Decimal:
        """Sum of payments created in [start, end] whose own status is AUTHORIZED.

        Refund rows are not netted against the authorization they refer to.
        """
        return sum(
            (p.amount for p in self.payments.find_created_between(start, end)
             if p.status == PaymentStatus.AUTHORIZED),
            Decimal("0"),
        )
