from decimal import Decimal
from typing import List

from boozebuddies.application.clock import Clock, SystemClock
from boozebuddies.application.errors import (
    AgeVerificationRequiredError,
    EmptyOrderError,
    InvalidArgumentError,
    MissingMerchantError,
    MissingUserError,
    ProductNotFoundError,
)
from boozebuddies.application.ports import ProductCatalog, UserDirectory
from boozebuddies.domain.models import Order, Product
from shared.core import get_logger

logger = get_logger(__name__)


class OrderValidator:
    """Creation-time checks for a new order.

    ``validate`` raises on the first violation and touches nothing until every
    check has passed; only then are the line items stamped (line number,
    product snapshot, subtotal) and the order timestamped and priced.
    """

    def __init__(self, products: ProductCatalog, users: UserDirectory, clock: Clock = None):
        self.products = products
        self.users = users
        self.clock = clock or SystemClock()

    def validate(self, order: Order) -> None:
        if order.user is None:
            raise MissingUserError()
        if order.merchant is None:
            raise MissingMerchantError()
        if not order.items:
            raise EmptyOrderError()

        resolved = self._resolve_products(order)

        if any(product.is_alcohol for product in resolved):
            self._require_age_verified(order)

        self._stamp_items(order, resolved)
        now = self.clock.now()
        order.created_at = now
        order.updated_at = now
        if order.total_amount is None:
            order.calculate_total()

    def _resolve_products(self, order: Order) -> List[Product]:
        resolved = []
        for position, item in enumerate(order.items, start=1):
            product_id = item.product_id if item.product_id is not None else getattr(item.product, "id", None)
            product = self.products.get_product_by_id(product_id)
            if product is None:
                raise ProductNotFoundError(product_id)
            if item.quantity is None or item.quantity <= 0:
                raise InvalidArgumentError(
                    f"Order item {position} must have a positive quantity, got {item.quantity}"
                )
            if item.unit_price is None and product.price is None:
                raise InvalidArgumentError(f"Order item {position} has no unit price")
            resolved.append(product)
        return resolved

    def _require_age_verified(self, order: Order) -> None:
        # The user attached to the order may be stale; ask the directory
        current = self.users.find_by_id(order.user.id)
        if current is None:
            raise MissingUserError(f"User not found: {order.user.id}")
        if not current.age_verified:
            logger.warning(
                "Alcohol order rejected: user not age verified",
                extra={'extra_fields': {'user_id': order.user.id}},
            )
            raise AgeVerificationRequiredError()

    @staticmethod
    def _stamp_items(order: Order, products: List[Product]) -> None:
        for line_no, (item, product) in enumerate(zip(order.items, products), start=1):
            item.line_no = line_no
            if item.order is not order:
                item.order = order
            item.product = product
            if item.name is None:
                item.name = product.name
            if item.unit_price is None:
                item.unit_price = product.price
            item.unit_price = Decimal(str(item.unit_price))
            item.subtotal = item.unit_price * item.quantity
