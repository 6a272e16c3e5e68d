"""Business errors raised by the order and delivery engine.

Every error carries a human-readable ``detail`` and a ``status_code`` hint
that only the HTTP layer looks at.
"""


class DomainError(Exception):
    status_code = 400

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class MissingUserError(DomainError):
    def __init__(self, detail: str = "User is required"):
        super().__init__(detail)


class MissingMerchantError(DomainError):
    def __init__(self, detail: str = "Merchant is required"):
        super().__init__(detail)


class EmptyOrderError(DomainError):
    def __init__(self, detail: str = "Order must contain at least one item"):
        super().__init__(detail)


class ProductNotFoundError(DomainError):
    status_code = 404

    def __init__(self, product_id):
        super().__init__(f"Product not found with id: {product_id}")
        self.product_id = product_id


class AgeVerificationRequiredError(DomainError):
    status_code = 403

    def __init__(self, detail: str = "User must be age verified for alcohol orders"):
        super().__init__(detail)


class InvalidArgumentError(DomainError):
    pass


class InvalidTransitionError(DomainError):
    status_code = 409

    def __init__(self, current, requested):
        super().__init__(
            f"Invalid status transition from {_name(current)} to {_name(requested)}"
        )
        self.current = current
        self.requested = requested


class OrderNotFoundError(DomainError):
    status_code = 404

    def __init__(self, order_id):
        super().__init__(f"Order not found: {order_id}")
        self.order_id = order_id


class DeliveryNotFoundError(DomainError):
    status_code = 404

    def __init__(self, delivery_id):
        super().__init__(f"Delivery not found: {delivery_id}")
        self.delivery_id = delivery_id


class DriverNotFoundError(DomainError):
    status_code = 404

    def __init__(self, driver_id):
        super().__init__(f"Driver not found: {driver_id}")
        self.driver_id = driver_id


class CancellationNotAllowedError(DomainError):
    status_code = 409

    def __init__(self, current):
        super().__init__(f"Order cannot be cancelled in current status: {_name(current)}")
        self.current = current


class DriverNotAvailableError(DomainError):
    status_code = 409

    def __init__(self, driver_id):
        super().__init__(f"Driver {driver_id} cannot accept deliveries")
        self.driver_id = driver_id


class OrderNotAssignableError(DomainError):
    status_code = 409

    def __init__(self, order_id, current):
        super().__init__(f"Order {order_id} cannot be assigned a driver in status: {_name(current)}")
        self.order_id = order_id
        self.current = current


class PaymentAuthorizationError(DomainError):
    status_code = 402


class RefundError(DomainError):
    status_code = 409


def _name(status) -> str:
    return getattr(status, "name", str(status))
