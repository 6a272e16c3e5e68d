"""Collaborator contracts consumed by the order and delivery engine.

The SQLAlchemy-backed implementations live in
``boozebuddies.infrastructure.repositories``; tests plug in fakes.

Stores loading a row with ``for_update=True`` must lock it (or rely on the
row version check) so two requests racing on the same order or delivery
cannot both apply their read-modify-write.
"""

from datetime import datetime
from typing import List, Optional, Protocol

from boozebuddies.domain.models import Delivery, DeliveryStatus, Order, Payment, Product, User


class ProductCatalog(Protocol):
    def get_product_by_id(self, product_id: int) -> Optional[Product]: ...


class UserDirectory(Protocol):
    def find_by_id(self, user_id: int) -> Optional[User]: ...


class PaymentOrchestrator(Protocol):
    def authorize(self, order: Order, payment_method: str) -> Payment: ...

    def refund(self, order: Order, reason: str) -> Payment: ...


class NotificationSink(Protocol):
    def send_order_confirmation(self, delivery: Optional[Delivery]) -> None: ...

    def send_order_cancellation(self, delivery: Optional[Delivery]) -> None: ...

    def send_delivery_status_update(self, user: Optional[User], delivery: Optional[Delivery]) -> None: ...


class OrderStore(Protocol):
    def find_by_id(self, order_id: int, for_update: bool = False) -> Optional[Order]: ...

    def find_by_user(self, user_id: int) -> List[Order]: ...

    def find_by_merchant(self, merchant_id: int) -> List[Order]: ...

    def find_by_driver(self, driver_id: int) -> List[Order]: ...

    def find_all(self) -> List[Order]: ...

    def find_available_for_assignment(self) -> List[Order]: ...

    def save(self, order: Order) -> Order: ...

    def delete(self, order: Order) -> None: ...


class DeliveryStore(Protocol):
    def find_by_id(self, delivery_id: int, for_update: bool = False) -> Optional[Delivery]: ...

    def find_by_order_id(self, order_id: int) -> Optional[Delivery]: ...

    def find_by_driver_id(self, driver_id: int) -> List[Delivery]: ...

    def find_by_status(self, status: DeliveryStatus) -> List[Delivery]: ...

    def find_all(self) -> List[Delivery]: ...

    def save(self, delivery: Delivery) -> Delivery: ...

    def delete(self, delivery: Delivery) -> None: ...


class PaymentStore(Protocol):
    def find_by_order_id(self, order_id: int) -> List[Payment]: ...

    def find_by_user_id(self, user_id: int, skip: int = 0, limit: int = 100) -> List[Payment]: ...

    def find_all(self, skip: int = 0, limit: int = 100) -> List[Payment]: ...

    def find_created_between(self, start: datetime, end: datetime) -> List[Payment]: ...

    def save(self, payment: Payment) -> Payment: ...
