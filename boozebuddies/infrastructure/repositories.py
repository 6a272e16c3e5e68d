"""SQLAlchemy implementations of the engine's store and lookup contracts.

Stores ``flush`` but never ``commit``; the request that drives the use case
commits once at the end so a failure half way leaves nothing behind.
Rows loaded ``for_update`` are locked with ``SELECT ... FOR UPDATE``; the
``version`` column on orders and deliveries catches the races a lock
cannot (e.g. on SQLite, which ignores the clause).
"""

from datetime import datetime
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from boozebuddies.domain.models import (
    ASSIGNABLE_ORDER_STATUSES,
    Delivery,
    DeliveryStatus,
    Driver,
    Merchant,
    Order,
    Payment,
    Product,
    User,
)


class SqlProductCatalog:
    def __init__(self, db: Session):
        self.db = db

    def get_product_by_id(self, product_id: int) -> Optional[Product]:
        if product_id is None:
            return None
        return self.db.get(Product, product_id)


class SqlUserDirectory:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, user_id: int) -> Optional[User]:
        return self.db.get(User, user_id)


class SqlMerchantDirectory:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, merchant_id: int) -> Optional[Merchant]:
        return self.db.get(Merchant, merchant_id)


class SqlDriverDirectory:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, driver_id: int) -> Optional[Driver]:
        return self.db.get(Driver, driver_id)


class SqlOrderStore:
    def __init__(self, db: Session):
        self.db = db

    def _select(self):
        return select(Order).options(selectinload(Order.items))

    def find_by_id(self, order_id: int, for_update: bool = False) -> Optional[Order]:
        stmt = select(Order).where(Order.id == order_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def find_by_user(self, user_id: int) -> List[Order]:
        stmt = self._select().where(Order.user_id == user_id).order_by(Order.created_at.desc())
        return list(self.db.scalars(stmt))

    def find_by_merchant(self, merchant_id: int) -> List[Order]:
        stmt = self._select().where(Order.merchant_id == merchant_id).order_by(Order.created_at.desc())
        return list(self.db.scalars(stmt))

    def find_by_driver(self, driver_id: int) -> List[Order]:
        stmt = self._select().where(Order.driver_id == driver_id).order_by(Order.created_at.desc())
        return list(self.db.scalars(stmt))

    def find_all(self) -> List[Order]:
        return list(self.db.scalars(self._select().order_by(Order.id)))

    def find_available_for_assignment(self) -> List[Order]:
        stmt = (
            self._select()
            .options(selectinload(Order.merchant))
            .where(Order.status.in_(ASSIGNABLE_ORDER_STATUSES), Order.driver_id.is_(None))
            .order_by(Order.created_at)
        )
        return list(self.db.scalars(stmt))

    def save(self, order: Order) -> Order:
        self.db.add(order)
        self.db.flush()
        return order

    def delete(self, order: Order) -> None:
        self.db.delete(order)
        self.db.flush()


class SqlDeliveryStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_id(self, delivery_id: int, for_update: bool = False) -> Optional[Delivery]:
        stmt = select(Delivery).where(Delivery.id == delivery_id)
        if for_update:
            stmt = stmt.with_for_update()
        return self.db.execute(stmt).scalar_one_or_none()

    def find_by_order_id(self, order_id: int) -> Optional[Delivery]:
        return self.db.execute(select(Delivery).where(Delivery.order_id == order_id)).scalar_one_or_none()

    def find_by_driver_id(self, driver_id: int) -> List[Delivery]:
        stmt = select(Delivery).where(Delivery.driver_id == driver_id).order_by(Delivery.created_at.desc())
        return list(self.db.scalars(stmt))

    def find_by_status(self, status: DeliveryStatus) -> List[Delivery]:
        return list(self.db.scalars(select(Delivery).where(Delivery.status == status).order_by(Delivery.id)))

    def find_all(self) -> List[Delivery]:
        return list(self.db.scalars(select(Delivery).order_by(Delivery.id)))

    def save(self, delivery: Delivery) -> Delivery:
        self.db.add(delivery)
        self.db.flush()
        return delivery

    def delete(self, delivery: Delivery) -> None:
        self.db.delete(delivery)
        self.db.flush()


class SqlPaymentStore:
    def __init__(self, db: Session):
        self.db = db

    def find_by_order_id(self, order_id: int) -> List[Payment]:
        stmt = select(Payment).where(Payment.order_id == order_id).order_by(Payment.id)
        return list(self.db.scalars(stmt))

    def find_by_user_id(self, user_id: int, skip: int = 0, limit: int = 100) -> List[Payment]:
        stmt = select(Payment).where(Payment.user_id == user_id).order_by(Payment.id).offset(skip).limit(limit)
        return list(self.db.scalars(stmt))

    def find_all(self, skip: int = 0, limit: int = 100) -> List[Payment]:
        return list(self.db.scalars(select(Payment).order_by(Payment.id).offset(skip).limit(limit)))

    def find_created_between(self, start: datetime, end: datetime) -> List[Payment]:
        stmt = select(Payment).where(Payment.created_at.between(start, end)).order_by(Payment.id)
        return list(self.db.scalars(stmt))

    def save(self, payment: Payment) -> Payment:
        self.db.add(payment)
        self.db.flush()
        return payment
