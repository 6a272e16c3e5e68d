from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Enum as SAEnum, Float, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, relationship

from boozebuddies.application.errors import InvalidArgumentError


class Base(DeclarativeBase):
    pass


class _ParseableStatus(str, Enum):
    @classmethod
    def parse(cls, text: Optional[str]):
        """Case-insensitive lookup by name, e.g. ``"confirmed"`` -> ``CONFIRMED``."""
        key = (text or "").strip().upper()
        try:
            return cls[key]
        except KeyError:
            allowed = ", ".join(member.name for member in cls)
            raise InvalidArgumentError(
                f"Unknown {cls.__name__} '{text}'; expected one of: {allowed}"
            ) from None


class OrderStatus(_ParseableStatus):
    PENDING = "PENDING"
    CONFIRMED = "CONFIRMED"
    PREPARING = "PREPARING"
    READY_FOR_PICKUP = "READY_FOR_PICKUP"
    PICKING_UP = "PICKING_UP"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"
    FAILED = "FAILED"


class DeliveryStatus(_ParseableStatus):
    PENDING = "PENDING"
    ASSIGNED = "ASSIGNED"
    PICKED_UP = "PICKED_UP"
    IN_TRANSIT = "IN_TRANSIT"
    DELIVERED = "DELIVERED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"


class PaymentStatus(_ParseableStatus):
    PENDING = "PENDING"
    AUTHORIZED = "AUTHORIZED"
    CAPTURED = "CAPTURED"
    FAILED = "FAILED"
    REFUNDED = "REFUNDED"
    PARTIALLY_REFUNDED = "PARTIALLY_REFUNDED"


class CertificationStatus(_ParseableStatus):
    PENDING = "PENDING"
    APPROVED = "APPROVED"
    REVOKED = "REVOKED"


_ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {OrderStatus.CONFIRMED, OrderStatus.CANCELLED, OrderStatus.FAILED},
    OrderStatus.CONFIRMED: {OrderStatus.PREPARING, OrderStatus.CANCELLED, OrderStatus.FAILED},
    OrderStatus.PREPARING: {OrderStatus.READY_FOR_PICKUP, OrderStatus.CANCELLED, OrderStatus.FAILED},
    OrderStatus.READY_FOR_PICKUP: {
        OrderStatus.PICKING_UP,
        OrderStatus.PICKED_UP,
        OrderStatus.COMPLETED,
        OrderStatus.CANCELLED,
        OrderStatus.FAILED,
    },
    OrderStatus.PICKING_UP: {OrderStatus.PICKED_UP, OrderStatus.CANCELLED, OrderStatus.FAILED},
    OrderStatus.PICKED_UP: {
        OrderStatus.IN_TRANSIT,
        OrderStatus.DELIVERED,
        OrderStatus.CANCELLED,
        OrderStatus.FAILED,
    },
    OrderStatus.IN_TRANSIT: {OrderStatus.DELIVERED, OrderStatus.CANCELLED, OrderStatus.FAILED},
    OrderStatus.DELIVERED: {OrderStatus.COMPLETED, OrderStatus.CANCELLED},
    OrderStatus.COMPLETED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
    OrderStatus.FAILED: set(),  # Terminal
}

_CANCELLABLE_ORDER_STATUSES = {OrderStatus.PENDING, OrderStatus.CONFIRMED}

# Orders a driver may still be matched to
ASSIGNABLE_ORDER_STATUSES = (
    OrderStatus.PENDING,
    OrderStatus.CONFIRMED,
    OrderStatus.PREPARING,
    OrderStatus.READY_FOR_PICKUP,
)

# Main line of the delivery state machine, in order
_DELIVERY_PROGRESSION = (
    DeliveryStatus.PENDING,
    DeliveryStatus.ASSIGNED,
    DeliveryStatus.PICKED_UP,
    DeliveryStatus.IN_TRANSIT,
    DeliveryStatus.DELIVERED,
)
_TERMINAL_DELIVERY_STATUSES = {
    DeliveryStatus.DELIVERED,
    DeliveryStatus.CANCELLED,
    DeliveryStatus.FAILED,
}
INACTIVE_DELIVERY_STATUSES = (DeliveryStatus.DELIVERED, DeliveryStatus.CANCELLED)


def _status_column(enum_cls):
    # Stored as the member name in a plain VARCHAR so new states need no DDL
    return SAEnum(enum_cls, native_enum=False, length=30, validate_strings=True)


class User(Base):
    __tablename__ = "users"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    email: Mapped[str] = mapped_column(String(255), unique=True)
    phone: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    age_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)


class Merchant(Base):
    __tablename__ = "merchants"
    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(200))
    address: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)
    # Nullable: merchants without coordinates are skipped by distance queries
    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None


class Product(Base):
    __tablename__ = "products"
    id: Mapped[int] = mapped_column(primary_key=True)
    merchant_id: Mapped[int] = mapped_column(ForeignKey("merchants.id"))
    name: Mapped[str] = mapped_column(String(200))
    price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    is_alcohol: Mapped[bool] = mapped_column(Boolean, default=False)
    available: Mapped[bool] = mapped_column(Boolean, default=True)
    merchant: Mapped[Merchant] = relationship()


class Driver(Base):
    __tablename__ = "drivers"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[Optional[int]] = mapped_column(ForeignKey("users.id"), unique=True, nullable=True)
    name: Mapped[str] = mapped_column(String(200))
    vehicle_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    is_available: Mapped[bool] = mapped_column(Boolean, default=True)
    certification_status: Mapped[CertificationStatus] = mapped_column(
        _status_column(CertificationStatus), default=CertificationStatus.PENDING
    )
    current_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    current_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    total_deliveries: Mapped[int] = mapped_column(Integer, default=0)
    user: Mapped[Optional[User]] = relationship()

    def is_certified(self) -> bool:
        return self.certification_status == CertificationStatus.APPROVED

    def can_accept_deliveries(self) -> bool:
        return bool(self.is_available) and self.is_certified()


class Order(Base):
    __tablename__ = "orders"
    id: Mapped[int] = mapped_column(primary_key=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    merchant_id: Mapped[int] = mapped_column(ForeignKey("merchants.id"), index=True)
    driver_id: Mapped[Optional[int]] = mapped_column(ForeignKey("drivers.id"), nullable=True, index=True)
    status: Mapped[OrderStatus] = mapped_column(_status_column(OrderStatus), index=True)
    # Null until priced; a caller-supplied total is kept as is
    total_amount: Mapped[Optional[Decimal]] = mapped_column(Numeric(10, 2), nullable=True)
    delivery_address: Mapped[str] = mapped_column(String(255))
    special_instructions: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    promo_code: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    estimated_delivery_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    user: Mapped[Optional[User]] = relationship()
    merchant: Mapped[Optional[Merchant]] = relationship()
    driver: Mapped[Optional[Driver]] = relationship()
    items: Mapped[list["OrderItem"]] = relationship(
        back_populates="order", cascade="all, delete-orphan", order_by="OrderItem.line_no"
    )
    delivery: Mapped[Optional["Delivery"]] = relationship(back_populates="order")
    payments: Mapped[list["Payment"]] = relationship(back_populates="order", order_by="Payment.id")

    __mapper_args__ = {"version_id_col": version}

    def calculate_total(self) -> None:
        self.total_amount = sum(
            (item.subtotal for item in self.items if item.subtotal is not None),
            Decimal("0"),
        )

    def can_be_cancelled(self) -> bool:
        return self.status in _CANCELLABLE_ORDER_STATUSES

    def is_valid_status_transition(self, new_status: OrderStatus) -> bool:
        return new_status in _ORDER_TRANSITIONS.get(self.status, set())

    def has_alcohol(self) -> bool:
        return any(item.product is not None and item.product.is_alcohol for item in self.items)


class OrderItem(Base):
    __tablename__ = "order_items"
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"))
    # Nullable so order history survives product removal
    product_id: Mapped[Optional[int]] = mapped_column(ForeignKey("products.id"), nullable=True)
    line_no: Mapped[int] = mapped_column(Integer)
    name: Mapped[str] = mapped_column(String(200))
    unit_price: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    quantity: Mapped[int] = mapped_column(Integer)
    subtotal: Mapped[Decimal] = mapped_column(Numeric(10, 2))

    order: Mapped[Order] = relationship(back_populates="items")
    product: Mapped[Optional[Product]] = relationship()


class Delivery(Base):
    __tablename__ = "deliveries"
    id: Mapped[int] = mapped_column(primary_key=True)
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), unique=True)
    driver_id: Mapped[Optional[int]] = mapped_column(ForeignKey("drivers.id"), nullable=True, index=True)
    status: Mapped[DeliveryStatus] = mapped_column(_status_column(DeliveryStatus), index=True)
    delivery_address: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    delivery_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    delivery_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    pickup_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    delivered_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    estimated_delivery_time: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    # Age check at the door; only the last 4 characters of the ID are kept
    age_verified: Mapped[bool] = mapped_column(Boolean, default=False)
    id_type: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    id_number: Mapped[Optional[str]] = mapped_column(String(4), nullable=True)
    age_verified_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    current_latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    current_longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    last_location_update: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    cancellation_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    order: Mapped[Order] = relationship(back_populates="delivery")
    driver: Mapped[Optional[Driver]] = relationship()

    __mapper_args__ = {"version_id_col": version}

    def is_terminal(self) -> bool:
        return self.status in _TERMINAL_DELIVERY_STATUSES

    def is_active(self) -> bool:
        return self.status not in INACTIVE_DELIVERY_STATUSES

    def is_valid_status_transition(self, new_status: DeliveryStatus) -> bool:
        if self.status is None:
            return True
        if self.is_terminal():
            return False
        if new_status in (DeliveryStatus.CANCELLED, DeliveryStatus.FAILED):
            return True
        return _DELIVERY_PROGRESSION.index(new_status) > _DELIVERY_PROGRESSION.index(self.status)


class Payment(Base):
    __tablename__ = "payments"
    id: Mapped[int] = mapped_column(primary_key=True)
    # Not unique: a refund is appended as its own row next to the authorization
    order_id: Mapped[int] = mapped_column(ForeignKey("orders.id"), index=True)
    user_id: Mapped[int] = mapped_column(ForeignKey("users.id"), index=True)
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2))
    payment_method: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)
    status: Mapped[PaymentStatus] = mapped_column(_status_column(PaymentStatus), index=True)
    transaction_id: Mapped[Optional[str]] = mapped_column(String(100), nullable=True, unique=True)
    refund_reason: Mapped[Optional[str]] = mapped_column(String(500), nullable=True)
    created_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True, index=True)
    updated_at: Mapped[Optional[datetime]] = mapped_column(DateTime(timezone=True), nullable=True)

    order: Mapped[Order] = relationship(back_populates="payments")
    user: Mapped[Optional[User]] = relationship()
