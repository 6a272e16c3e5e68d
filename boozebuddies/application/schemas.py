from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from boozebuddies.domain.models import DeliveryStatus, OrderStatus, PaymentStatus


class OrderItemCreate(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)
    # Taken from the product when omitted
    unit_price: Optional[Decimal] = Field(default=None, ge=0)


class OrderCreate(BaseModel):
    user_id: int
    merchant_id: int
    delivery_address: str = Field(min_length=1, max_length=255)
    items: list[OrderItemCreate]
    special_instructions: Optional[str] = None
    promo_code: Optional[str] = None
    payment_method: Optional[str] = None


class OrderStatusUpdate(BaseModel):
    status: str


class EstimatedDeliveryUpdate(BaseModel):
    estimated_delivery_time: datetime


class OrderItemRead(BaseModel):
    id: int
    product_id: Optional[int] = None
    line_no: int
    name: str
    unit_price: Decimal
    quantity: int
    subtotal: Decimal
    model_config = ConfigDict(from_attributes=True)


class OrderRead(BaseModel):
    id: int
    user_id: int
    merchant_id: int
    driver_id: Optional[int] = None
    status: OrderStatus
    total_amount: Optional[Decimal] = None
    delivery_address: str
    special_instructions: Optional[str] = None
    promo_code: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    estimated_delivery_time: Optional[datetime] = None
    items: list[OrderItemRead]
    model_config = ConfigDict(from_attributes=True)


class DriverOrderRead(OrderRead):
    """Order as offered to a nearby driver"""
    merchant_name: Optional[str] = None
    distance_km: float
    eta_min: int


class DeliveryAssign(BaseModel):
    order_id: int
    driver_id: int


class DeliveryStatusUpdate(BaseModel):
    status: str


class AgeVerificationUpdate(BaseModel):
    age_verified: bool
    id_type: Optional[str] = None
    id_number: Optional[str] = None


class LocationUpdate(BaseModel):
    latitude: float = Field(ge=-90, le=90)
    longitude: float = Field(ge=-180, le=180)


class DeliveryCancel(BaseModel):
    reason: str = Field(min_length=1, max_length=500)


class DeliveryRead(BaseModel):
    id: int
    order_id: int
    driver_id: Optional[int] = None
    status: DeliveryStatus
    delivery_address: Optional[str] = None
    pickup_time: Optional[datetime] = None
    delivered_time: Optional[datetime] = None
    estimated_delivery_time: Optional[datetime] = None
    age_verified: bool = False
    id_type: Optional[str] = None
    id_number: Optional[str] = None
    age_verified_at: Optional[datetime] = None
    current_latitude: Optional[float] = None
    current_longitude: Optional[float] = None
    last_location_update: Optional[datetime] = None
    cancellation_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PaymentRead(BaseModel):
    id: int
    order_id: int
    user_id: int
    amount: Decimal
    payment_method: Optional[str] = None
    status: PaymentStatus
    transaction_id: Optional[str] = None
    refund_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)


class PaymentMethodCheck(BaseModel):
    user_id: int
    payment_method: str


class RevenueRead(BaseModel):
    start: datetime
    end: datetime
    total_revenue: Decimal
