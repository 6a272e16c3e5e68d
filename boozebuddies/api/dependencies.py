"""Wires the engine services to the request-scoped SQLAlchemy session."""

from fastapi import Depends
from sqlalchemy.orm import Session

from boozebuddies.application.clock import SystemClock
from boozebuddies.application.delivery_service import DeliveryService
from boozebuddies.application.matcher import OrderMatcher
from boozebuddies.application.notification_service import NotificationService
from boozebuddies.application.order_service import OrderService
from boozebuddies.application.payment_service import PaymentService
from boozebuddies.application.validator import OrderValidator
from boozebuddies.core_settings import Settings, get_settings
from boozebuddies.infrastructure.db import get_db
from boozebuddies.infrastructure.repositories import (
    SqlDeliveryStore,
    SqlOrderStore,
    SqlPaymentStore,
    SqlProductCatalog,
    SqlUserDirectory,
)

_clock = SystemClock()


def get_clock():
    return _clock


def get_payment_service(db: Session = Depends(get_db), clock=Depends(get_clock)) -> PaymentService:
    return PaymentService(SqlPaymentStore(db), clock)


def get_order_service(
    db: Session = Depends(get_db),
    clock=Depends(get_clock),
    settings: Settings = Depends(get_settings),
) -> OrderService:
    return OrderService(
        orders=SqlOrderStore(db),
        deliveries=SqlDeliveryStore(db),
        validator=OrderValidator(SqlProductCatalog(db), SqlUserDirectory(db), clock),
        payments=PaymentService(SqlPaymentStore(db), clock),
        notifications=NotificationService(),
        clock=clock,
        default_payment_method=settings.DEFAULT_PAYMENT_METHOD,
    )


def get_delivery_service(db: Session = Depends(get_db), clock=Depends(get_clock)) -> DeliveryService:
    return DeliveryService(SqlDeliveryStore(db), clock)


def get_order_matcher(db: Session = Depends(get_db)) -> OrderMatcher:
    return OrderMatcher(SqlOrderStore(db))
