from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from boozebuddies.api.dependencies import get_payment_service
from boozebuddies.application.errors import InvalidArgumentError
from boozebuddies.application.payment_service import PaymentService
from boozebuddies.application.schemas import PaymentMethodCheck, PaymentRead, RevenueRead
from boozebuddies.infrastructure.db import get_db
from boozebuddies.infrastructure.repositories import SqlUserDirectory

router = APIRouter(prefix="/payments", tags=["payments"])


@router.get("/", response_model=list[PaymentRead])
def list_payments(
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: PaymentService = Depends(get_payment_service),
):
    return service.list_all(skip, limit)


@router.get("/revenue", response_model=RevenueRead)
def total_revenue(
    start: datetime,
    end: datetime,
    service: PaymentService = Depends(get_payment_service),
):
    if start > end:
        raise InvalidArgumentError("start must not be after end")
    return RevenueRead(start=start, end=end, total_revenue=service.calculate_total_revenue(start, end))


@router.get("/order/{order_id}", response_model=Optional[PaymentRead])
def get_payment_for_order(order_id: int, service: PaymentService = Depends(get_payment_service)):
    return service.get_by_order(order_id)


@router.get("/user/{user_id}", response_model=list[PaymentRead])
def list_payments_by_user(
    user_id: int,
    skip: int = Query(0, ge=0),
    limit: int = Query(100, ge=1, le=500),
    service: PaymentService = Depends(get_payment_service),
):
    return service.list_by_user(user_id, skip, limit)


@router.post("/validate")
def validate_payment_method(
    payload: PaymentMethodCheck,
    db: Session = Depends(get_db),
    service: PaymentService = Depends(get_payment_service),
):
    user = SqlUserDirectory(db).find_by_id(payload.user_id)
    return {"valid": service.validate_payment_method(user, payload.payment_method)}
