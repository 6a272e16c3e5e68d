from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from boozebuddies.api.dependencies import get_delivery_service
from boozebuddies.application.delivery_service import DeliveryService
from boozebuddies.application.errors import DriverNotFoundError, OrderNotFoundError
from boozebuddies.application.schemas import (
    AgeVerificationUpdate,
    DeliveryAssign,
    DeliveryCancel,
    DeliveryRead,
    DeliveryStatusUpdate,
    LocationUpdate,
)
from boozebuddies.domain.models import DeliveryStatus
from boozebuddies.infrastructure.db import get_db
from boozebuddies.infrastructure.repositories import SqlDriverDirectory, SqlOrderStore

router = APIRouter(prefix="/deliveries", tags=["deliveries"])


@router.get("/", response_model=list[DeliveryRead])
def list_deliveries(service: DeliveryService = Depends(get_delivery_service)):
    return service.list_all()


@router.get("/active", response_model=list[DeliveryRead])
def list_active_deliveries(service: DeliveryService = Depends(get_delivery_service)):
    return service.list_active()


@router.get("/order/{order_id}", response_model=Optional[DeliveryRead])
def get_delivery_by_order(order_id: int, service: DeliveryService = Depends(get_delivery_service)):
    return service.get_by_order(order_id)


@router.get("/driver/{driver_id}", response_model=list[DeliveryRead])
def list_deliveries_by_driver(driver_id: int, service: DeliveryService = Depends(get_delivery_service)):
    return service.list_by_driver(driver_id)


@router.get("/{delivery_id}", response_model=DeliveryRead)
def get_delivery(delivery_id: int, service: DeliveryService = Depends(get_delivery_service)):
    return service.get(delivery_id)


@router.post("/assign", response_model=DeliveryRead)
def assign_driver(
    payload: DeliveryAssign,
    db: Session = Depends(get_db),
    service: DeliveryService = Depends(get_delivery_service),
):
    order = SqlOrderStore(db).find_by_id(payload.order_id, for_update=True)
    if order is None:
        raise OrderNotFoundError(payload.order_id)
    driver = SqlDriverDirectory(db).find_by_id(payload.driver_id)
    if driver is None:
        raise DriverNotFoundError(payload.driver_id)
    delivery = service.assign(order, driver)
    db.commit()
    return delivery


def _transition(db: Session, service: DeliveryService, delivery_id: int, status: DeliveryStatus):
    delivery = service.update_status(delivery_id, status)
    db.commit()
    return delivery


@router.put("/{delivery_id}/status", response_model=DeliveryRead)
def update_delivery_status(
    delivery_id: int,
    payload: DeliveryStatusUpdate,
    db: Session = Depends(get_db),
    service: DeliveryService = Depends(get_delivery_service),
):
    return _transition(db, service, delivery_id, DeliveryStatus.parse(payload.status))


@router.post("/{delivery_id}/pickup", response_model=DeliveryRead)
def mark_picked_up(
    delivery_id: int,
    db: Session = Depends(get_db),
    service: DeliveryService = Depends(get_delivery_service),
):
    return _transition(db, service, delivery_id, DeliveryStatus.PICKED_UP)


@router.post("/{delivery_id}/deliver", response_model=DeliveryRead)
def mark_delivered(
    delivery_id: int,
    db: Session = Depends(get_db),
    service: DeliveryService = Depends(get_delivery_service),
):
    return _transition(db, service, delivery_id, DeliveryStatus.DELIVERED)


@router.post("/{delivery_id}/verify-age", response_model=DeliveryRead)
def verify_age(
    delivery_id: int,
    payload: AgeVerificationUpdate,
    db: Session = Depends(get_db),
    service: DeliveryService = Depends(get_delivery_service),
):
    delivery = service.update_age_verification(
        delivery_id, payload.age_verified, payload.id_type, payload.id_number
    )
    db.commit()
    return delivery


@router.put("/{delivery_id}/location", response_model=DeliveryRead)
def update_location(
    delivery_id: int,
    payload: LocationUpdate,
    db: Session = Depends(get_db),
    service: DeliveryService = Depends(get_delivery_service),
):
    delivery = service.update_location(delivery_id, payload.latitude, payload.longitude)
    db.commit()
    return delivery


@router.post("/{delivery_id}/cancel", response_model=DeliveryRead)
def cancel_delivery(
    delivery_id: int,
    payload: DeliveryCancel,
    db: Session = Depends(get_db),
    service: DeliveryService = Depends(get_delivery_service),
):
    delivery = service.cancel(delivery_id, payload.reason)
    db.commit()
    return delivery
