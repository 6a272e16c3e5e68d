from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from boozebuddies.api.dependencies import get_order_matcher, get_order_service
from boozebuddies.application.matcher import OrderMatcher, eta_minutes
from boozebuddies.application.order_service import OrderService
from boozebuddies.application.schemas import (
    DriverOrderRead,
    EstimatedDeliveryUpdate,
    OrderCreate,
    OrderRead,
    OrderStatusUpdate,
)
from boozebuddies.core_settings import Settings, get_settings
from boozebuddies.domain.models import Order, OrderItem
from boozebuddies.infrastructure.db import get_db
from boozebuddies.infrastructure.repositories import SqlMerchantDirectory, SqlUserDirectory

router = APIRouter(prefix="/orders", tags=["orders"])


def _order_from_payload(payload: OrderCreate, db: Session) -> Order:
    """Unknown user/merchant ids leave the reference empty; the validator reports it."""
    return Order(
        user=SqlUserDirectory(db).find_by_id(payload.user_id),
        merchant=SqlMerchantDirectory(db).find_by_id(payload.merchant_id),
        delivery_address=payload.delivery_address,
        special_instructions=payload.special_instructions,
        promo_code=payload.promo_code,
        items=[
            OrderItem(product_id=item.product_id, quantity=item.quantity, unit_price=item.unit_price)
            for item in payload.items
        ],
    )


@router.get("/", response_model=list[OrderRead])
def list_orders(service: OrderService = Depends(get_order_service)):
    return service.list_all()


@router.get("/by-distance", response_model=list[DriverOrderRead])
def list_orders_by_distance(
    latitude: float = Query(..., ge=-90, le=90),
    longitude: float = Query(..., ge=-180, le=180),
    radius_km: float = Query(..., gt=0),
    matcher: OrderMatcher = Depends(get_order_matcher),
    settings: Settings = Depends(get_settings),
):
    """Unassigned orders whose merchant is within radius_km, nearest first, with an ETA."""
    results = []
    for match in matcher.find_within_radius(latitude, longitude, radius_km):
        order = OrderRead.model_validate(match.order).model_dump()
        results.append(DriverOrderRead(
            **order,
            merchant_name=match.order.merchant.name,
            distance_km=round(match.distance_km, 3),
            eta_min=eta_minutes(match.distance_km, settings.AVERAGE_SPEED_KMH, settings.PICKUP_BUFFER_MINUTES),
        ))
    return results


@router.get("/user/{user_id}", response_model=list[OrderRead])
def list_orders_by_user(user_id: int, service: OrderService = Depends(get_order_service)):
    return service.list_by_user(user_id)


@router.get("/merchant/{merchant_id}", response_model=list[OrderRead])
def list_orders_by_merchant(merchant_id: int, service: OrderService = Depends(get_order_service)):
    return service.list_by_merchant(merchant_id)


@router.get("/driver/{driver_id}", response_model=list[OrderRead])
def list_orders_by_driver(driver_id: int, service: OrderService = Depends(get_order_service)):
    return service.list_by_driver(driver_id)


@router.get("/{order_id}", response_model=OrderRead)
def get_order(order_id: int, service: OrderService = Depends(get_order_service)):
    return service.get(order_id)


@router.post("/", response_model=OrderRead, status_code=201)
def create_order(
    payload: OrderCreate,
    db: Session = Depends(get_db),
    service: OrderService = Depends(get_order_service),
):
    order = service.create(_order_from_payload(payload, db), payload.payment_method)
    db.commit()
    return order


@router.put("/{order_id}/status", response_model=OrderRead)
def update_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    db: Session = Depends(get_db),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_status(order_id, payload.status)
    db.commit()
    return order


@router.post("/{order_id}/cancel", response_model=OrderRead)
def cancel_order(
    order_id: int,
    db: Session = Depends(get_db),
    service: OrderService = Depends(get_order_service),
):
    order = service.cancel(order_id)
    db.commit()
    return order


@router.put("/{order_id}/estimated-delivery", response_model=OrderRead)
def update_estimated_delivery(
    order_id: int,
    payload: EstimatedDeliveryUpdate,
    db: Session = Depends(get_db),
    service: OrderService = Depends(get_order_service),
):
    order = service.update_estimated_delivery_time(order_id, payload.estimated_delivery_time)
    db.commit()
    return order
