# bakery/api/routers/orders.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bakery.api.deps import require_admin, require_user
from bakery.data.database import get_db
from bakery.data.models.user import UserModel
from bakery.domain.schemas import OrderCreate, OrderOut, OrderStatusUpdate, TrackingOut
from bakery.services.order_service import OrderService

router = APIRouter(prefix="/orders", tags=["orders"])


def get_service(db: Session = Depends(get_db)) -> OrderService:
    return OrderService(db)


@router.post("", response_model=OrderOut, status_code=201)
def create_order(
    payload: OrderCreate,
    user: UserModel = Depends(require_user),
    svc: OrderService = Depends(get_service),
):
    """
    Places an order from the requester's ACTIVE cart.
    The confirmation notification is sent asynchronously.
    """
    return svc.create_order_from_cart(
        user,
        payload.cart_id,
        shipping_address=payload.shipping_address.model_dump(),
        billing_address=payload.billing_address.model_dump() if payload.billing_address else None,
        notes=payload.notes,
    )


@router.get("", response_model=List[OrderOut])
def list_orders(
    all_orders: bool = Query(False, alias="all"),
    user: UserModel = Depends(require_user),
    svc: OrderService = Depends(get_service),
):
    """The requester's orders. Admins pass `all=true` for every customer's orders."""
    if all_orders:
        return svc.list_all_orders(user)
    return svc.list_orders_for_user(user)


@router.get("/{order_id}", response_model=OrderOut)
def get_order(
    order_id: int,
    user: UserModel = Depends(require_user),
    svc: OrderService = Depends(get_service),
):
    return svc.get_order(user, order_id)


@router.get("/{order_id}/tracking", response_model=TrackingOut)
def get_tracking(
    order_id: int,
    user: UserModel = Depends(require_user),
    svc: OrderService = Depends(get_service),
):
    return svc.get_tracking(user, order_id)


@router.patch("/{order_id}/status", response_model=OrderOut)
def update_status(
    order_id: int,
    payload: OrderStatusUpdate,
    admin: UserModel = Depends(require_admin),
    svc: OrderService = Depends(get_service),
):
    return svc.update_status(admin, order_id, payload.status, payload.note)
