# bakery/api/routers/cart.py
from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from bakery.api.deps import get_current_user, get_lock_service
from bakery.data.database import get_db
from bakery.data.models.user import UserModel
from bakery.domain.schemas import (
    AddCartItemIn,
    CartOut,
    GetCartQuery,
    RemoveCartItemIn,
    UpdateCartItemIn,
)
from bakery.services.cart_service import CartService
from bakery.services.lock_service import LockService

router = APIRouter(prefix="/cart", tags=["cart"])


def get_service(
    db: Session = Depends(get_db),
    lock_service: LockService = Depends(get_lock_service),
) -> CartService:
    return CartService(db=db, lock_service=lock_service)


@router.get("", response_model=CartOut)
def get_cart(
    session_id: str | None = Query(None, alias="sessionId", max_length=128),
    currency: str = Query("USD", min_length=3, max_length=3),
    user: UserModel | None = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    """The requester's ACTIVE cart, created on first access."""
    query = GetCartQuery(session_id=session_id, currency=currency)
    return svc.get_cart(user, query.session_id, query.currency)


@router.post("/items", response_model=CartOut, status_code=201)
def add_item(
    payload: AddCartItemIn,
    user: UserModel | None = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.add_item(
        user,
        variant_id=payload.variant_id,
        quantity=payload.quantity,
        currency=payload.currency,
        session_id=payload.session_id,
    )


@router.patch("/items/{item_id}", response_model=CartOut)
def update_item(
    item_id: int,
    payload: UpdateCartItemIn,
    user: UserModel | None = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    return svc.update_item_quantity(user, item_id, payload.quantity, session_id=payload.session_id)


@router.delete("/items/{item_id}", response_model=CartOut)
def remove_item(
    item_id: int,
    payload: RemoveCartItemIn | None = Body(None),
    session_id: str | None = Query(None, alias="sessionId", max_length=128),
    user: UserModel | None = Depends(get_current_user),
    svc: CartService = Depends(get_service),
):
    # guests may send the session in the body or as a query param
    if payload is not None and payload.session_id:
        session_id = payload.session_id
    return svc.remove_item(user, item_id, session_id=session_id)
