# bakery/repos/cart_repo.py
from datetime import datetime
from typing import List

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from bakery.data.models.cart import CartModel
from bakery.data.models.cart_item import CartItemModel
from bakery.domain.enums import CartStatus


class CartRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_cart(self, cart_id: int) -> CartModel | None:
        return self.db.get(CartModel, cart_id)

    def get_active_cart(self, user_id: int | None = None, session_id: str | None = None) -> CartModel | None:
        stmt = select(CartModel).where(CartModel.status == CartStatus.ACTIVE)
        if user_id is not None:
            stmt = stmt.where(CartModel.user_id == user_id)
        elif session_id:
            stmt = stmt.where(CartModel.session_id == session_id, CartModel.user_id.is_(None))
        else:
            return None
        return self.db.execute(stmt.order_by(CartModel.id)).scalars().first()

    def create_cart(self, cart: CartModel) -> CartModel:
        self.db.add(cart)
        self.db.commit()
        self.db.refresh(cart)
        return cart

    def get_cart_item(self, item_id: int) -> CartItemModel | None:
        return self.db.get(CartItemModel, item_id)

    def get_cart_item_by_variant(self, cart_id: int, variant_id: int) -> CartItemModel | None:
        return self.db.execute(
            select(CartItemModel).where(
                CartItemModel.cart_id == cart_id,
                CartItemModel.variant_id == variant_id,
            )
        ).scalar_one_or_none()

    def delete_lines_for_variants(self, variant_ids: List[int]) -> int:
        if not variant_ids:
            return 0
        stmt = (
            delete(CartItemModel)
            .where(CartItemModel.variant_id.in_(variant_ids))
            .execution_options(synchronize_session="fetch")
        )
        return self.db.execute(stmt).rowcount

    def list_stale_active(self, cutoff: datetime) -> List[CartModel]:
        return list(
            self.db.execute(
                select(CartModel).where(
                    CartModel.status == CartStatus.ACTIVE,
                    CartModel.updated_at < cutoff,
                )
            ).scalars()
        )

    def flush(self):
        self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, obj):
        self.db.refresh(obj)
