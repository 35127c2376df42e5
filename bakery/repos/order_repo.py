# bakery/repos/order_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from bakery.data.models.order import OrderAddressModel, OrderModel, OrderStatusEventModel


def _with_children(stmt):
    # populate_existing: payments / events are added by id, refresh loaded collections
    return stmt.options(
        selectinload(OrderModel.items),
        selectinload(OrderModel.payments),
        selectinload(OrderModel.shipments),
        selectinload(OrderModel.status_events),
        selectinload(OrderModel.shipping_address),
        selectinload(OrderModel.billing_address),
    ).execution_options(populate_existing=True)


class OrderRepo:
    def __init__(self, db: Session):
        self.db = db

    def create_address(self, data: dict) -> OrderAddressModel:
        address = OrderAddressModel(**data)
        self.db.add(address)
        self.db.flush()
        return address

    def add_order(self, order: OrderModel) -> OrderModel:
        # flush only, the checkout commits once at the end
        self.db.add(order)
        self.db.flush()
        return order

    def get_order(self, order_id: int) -> OrderModel | None:
        return self.db.execute(
            _with_children(select(OrderModel).where(OrderModel.id == order_id))
        ).scalar_one_or_none()

    def list_for_user(self, user_id: int) -> List[OrderModel]:
        stmt = (
            select(OrderModel)
            .where(OrderModel.user_id == user_id)
            .order_by(OrderModel.placed_at.desc(), OrderModel.id.desc())
        )
        return list(self.db.execute(_with_children(stmt)).scalars())

    def list_all(self) -> List[OrderModel]:
        stmt = select(OrderModel).order_by(OrderModel.placed_at.desc(), OrderModel.id.desc())
        return list(self.db.execute(_with_children(stmt)).scalars())

    def add_status_event(self, event: OrderStatusEventModel) -> OrderStatusEventModel:
        self.db.add(event)
        self.db.flush()
        return event

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()

    def refresh(self, obj):
        self.db.refresh(obj)
