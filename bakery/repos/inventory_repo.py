# bakery/repos/inventory_repo.py
from typing import List

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from bakery.data.models._columns import utcnow
from bakery.data.models.inventory import InventoryLevelModel, InventoryTransactionModel


class InventoryRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_level(self, variant_id: int) -> InventoryLevelModel | None:
        return self.db.execute(
            select(InventoryLevelModel)
            .where(InventoryLevelModel.variant_id == variant_id)
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def apply_delta(self, variant_id: int, delta: int) -> int:
        """
        quantity = quantity + delta, only if the result stays >= 0.

        The condition is evaluated against the row the database holds at
        update time (row locked), not against what this session read earlier,
        so two racing decrements for the last unit cannot both succeed.
        Returns rowcount: 0 means the guard rejected the change.
        """
        stmt = (
            update(InventoryLevelModel)
            .where(
                InventoryLevelModel.variant_id == variant_id,
                InventoryLevelModel.quantity + delta >= 0,
            )
            .values(
                quantity=InventoryLevelModel.quantity + delta,
                updated_at=utcnow(),
            )
            .execution_options(synchronize_session=False)
        )
        return self.db.execute(stmt).rowcount

    def current_quantity(self, variant_id: int) -> int | None:
        return self.db.execute(
            select(InventoryLevelModel.quantity).where(InventoryLevelModel.variant_id == variant_id)
        ).scalar_one_or_none()

    def add_level(self, level: InventoryLevelModel) -> InventoryLevelModel:
        self.db.add(level)
        self.db.flush()
        return level

    def add_transaction(self, txn: InventoryTransactionModel) -> InventoryTransactionModel:
        self.db.add(txn)
        self.db.flush()
        return txn

    def list_transactions(self, variant_id: int) -> List[InventoryTransactionModel]:
        return list(
            self.db.execute(
                select(InventoryTransactionModel)
                .where(InventoryTransactionModel.variant_id == variant_id)
                .order_by(InventoryTransactionModel.id.desc())
            ).scalars()
        )

    def ledger_balance(self, variant_id: int) -> int:
        return self.db.execute(
            select(func.coalesce(func.sum(InventoryTransactionModel.quantity), 0)).where(
                InventoryTransactionModel.variant_id == variant_id
            )
        ).scalar_one()

    def list_low_stock(self) -> List[InventoryLevelModel]:
        return list(
            self.db.execute(
                select(InventoryLevelModel)
                .where(InventoryLevelModel.quantity <= InventoryLevelModel.low_stock_threshold)
                .order_by(InventoryLevelModel.quantity)
            ).scalars()
        )

    def refresh(self, obj):
        self.db.refresh(obj)

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
