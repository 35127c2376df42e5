from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from bakery.data.database import Base
from bakery.data.models._columns import enum_column_type, utcnow
from bakery.domain.enums import InventoryReason


class InventoryLevelModel(Base):
    __tablename__ = "inventory_levels"

    id = Column(Integer, primary_key=True)
    variant_id = Column(
        Integer,
        ForeignKey("product_variants.id", ondelete="CASCADE"),
        nullable=False,
        unique=True,
    )

    quantity = Column(Integer, nullable=False, default=0)
    # informational only, never subtracted from quantity
    reserved = Column(Integer, nullable=False, default=0)
    low_stock_threshold = Column(Integer, nullable=False, default=0)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    variant = relationship("ProductVariantModel", back_populates="inventory")
    transactions = relationship(
        "InventoryTransactionModel",
        back_populates="inventory_level",
        cascade="all, delete-orphan",
        order_by="InventoryTransactionModel.id",
    )

    __table_args__ = (
        CheckConstraint("quantity >= 0", name="ck_inventory_quantity_non_negative"),
        CheckConstraint("reserved >= 0", name="ck_inventory_reserved_non_negative"),
    )

    @property
    def is_low_stock(self) -> bool:
        return self.quantity <= self.low_stock_threshold


class InventoryTransactionModel(Base):
    """Append-only ledger row. Never updated; removed only together with its product."""

    __tablename__ = "inventory_transactions"

    id = Column(Integer, primary_key=True)
    inventory_level_id = Column(
        Integer,
        ForeignKey("inventory_levels.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    variant_id = Column(Integer, nullable=False, index=True)

    quantity = Column(Integer, nullable=False)  # signed delta
    reason = Column(enum_column_type(InventoryReason), nullable=False)
    reference = Column(String(200), nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    inventory_level = relationship("InventoryLevelModel", back_populates="transactions")
