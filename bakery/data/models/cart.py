#bakery/data/models/cart.py
from sqlalchemy import Column, DateTime, ForeignKey, Index, Integer, String, text
from sqlalchemy.orm import relationship

from bakery.data.database import Base
from bakery.data.models._columns import enum_column_type, utcnow
from bakery.domain.enums import CartStatus


class CartModel(Base):
    __tablename__ = "carts"

    id = Column(Integer, primary_key=True)
    # exactly one of user_id / session_id identifies the owner
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    session_id = Column(String(128), nullable=True)

    status = Column(enum_column_type(CartStatus), nullable=False, default=CartStatus.ACTIVE)
    currency = Column(String(3), nullable=False, default="USD")
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    items = relationship(
        "CartItemModel",
        back_populates="cart",
        cascade="all, delete-orphan",
        order_by="CartItemModel.id",
    )

    # at most one ACTIVE cart per owner
    __table_args__ = (
        Index(
            "uq_carts_active_user",
            "user_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE' AND user_id IS NOT NULL"),
            sqlite_where=text("status = 'ACTIVE' AND user_id IS NOT NULL"),
        ),
        Index(
            "uq_carts_active_session",
            "session_id",
            unique=True,
            postgresql_where=text("status = 'ACTIVE' AND session_id IS NOT NULL"),
            sqlite_where=text("status = 'ACTIVE' AND session_id IS NOT NULL"),
        ),
    )

    @property
    def is_active(self) -> bool:
        return self.status == CartStatus.ACTIVE
