from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String
from sqlalchemy.orm import relationship

from bakery.data.database import Base
from bakery.data.models._columns import enum_column_type, utcnow
from bakery.domain.enums import PaymentMethod, PaymentStatus


class PaymentModel(Base):
    __tablename__ = "payments"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)

    provider = Column(String(50), nullable=False, default="mock-gateway")
    method = Column(enum_column_type(PaymentMethod), nullable=False)
    status = Column(enum_column_type(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    transaction_id = Column(String(100), nullable=True)
    requested_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    processed_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    order = relationship("OrderModel", back_populates="payments")
