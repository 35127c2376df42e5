from sqlalchemy import Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from bakery.data.database import Base
from bakery.data.models._columns import enum_column_type, utcnow
from bakery.domain.enums import OrderStatus, PaymentStatus, ShipmentStatus


class OrderAddressModel(Base):
    __tablename__ = "order_addresses"

    id = Column(Integer, primary_key=True)
    full_name = Column(String(200), nullable=False)
    phone = Column(String(50), nullable=True)
    line1 = Column(String(200), nullable=False)
    line2 = Column(String(200), nullable=True)
    city = Column(String(100), nullable=False)
    state = Column(String(100), nullable=True)
    postal_code = Column(String(20), nullable=True)
    country = Column(String(100), nullable=False)


class OrderModel(Base):
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True)
    order_number = Column(String(32), nullable=False, unique=True)
    cart_id = Column(Integer, ForeignKey("carts.id"), nullable=False)
    # guest carts checked out by an admin produce orders without a user
    user_id = Column(Integer, ForeignKey("users.id"), nullable=True, index=True)

    status = Column(enum_column_type(OrderStatus), nullable=False, default=OrderStatus.PENDING)
    payment_status = Column(enum_column_type(PaymentStatus), nullable=False, default=PaymentStatus.PENDING)
    shipment_status = Column(enum_column_type(ShipmentStatus), nullable=False, default=ShipmentStatus.PREPARING)

    subtotal = Column(Numeric(10, 2), nullable=False)
    tax = Column(Numeric(10, 2), nullable=False)
    shipping_fee = Column(Numeric(10, 2), nullable=False)
    discount_total = Column(Numeric(10, 2), nullable=False, default=0)
    total = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    notes = Column(Text, nullable=True)

    shipping_address_id = Column(Integer, ForeignKey("order_addresses.id"), nullable=False)
    billing_address_id = Column(Integer, ForeignKey("order_addresses.id"), nullable=False)

    placed_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)

    shipping_address = relationship("OrderAddressModel", foreign_keys=[shipping_address_id])
    billing_address = relationship("OrderAddressModel", foreign_keys=[billing_address_id])

    items = relationship(
        "OrderItemModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderItemModel.id",
    )
    status_events = relationship(
        "OrderStatusEventModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="OrderStatusEventModel.id.desc()",
    )
    payments = relationship(
        "PaymentModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="PaymentModel.id.desc()",
    )
    shipments = relationship(
        "ShipmentModel",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="ShipmentModel.id",
    )


class OrderItemModel(Base):
    __tablename__ = "order_items"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    variant_id = Column(Integer, ForeignKey("product_variants.id", ondelete="SET NULL"), nullable=True)

    # copied at order time
    product_name = Column(String(200), nullable=False)
    variant_name = Column(String(100), nullable=False)
    quantity = Column(Integer, nullable=False)
    unit_price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    image_url = Column(String(500), nullable=True)

    order = relationship("OrderModel", back_populates="items")


class OrderStatusEventModel(Base):
    __tablename__ = "order_status_events"

    id = Column(Integer, primary_key=True)
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    status = Column(enum_column_type(OrderStatus), nullable=False)
    note = Column(Text, nullable=True)
    created_by_id = Column(Integer, ForeignKey("users.id"), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    order = relationship("OrderModel", back_populates="status_events")
