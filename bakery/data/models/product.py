from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, Numeric, String, Text
from sqlalchemy.orm import relationship

from bakery.data.database import Base
from bakery.data.models._columns import enum_column_type, utcnow
from bakery.domain.enums import ProductStatus


class ProductModel(Base):
    __tablename__ = "products"

    id = Column(Integer, primary_key=True)
    name = Column(String(200), nullable=False)
    slug = Column(String(200), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    status = Column(enum_column_type(ProductStatus), nullable=False, default=ProductStatus.DRAFT)
    hero_image = Column(String(500), nullable=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    variants = relationship(
        "ProductVariantModel",
        back_populates="product",
        cascade="all, delete-orphan",
        order_by="ProductVariantModel.id",
    )

    @property
    def is_published(self) -> bool:
        return self.status == ProductStatus.ACTIVE


class ProductVariantModel(Base):
    __tablename__ = "product_variants"

    id = Column(Integer, primary_key=True)
    product_id = Column(Integer, ForeignKey("products.id", ondelete="CASCADE"), nullable=False, index=True)

    sku = Column(String(64), nullable=False, unique=True)
    label = Column(String(100), nullable=False)
    price = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    product = relationship("ProductModel", back_populates="variants")
    inventory = relationship(
        "InventoryLevelModel",
        back_populates="variant",
        uselist=False,
        cascade="all, delete-orphan",
    )

    @property
    def is_purchasable(self) -> bool:
        return bool(self.is_active) and self.product is not None and self.product.is_published
