# bakery/repos/product_repo.py
from typing import List

from sqlalchemy import select
from sqlalchemy.orm import Session, selectinload

from bakery.data.models.product import ProductModel, ProductVariantModel
from bakery.domain.enums import ProductStatus


class ProductRepo:
    def __init__(self, db: Session):
        self.db = db

    def get_product(self, product_id: int) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel)
            .where(ProductModel.id == product_id)
            .options(selectinload(ProductModel.variants).selectinload(ProductVariantModel.inventory))
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def get_by_slug(self, slug: str) -> ProductModel | None:
        return self.db.execute(
            select(ProductModel).where(ProductModel.slug == slug)
        ).scalar_one_or_none()

    def get_variant(self, variant_id: int) -> ProductVariantModel | None:
        return self.db.execute(
            select(ProductVariantModel)
            .where(ProductVariantModel.id == variant_id)
            .options(
                selectinload(ProductVariantModel.product),
                selectinload(ProductVariantModel.inventory),
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def list_products(self, include_drafts: bool = False) -> List[ProductModel]:
        stmt = select(ProductModel).options(
            selectinload(ProductModel.variants).selectinload(ProductVariantModel.inventory)
        )
        if not include_drafts:
            stmt = stmt.where(ProductModel.status == ProductStatus.ACTIVE)
        return list(self.db.execute(stmt.order_by(ProductModel.id.desc())).scalars())

    def add_product(self, product: ProductModel) -> ProductModel:
        self.db.add(product)
        self.db.flush()
        return product

    def delete_product(self, product: ProductModel):
        # variants, stock rows and their ledger go with it (ORM cascade)
        self.db.delete(product)
        self.db.flush()

    def commit(self):
        self.db.commit()

    def rollback(self):
        self.db.rollback()
