# bakery/services/catalog_service.py
from decimal import Decimal
from typing import Any, Dict, List

from sqlalchemy.orm import Session

from bakery.data.models.product import ProductModel, ProductVariantModel
from bakery.data.models.user import UserModel
from bakery.domain.enums import ProductStatus
from bakery.domain.errors import DuplicateResource, ProductNotFound, VariantUnavailable
from bakery.domain.pricing import as_money
from bakery.repos.cart_repo import CartRepo
from bakery.repos.product_repo import ProductRepo
from bakery.services.inventory_service import InventoryService
from bakery.utils.logging import get_logger

logger = get_logger(__name__)


def serialize_product(product: ProductModel) -> Dict[str, Any]:
    return {
        "id": product.id,
        "name": product.name,
        "slug": product.slug,
        "description": product.description,
        "status": product.status,
        "hero_image": product.hero_image,
        "variants": [
            {
                "id": v.id,
                "sku": v.sku,
                "label": v.label,
                "price": as_money(v.price),
                "currency": v.currency,
                "is_active": v.is_active,
                "available_quantity": v.inventory.quantity if v.inventory else 0,
            }
            for v in product.variants
        ],
    }


class CatalogService:
    def __init__(self, db: Session):
        self.repo = ProductRepo(db)
        self.carts = CartRepo(db)
        self.inventory = InventoryService(db)

    def list_products(self, include_drafts: bool = False) -> List[Dict[str, Any]]:
        products = self.repo.list_products(include_drafts=include_drafts)
        if include_drafts:
            return [serialize_product(p) for p in products]

        #storefront: hide inactive variants
        out = []
        for p in products:
            data = serialize_product(p)
            data["variants"] = [v for v in data["variants"] if v["is_active"]]
            out.append(data)
        return out

    def create_product(self, admin: UserModel, payload: Dict[str, Any]) -> Dict[str, Any]:
        """
        Product + variants + stock rows in one transaction; each variant's
        opening stock is written to the ledger as INITIAL.
        """
        if self.repo.get_by_slug(payload["slug"]):
            raise DuplicateResource(
                f"Product slug '{payload['slug']}' is already taken.",
                details={"slug": payload["slug"]},
            )

        try:
            product = ProductModel(
                name=payload["name"],
                slug=payload["slug"],
                description=payload.get("description"),
                status=payload.get("status", ProductStatus.DRAFT),
                hero_image=payload.get("hero_image"),
            )
            product.variants = [
                ProductVariantModel(
                    sku=v["sku"],
                    label=v["label"],
                    price=as_money(v["price"]),
                    currency=v.get("currency", "USD"),
                    is_active=v.get("is_active", True),
                )
                for v in payload["variants"]
            ]
            self.repo.add_product(product)

            for variant, variant_in in zip(product.variants, payload["variants"]):
                self.inventory.initialize(
                    variant.id,
                    variant_in.get("initial_stock", 0),
                    variant_in.get("low_stock_threshold", 0),
                    actor_id=admin.id,
                    reference=f"PRODUCT_CREATE:{product.id}",
                )

            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product.id} '{product.slug}' created with {len(product.variants)} variants")
        return self.get_product(product.id, include_drafts=True)

    def get_product(self, product_id: int, include_drafts: bool = False) -> Dict[str, Any]:
        product = self.repo.get_product(product_id)
        if not product or (not include_drafts and not product.is_published):
            raise ProductNotFound(details={"productId": product_id})
        return serialize_product(product)

    def update_product(self, product_id: int, changes: Dict[str, Any]) -> Dict[str, Any]:
        """
        Partial edit of name / slug / description / status / hero_image.
        Only keys present in `changes` are touched, so hero_image=None clears the image.
        Publishing a DRAFT (status=ACTIVE) makes its variants purchasable.
        """
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(details={"productId": product_id})

        slug = changes.get("slug")
        if slug and slug != product.slug and self.repo.get_by_slug(slug):
            raise DuplicateResource(f"Product slug '{slug}' is already taken.", details={"slug": slug})

        try:
            for field in ("name", "slug", "description", "status", "hero_image"):
                if field not in changes:
                    continue
                # required columns ignore an explicit null
                if changes[field] is None and field in ("name", "slug", "status"):
                    continue
                setattr(product, field, changes[field])
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Product {product_id} updated: {sorted(changes)}")
        return self.get_product(product_id, include_drafts=True)

    def delete_product(self, product_id: int) -> Dict[str, Any]:
        """
        Remove a product with its variants, stock rows and ledger.
        Cart lines pointing at its variants are dropped; placed orders keep
        their item snapshots.
        """
        product = self.repo.get_product(product_id)
        if not product:
            raise ProductNotFound(details={"productId": product_id})

        variant_ids = [v.id for v in product.variants]
        try:
            removed_lines = self.carts.delete_lines_for_variants(variant_ids)
            self.repo.delete_product(product)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Product {product_id} deleted with {len(variant_ids)} variants, "
            f"{removed_lines} cart lines dropped"
        )
        return {"success": True, "deleted_product_id": product_id}

    def update_variant(
        self,
        variant_id: int,
        price: Decimal | None = None,
        is_active: bool | None = None,
    ) -> Dict[str, Any]:
        """Catalog edit. Cart lines keep the price they were added at."""
        variant = self.repo.get_variant(variant_id)
        if not variant:
            raise VariantUnavailable(details={"variantId": variant_id})

        try:
            if price is not None:
                variant.price = as_money(price)
            if is_active is not None:
                variant.is_active = is_active
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Variant {variant_id} updated: price={variant.price} active={variant.is_active}")
        return {
            "id": variant.id,
            "sku": variant.sku,
            "label": variant.label,
            "price": as_money(variant.price),
            "currency": variant.currency,
            "is_active": variant.is_active,
            "available_quantity": variant.inventory.quantity if variant.inventory else 0,
        }
