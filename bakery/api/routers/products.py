# bakery/api/routers/products.py
from typing import List

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from bakery.api.deps import get_current_user, require_admin
from bakery.data.database import get_db
from bakery.data.models.user import UserModel
from bakery.domain.schemas import (
    InventoryAdjustIn,
    InventoryLevelOut,
    InventoryTransactionOut,
    ProductCreate,
    ProductDeleteOut,
    ProductOut,
    ProductUpdateIn,
    VariantOut,
    VariantUpdateIn,
)
from bakery.services.catalog_service import CatalogService
from bakery.services.inventory_service import InventoryService

router = APIRouter(prefix="/products", tags=["products"])


@router.get("", response_model=List[ProductOut])
def list_products(
    include_drafts: bool = Query(False, alias="includeDrafts"),
    user: UserModel | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    # drafts are only visible to admins
    show_drafts = include_drafts and user is not None and user.is_admin
    return CatalogService(db).list_products(include_drafts=show_drafts)


@router.post("", response_model=ProductOut, status_code=201)
def create_product(
    payload: ProductCreate,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return CatalogService(db).create_product(admin, payload.model_dump())


@router.get("/{product_id}", response_model=ProductOut)
def get_product(
    product_id: int,
    user: UserModel | None = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    return CatalogService(db).get_product(product_id, include_drafts=user is not None and user.is_admin)


@router.patch("/{product_id}", response_model=ProductOut)
def update_product(
    product_id: int,
    payload: ProductUpdateIn,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return CatalogService(db).update_product(product_id, payload.model_dump(exclude_unset=True))


@router.delete("/{product_id}", response_model=ProductDeleteOut)
def delete_product(
    product_id: int,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return CatalogService(db).delete_product(product_id)


@router.patch("/variants/{variant_id}", response_model=VariantOut)
def update_variant(
    variant_id: int,
    payload: VariantUpdateIn,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return CatalogService(db).update_variant(variant_id, price=payload.price, is_active=payload.is_active)


@router.patch("/variants/{variant_id}/inventory", response_model=InventoryLevelOut)
def adjust_inventory(
    variant_id: int,
    payload: InventoryAdjustIn,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    svc = InventoryService(db)
    svc.adjust(
        variant_id,
        payload.quantity_delta,
        reason=payload.reason,
        actor_id=admin.id,
        reference=payload.reference,
    )
    return svc.get_level(variant_id)


@router.get("/variants/{variant_id}/inventory/transactions", response_model=List[InventoryTransactionOut])
def list_inventory_transactions(
    variant_id: int,
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return InventoryService(db).list_transactions(variant_id)


@router.get("/inventory/low-stock", response_model=List[InventoryLevelOut])
def low_stock(
    admin: UserModel = Depends(require_admin),
    db: Session = Depends(get_db),
):
    return InventoryService(db).low_stock()
