from decimal import Decimal

import pytest

from bakery.data.models.cart_item import CartItemModel
from bakery.data.models.inventory import InventoryLevelModel, InventoryTransactionModel
from bakery.data.models.product import ProductVariantModel
from bakery.domain.enums import ProductStatus
from bakery.domain.errors import DuplicateResource, ProductNotFound, VariantUnavailable
from bakery.services.cart_service import CartService
from bakery.services.catalog_service import CatalogService
from bakery.services.order_service import OrderService

ADDRESS = {"full_name": "Ada Baker", "line1": "1 Flour Street", "city": "Breadville", "country": "US"}


@pytest.fixture()
def catalog(db):
    return CatalogService(db)


class TestListing:
    def test_storefront_hides_drafts_and_inactive_variants(self, catalog, make_product):
        make_product(status=ProductStatus.DRAFT)
        make_product(is_active=False)
        live = make_product()

        listed = catalog.list_products()
        assert [p["id"] for p in listed] == [live["id"], live["id"] - 1]
        assert listed[1]["variants"] == []
        assert len(catalog.list_products(include_drafts=True)) == 3


class TestUpdateProduct:
    def test_publishing_a_draft_makes_it_sellable(self, db, lock_service, catalog, customer, make_product):
        draft = make_product(status=ProductStatus.DRAFT)
        variant_id = draft["variants"][0]["id"]
        carts = CartService(db, lock_service)

        with pytest.raises(VariantUnavailable):
            carts.add_item(customer, variant_id, 1)

        updated = catalog.update_product(draft["id"], {"status": ProductStatus.ACTIVE})
        assert updated["status"] == ProductStatus.ACTIVE
        assert carts.add_item(customer, variant_id, 1)["items"][0]["variant_id"] == variant_id

    def test_partial_edit(self, catalog, make_product):
        product = make_product()
        catalog.update_product(product["id"], {"hero_image": "https://cdn.example.com/loaf.jpg"})

        updated = catalog.update_product(product["id"], {"name": "Country Loaf", "description": "Crusty"})
        assert updated["name"] == "Country Loaf"
        assert updated["description"] == "Crusty"
        assert updated["slug"] == product["slug"]
        assert updated["hero_image"] == "https://cdn.example.com/loaf.jpg"

    def test_null_clears_image_but_not_required_fields(self, catalog, make_product):
        product = make_product()
        catalog.update_product(product["id"], {"hero_image": "https://cdn.example.com/loaf.jpg"})

        updated = catalog.update_product(product["id"], {"hero_image": None, "name": None})
        assert updated["hero_image"] is None
        assert updated["name"] == product["name"]

    def test_duplicate_slug(self, catalog, make_product):
        first = make_product()
        second = make_product()
        with pytest.raises(DuplicateResource):
            catalog.update_product(second["id"], {"slug": first["slug"]})

    def test_keeping_own_slug_is_fine(self, catalog, make_product):
        product = make_product()
        assert catalog.update_product(product["id"], {"slug": product["slug"]})["slug"] == product["slug"]

    def test_missing_product(self, catalog):
        with pytest.raises(ProductNotFound):
            catalog.update_product(404, {"name": "Ghost"})


class TestDeleteProduct:
    def test_removes_variants_stock_and_ledger(self, db, catalog, make_product):
        product = make_product()
        variant_id = product["variants"][0]["id"]

        assert catalog.delete_product(product["id"]) == {"success": True, "deleted_product_id": product["id"]}

        assert db.get(ProductVariantModel, variant_id) is None
        assert db.query(InventoryLevelModel).filter_by(variant_id=variant_id).count() == 0
        assert db.query(InventoryTransactionModel).filter_by(variant_id=variant_id).count() == 0
        with pytest.raises(ProductNotFound):
            catalog.get_product(product["id"], include_drafts=True)

    def test_cart_lines_dropped_orders_kept(self, db, lock_service, catalog, customer, make_user, make_product):
        product = make_product()
        variant_id = product["variants"][0]["id"]
        carts = CartService(db, lock_service)

        ordered = carts.add_item(customer, variant_id, 2)
        order = OrderService(db).create_order_from_cart(customer, ordered["id"], ADDRESS)
        carts.add_item(make_user(), variant_id, 1)

        catalog.delete_product(product["id"])

        assert db.query(CartItemModel).filter_by(variant_id=variant_id).count() == 0
        kept = OrderService(db).get_order(customer, order.id)
        assert kept.items[0].product_name == product["name"]
        assert kept.total == Decimal("26.60")

    def test_missing_product(self, catalog):
        with pytest.raises(ProductNotFound):
            catalog.delete_product(404)
