from decimal import Decimal
import re

import pytest

from bakery.data.models.cart import CartModel
from bakery.data.models.order import OrderAddressModel, OrderModel
from bakery.domain.enums import (
    CartStatus,
    InventoryReason,
    OrderStatus,
    PaymentStatus,
    ShipmentStatus,
)
from bakery.domain.errors import (
    CartNotCheckoutReady,
    EmptyCart,
    Forbidden,
    IllegalTransition,
    InsufficientInventory,
    OrderNotFound,
)
from bakery.services.cart_service import CartService
from bakery.services.inventory_service import InventoryService
from bakery.services.order_service import OrderService, create_order_number

ADDRESS = {
    "full_name": "Ada Baker",
    "phone": None,
    "line1": "1 Flour Street",
    "line2": None,
    "city": "Breadville",
    "state": None,
    "postal_code": "12345",
    "country": "US",
}


@pytest.fixture()
def carts(db, lock_service):
    return CartService(db, lock_service)


@pytest.fixture()
def orders(db):
    return OrderService(db)


@pytest.fixture()
def placed_order(carts, orders, customer, variant_id):
    cart = carts.add_item(customer, variant_id, 3)
    return orders.create_order_from_cart(customer, cart["id"], ADDRESS)


def test_order_number_format():
    assert re.fullmatch(r"BKY-\d{8}-[A-Z0-9]{6}", create_order_number())


class TestCheckout:
    def test_happy_path(self, db, placed_order, customer, variant_id, notifications):
        order = placed_order

        assert order.status == OrderStatus.PENDING
        assert order.payment_status == PaymentStatus.PENDING
        assert order.shipment_status == ShipmentStatus.PREPARING
        assert order.user_id == customer.id
        assert order.subtotal == Decimal("30.00")
        assert order.tax == Decimal("2.40")
        assert order.shipping_fee == Decimal("5.00")
        assert order.total == Decimal("37.40")
        assert order.shipping_address.city == "Breadville"
        assert order.billing_address.line1 == "1 Flour Street"

        [item] = order.items
        assert item.product_name == "Loaf 1"
        assert item.variant_name == "Whole"
        assert item.unit_price == Decimal("10.00")
        assert [e.status for e in order.status_events] == [OrderStatus.PENDING]

        inventory = InventoryService(db)
        assert inventory.available_quantity(variant_id) == 7
        assert inventory.ledger_balance(variant_id) == 7
        assert inventory.list_transactions(variant_id)[0].reason == InventoryReason.ORDER_FULFILLED
        assert inventory.list_transactions(variant_id)[0].reference == f"ORDER:{order.id}"

        assert db.get(CartModel, order.cart_id).status == CartStatus.CHECKED_OUT
        notifications.assert_called_once_with(customer.id, order.id)

    def test_cart_cannot_be_checked_out_twice(self, placed_order, orders, customer):
        with pytest.raises(CartNotCheckoutReady):
            orders.create_order_from_cart(customer, placed_order.cart_id, ADDRESS)

    def test_next_cart_is_a_new_one(self, placed_order, carts, customer):
        assert carts.get_cart(customer, None)["id"] != placed_order.cart_id

    def test_empty_cart(self, carts, orders, customer):
        cart = carts.get_cart(customer, None)
        with pytest.raises(EmptyCart):
            orders.create_order_from_cart(customer, cart["id"], ADDRESS)

    def test_unknown_cart(self, orders, customer):
        with pytest.raises(CartNotCheckoutReady):
            orders.create_order_from_cart(customer, 404, ADDRESS)

    def test_other_users_cart(self, carts, orders, customer, make_user, variant_id):
        cart = carts.add_item(customer, variant_id, 1)
        with pytest.raises(Forbidden):
            orders.create_order_from_cart(make_user(), cart["id"], ADDRESS)

    def test_admin_may_checkout_any_cart(self, carts, orders, customer, admin, variant_id):
        cart = carts.add_item(customer, variant_id, 1)
        order = orders.create_order_from_cart(admin, cart["id"], ADDRESS)
        assert order.user_id == customer.id

    def test_stock_shrunk_after_add_rolls_back(self, db, carts, orders, customer, admin, make_product):
        plenty = make_product(stock=10)["variants"][0]["id"]
        scarce = make_product(stock=5)["variants"][0]["id"]
        carts.add_item(customer, plenty, 2)
        cart = carts.add_item(customer, scarce, 4)

        InventoryService(db).adjust(scarce, -3, InventoryReason.ADJUSTMENT, actor_id=admin.id)

        with pytest.raises(InsufficientInventory):
            orders.create_order_from_cart(customer, cart["id"], ADDRESS)

        # nothing half-applied
        inventory = InventoryService(db)
        assert inventory.available_quantity(plenty) == 10
        assert inventory.available_quantity(scarce) == 2
        assert db.query(OrderModel).count() == 0
        assert db.get(CartModel, cart["id"]).status == CartStatus.ACTIVE

    def test_no_oversell_across_carts(self, db, carts, orders, make_user, make_product):
        variant = make_product(stock=5)["variants"][0]["id"]
        alice, bob = make_user(), make_user()
        cart_a = carts.add_item(alice, variant, 3)
        cart_b = carts.add_item(bob, variant, 3)

        orders.create_order_from_cart(alice, cart_a["id"], ADDRESS)
        with pytest.raises(InsufficientInventory):
            orders.create_order_from_cart(bob, cart_b["id"], ADDRESS)

        assert InventoryService(db).available_quantity(variant) == 2

    def test_guest_order_sends_no_notification(self, db, carts, orders, admin, variant_id, notifications):
        cart = carts.add_item(None, variant_id, 1, session_id="guest-1")
        order = orders.create_order_from_cart(admin, cart["id"], ADDRESS)

        assert order.user_id is None
        notifications.assert_not_called()

    def test_notification_failure_does_not_fail_checkout(self, carts, orders, customer, variant_id, notifications):
        notifications.side_effect = ConnectionError("broker down")
        cart = carts.add_item(customer, variant_id, 1)
        order = orders.create_order_from_cart(customer, cart["id"], ADDRESS)
        assert order.id is not None


class TestQueries:
    def test_owner_and_admin_can_read(self, placed_order, orders, customer, admin):
        assert orders.get_order(customer, placed_order.id).id == placed_order.id
        assert orders.get_order(admin, placed_order.id).id == placed_order.id

    def test_others_cannot(self, placed_order, orders, make_user):
        with pytest.raises(Forbidden):
            orders.get_order(make_user(), placed_order.id)

    def test_missing(self, orders, customer):
        with pytest.raises(OrderNotFound):
            orders.get_order(customer, 12345)

    def test_list_for_user(self, placed_order, orders, customer, make_user):
        assert [o.id for o in orders.list_orders_for_user(customer)] == [placed_order.id]
        assert orders.list_orders_for_user(make_user()) == []

    def test_tracking(self, placed_order, orders, customer):
        tracking = orders.get_tracking(customer, placed_order.id)
        assert tracking["order_number"] == placed_order.order_number
        assert tracking["shipment_status"] == ShipmentStatus.PREPARING
        assert tracking["shipments"] == []


class TestStatusUpdates:
    def test_admin_only(self, placed_order, orders, customer):
        with pytest.raises(Forbidden):
            orders.update_status(customer, placed_order.id, OrderStatus.CONFIRMED)

    def test_event_recorded(self, placed_order, orders, admin):
        order = orders.update_status(admin, placed_order.id, OrderStatus.CONFIRMED, note="  paid at till ")
        assert order.status == OrderStatus.CONFIRMED
        latest = order.status_events[0]
        assert latest.status == OrderStatus.CONFIRMED
        assert latest.note == "paid at till"
        assert latest.created_by_id == admin.id

    def test_delivery_flow_updates_shipments(self, placed_order, orders, admin):
        for status in (OrderStatus.CONFIRMED, OrderStatus.PREPARING, OrderStatus.OUT_FOR_DELIVERY):
            order = orders.update_status(admin, placed_order.id, status)

        assert order.shipment_status == ShipmentStatus.SHIPPED
        [shipment] = order.shipments
        assert shipment.status == ShipmentStatus.SHIPPED
        assert shipment.shipped_at is not None

        order = orders.update_status(admin, placed_order.id, OrderStatus.DELIVERED)
        assert order.shipment_status == ShipmentStatus.DELIVERED
        assert order.shipments[0].delivered_at is not None
        assert len(order.status_events) == 5

    def test_jump_accepted_when_not_strict(self, placed_order, orders, admin):
        order = orders.update_status(admin, placed_order.id, OrderStatus.DELIVERED)
        assert order.status == OrderStatus.DELIVERED

    def test_jump_rejected_when_strict(self, db, placed_order, admin):
        strict = OrderService(db, strict_transitions=True)
        with pytest.raises(IllegalTransition):
            strict.update_status(admin, placed_order.id, OrderStatus.DELIVERED)
        assert strict.get_order(admin, placed_order.id).status == OrderStatus.PENDING

        order = strict.update_status(admin, placed_order.id, OrderStatus.CONFIRMED)
        assert order.status == OrderStatus.CONFIRMED


def test_failure_mid_checkout_rolls_everything_back(db, carts, orders, customer, make_product, monkeypatch):
    first = make_product(stock=10)["variants"][0]["id"]
    second = make_product(stock=10)["variants"][0]["id"]
    carts.add_item(customer, first, 2)
    cart = carts.add_item(customer, second, 2)

    real_fulfil = orders.inventory.fulfil
    calls = []

    def flaky_fulfil(variant_id, quantity, actor_id, reference):
        calls.append(variant_id)
        if len(calls) == 2:
            raise InsufficientInventory(details={"variantId": variant_id})
        return real_fulfil(variant_id, quantity, actor_id, reference)

    monkeypatch.setattr(orders.inventory, "fulfil", flaky_fulfil)

    with pytest.raises(InsufficientInventory):
        orders.create_order_from_cart(customer, cart["id"], ADDRESS)

    inventory = InventoryService(db)
    assert inventory.available_quantity(first) == 10
    assert inventory.ledger_balance(first) == 10
    assert db.query(OrderModel).count() == 0
    assert db.get(CartModel, cart["id"]).status == CartStatus.ACTIVE


def test_last_unit_race_loser_fails_inside_transaction(
    db, session_factory, carts, orders, make_user, make_product, monkeypatch
):
    variant = make_product(stock=1)["variants"][0]["id"]
    alice, bob = make_user(), make_user()
    cart_a = carts.add_item(alice, variant, 1)
    cart_b = carts.add_item(bob, variant, 1)

    other = session_factory()
    try:
        loser = OrderService(other)
        # both checkouts read stock=1 before either commits
        monkeypatch.setattr(loser.inventory, "available_quantity", lambda variant_id: 1)

        orders.create_order_from_cart(alice, cart_a["id"], ADDRESS)
        with pytest.raises(InsufficientInventory):
            loser.create_order_from_cart(bob, cart_b["id"], ADDRESS)
    finally:
        other.close()

    db.expire_all()
    inventory = InventoryService(db)
    assert db.query(OrderModel).count() == 1
    assert inventory.available_quantity(variant) == 0
    assert inventory.ledger_balance(variant) == 0
    assert db.get(CartModel, cart_b["id"]).status == CartStatus.ACTIVE


def test_rejected_checkout_rolls_back_session(db, carts, orders, customer):
    cart = carts.get_cart(customer, None)
    db.add(OrderAddressModel(full_name="Stray", line1="Nowhere 1", city="Void", country="US"))

    with pytest.raises(EmptyCart):
        orders.create_order_from_cart(customer, cart["id"], ADDRESS)

    assert not db.new
    assert db.query(OrderAddressModel).count() == 0


def test_admin_lists_every_order(placed_order, carts, orders, make_user, admin, variant_id):
    other = make_user()
    cart = carts.add_item(other, variant_id, 1)
    second = orders.create_order_from_cart(other, cart["id"], ADDRESS)

    listed = orders.list_all_orders(admin)
    assert {o.id for o in listed} == {placed_order.id, second.id}
    assert all(o.payments == [] and o.shipments == [] for o in listed)


def test_customer_cannot_list_every_order(orders, customer):
    with pytest.raises(Forbidden):
        orders.list_all_orders(customer)
