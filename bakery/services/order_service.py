# bakery/services/order_service.py
import secrets
import string
from datetime import datetime, timezone
from typing import Any, Dict, List, Tuple

from sqlalchemy.orm import Session

from bakery.data.models.cart import CartModel
from bakery.data.models.cart_item import CartItemModel
from bakery.data.models.order import OrderItemModel, OrderModel, OrderStatusEventModel
from bakery.data.models.shipment import ShipmentModel
from bakery.data.models.user import UserModel
from bakery.domain.enums import (
    CartStatus,
    OrderStatus,
    PaymentStatus,
    ShipmentStatus,
    is_legal_transition,
)
from bakery.domain.errors import (
    CartNotCheckoutReady,
    EmptyCart,
    Forbidden,
    IllegalTransition,
    InsufficientInventory,
    OrderNotFound,
)
from bakery.domain.pricing import as_money, compute_totals
from bakery.repos.cart_repo import CartRepo
from bakery.repos.order_repo import OrderRepo
from bakery.services.inventory_service import InventoryService
from bakery.services.notification_service import NotificationService
from bakery.utils.logging import get_logger
from bakery.utils.settings import ORDER_STATUS_STRICT_TRANSITIONS

logger = get_logger(__name__)

_ORDER_NUMBER_ALPHABET = string.ascii_uppercase + string.digits


def create_order_number(now: datetime | None = None) -> str:
    now = now or datetime.now(timezone.utc)
    suffix = "".join(secrets.choice(_ORDER_NUMBER_ALPHABET) for _ in range(6))
    return f"BKY-{now:%Y%m%d}-{suffix}"


class OrderService:
    """
    Order domain, kept apart from CartService.

    - checkout: ACTIVE cart -> Order in one transaction
    - queries for customers and the back-office
    - admin status changes with an audit trail
    """

    def __init__(self, db: Session, strict_transitions: bool = ORDER_STATUS_STRICT_TRANSITIONS):
        self.db = db
        self.repo = OrderRepo(db)
        self.carts = CartRepo(db)
        self.inventory = InventoryService(db)
        self.notification_service = NotificationService()
        self.strict_transitions = strict_transitions

    # =====================================================
    # CHECKOUT
    # =====================================================
    def create_order_from_cart(
        self,
        user: UserModel,
        cart_id: int,
        shipping_address: Dict[str, Any],
        billing_address: Dict[str, Any] | None = None,
        notes: str | None = None,
    ) -> OrderModel:
        """
        Use Case: place an order from the requester's ACTIVE cart.

        1. cart is ACTIVE, owned by the requester (admins may check out any cart), not empty
        2. every line still fits the stock available right now
        3. order + items + PENDING event, stock decrement + ledger rows,
           cart -> CHECKED_OUT, all committed together
        4. order-placed notification (async)
        """
        try:
            cart, items = self._checkout_ready_cart(user, cart_id)
        except Exception:
            self.repo.rollback()
            raise

        totals = compute_totals((item.unit_price, item.quantity) for item in items)

        try:
            shipping = self.repo.create_address(shipping_address)
            billing = self.repo.create_address(billing_address or shipping_address)

            order = OrderModel(
                order_number=create_order_number(),
                user_id=cart.user_id,
                cart_id=cart.id,
                status=OrderStatus.PENDING,
                payment_status=PaymentStatus.PENDING,
                shipment_status=ShipmentStatus.PREPARING,
                subtotal=totals.subtotal,
                tax=totals.tax,
                shipping_fee=totals.shipping_fee,
                discount_total=totals.discount_total,
                total=totals.total,
                currency=cart.currency,
                notes=(notes or "").strip() or None,
                shipping_address_id=shipping.id,
                billing_address_id=billing.id,
            )
            order.items = [
                OrderItemModel(
                    variant_id=item.variant_id,
                    product_name=item.variant.product.name,
                    variant_name=item.variant.label,
                    quantity=item.quantity,
                    unit_price=as_money(item.unit_price),
                    currency=cart.currency,
                    image_url=item.variant.product.hero_image,
                )
                for item in items
            ]
            order.status_events = [
                OrderStatusEventModel(
                    status=OrderStatus.PENDING,
                    note="Order created from cart checkout.",
                    created_by_id=user.id,
                )
            ]
            self.repo.add_order(order)

            for item in items:
                self.inventory.fulfil(
                    item.variant_id,
                    item.quantity,
                    actor_id=user.id,
                    reference=f"ORDER:{order.id}",
                )

            cart.status = CartStatus.CHECKED_OUT
            self.repo.commit()
        except Exception as e:
            logger.error(f"Checkout of cart {cart_id} failed, rolled back: {e}")
            self.repo.rollback()
            raise

        logger.info(
            f"Order {order.order_number} ({order.id}) created from cart {cart_id}, "
            f"total {order.total} {order.currency}"
        )

        if order.user_id is not None:
            self.notification_service.send_order_notification(order.user_id, order.id)

        return self.repo.get_order(order.id)

    def _checkout_ready_cart(self, user: UserModel, cart_id: int) -> Tuple[CartModel, List[CartItemModel]]:
        cart = self.carts.get_cart(cart_id)

        if not cart or cart.status != CartStatus.ACTIVE:
            raise CartNotCheckoutReady(details={"cartId": cart_id})

        if not user.is_admin and (cart.user_id is None or cart.user_id != user.id):
            raise Forbidden("Cannot checkout another user's cart.")

        items = list(cart.items)
        if not items:
            raise EmptyCart(details={"cartId": cart_id})

        #stock may have shrunk since the items were added
        for item in items:
            available = self.inventory.available_quantity(item.variant_id)
            if available < item.quantity:
                raise InsufficientInventory(
                    f"Insufficient inventory for variant {item.variant.sku}.",
                    details={
                        "variantId": item.variant_id,
                        "requested": item.quantity,
                        "available": available,
                    },
                )

        return cart, items

    # =====================================================
    # QUERIES
    # =====================================================
    def list_orders_for_user(self, user: UserModel) -> List[OrderModel]:
        return self.repo.list_for_user(user.id)

    def list_all_orders(self, admin: UserModel) -> List[OrderModel]:
        """Back-office view: every order with its payments and shipments."""
        if not admin.is_admin:
            raise Forbidden("Admin role required.")
        return self.repo.list_all()

    def get_order(self, user: UserModel | None, order_id: int) -> OrderModel:
        order = self.repo.get_order(order_id)

        if not order:
            raise OrderNotFound(details={"orderId": order_id})

        is_admin = user is not None and user.is_admin
        if not is_admin and order.user_id is not None and (user is None or order.user_id != user.id):
            raise Forbidden("Cannot access another user's order.")

        return order

    def get_tracking(self, user: UserModel | None, order_id: int) -> Dict[str, Any]:
        order = self.get_order(user, order_id)
        return {
            "order_id": order.id,
            "order_number": order.order_number,
            "status": order.status,
            "payment_status": order.payment_status,
            "shipment_status": order.shipment_status,
            "shipments": order.shipments,
            "status_events": order.status_events,
        }

    # =====================================================
    # STATUS MACHINE
    # =====================================================
    def update_status(
        self,
        admin: UserModel,
        order_id: int,
        status: OrderStatus,
        note: str | None = None,
    ) -> OrderModel:
        if not admin.is_admin:
            raise Forbidden("Admin role required.")

        order = self.get_order(admin, order_id)
        current = order.status

        if status != current and not is_legal_transition(current, status):
            if self.strict_transitions:
                raise IllegalTransition(
                    f"Cannot move order from {current.value} to {status.value}.",
                    details={"from": current.value, "to": status.value},
                )
            logger.warning(
                f"Order {order.id} jumps {current.value} -> {status.value} "
                f"outside the usual flow, accepted"
            )

        try:
            order.status = status
            self._sync_shipment(order, status)
            self.repo.add_status_event(
                OrderStatusEventModel(
                    order_id=order.id,
                    status=status,
                    note=(note or "").strip() or None,
                    created_by_id=admin.id,
                )
            )
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Order {order.id} status {current.value} -> {status.value} by admin {admin.id}")

        return self.repo.get_order(order.id)

    def _sync_shipment(self, order: OrderModel, status: OrderStatus):
        now = datetime.now(timezone.utc)

        if status == OrderStatus.OUT_FOR_DELIVERY:
            order.shipment_status = ShipmentStatus.SHIPPED
            if not order.shipments:
                order.shipments.append(
                    ShipmentModel(status=ShipmentStatus.SHIPPED, shipped_at=now)
                )

        elif status == OrderStatus.DELIVERED:
            order.shipment_status = ShipmentStatus.DELIVERED
            for shipment in order.shipments:
                if shipment.status != ShipmentStatus.DELIVERED:
                    shipment.status = ShipmentStatus.DELIVERED
                    shipment.delivered_at = now
