from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from bakery.data.models._columns import utcnow
from bakery.data.models.cart import CartModel
from bakery.data.models.cart_item import CartItemModel
from bakery.data.models.user import UserModel
from bakery.domain.enums import CartStatus
from bakery.domain.errors import (
    CartItemNotFound,
    CartNotActive,
    Forbidden,
    InsufficientInventory,
    SessionRequired,
    ValidationFailed,
    VariantUnavailable,
)
from bakery.domain.pricing import as_money, compute_totals
from bakery.repos.cart_repo import CartRepo
from bakery.repos.product_repo import ProductRepo
from bakery.services.lock_service import LockService, cart_owner_key
from bakery.utils.logging import get_logger
from bakery.utils.settings import CART_ABANDON_SECONDS, DEFAULT_CURRENCY

logger = get_logger(__name__)


def summarize_cart(cart: CartModel) -> Dict[str, Any]:
    """Totals straight from the live lines, nothing cached on the cart."""
    totals = compute_totals((item.unit_price, item.quantity) for item in cart.items)
    return {
        "subtotal": totals.subtotal,
        "tax": totals.tax,
        "shipping_fee": totals.shipping_fee,
        "total": totals.total,
        "item_count": totals.item_count,
    }


def serialize_cart(cart: CartModel) -> Dict[str, Any]:
    items = []
    for i in cart.items:
        variant = i.variant
        items.append(
            {
                "id": i.id,
                "variant_id": i.variant_id,
                "sku": variant.sku,
                "product_name": variant.product.name,
                "variant_name": variant.label,
                "quantity": i.quantity,
                "unit_price": as_money(i.unit_price),
                "line_total": as_money(as_money(i.unit_price) * i.quantity),
                "available_quantity": variant.inventory.quantity if variant.inventory else 0,
            }
        )

    return {
        "id": cart.id,
        "user_id": cart.user_id,
        "session_id": cart.session_id,
        "status": cart.status,
        "currency": cart.currency,
        "items": items,
        "summary": summarize_cart(cart),
    }


class CartService:
    """
    Use cases for the cart domain.
    commands (add, update, remove, abandon) change state,
    queries (get) only read, apart from lazily creating the ACTIVE cart.
    """

    def __init__(self, db: Session, lock_service: LockService):
        self.repo = CartRepo(db)
        self.products = ProductRepo(db)
        self.lock_service = lock_service

    # =====================================================
    # QUERY
    # =====================================================
    def get_cart(
        self,
        user: UserModel | None,
        session_id: str | None,
        currency: str = DEFAULT_CURRENCY,
    ) -> Dict[str, Any]:
        cart = self.get_or_create_active(user.id if user else None, session_id, currency)
        return serialize_cart(cart)

    def get_or_create_active(
        self,
        user_id: int | None,
        session_id: str | None,
        currency: str = DEFAULT_CURRENCY,
    ) -> CartModel:
        """
        The single ACTIVE cart of a user (or of a guest session), created on first use.

        Creation runs under a per-owner redis lock and the partial unique
        index on carts backs it up, so concurrent first requests end up on
        the same cart.
        """
        cart = self.repo.get_active_cart(user_id=user_id, session_id=session_id)
        if cart:
            return cart

        if user_id is None and not session_id:
            raise SessionRequired()

        with self.lock_service.hold(cart_owner_key(user_id, session_id)):
            #check again, the previous holder may have just created it
            cart = self.repo.get_active_cart(user_id=user_id, session_id=session_id)
            if cart:
                return cart

            try:
                cart = self.repo.create_cart(
                    CartModel(
                        user_id=user_id,
                        session_id=None if user_id is not None else session_id,
                        currency=currency,
                        status=CartStatus.ACTIVE,
                    )
                )
            except IntegrityError:
                #lost the race at the unique index, use the winner's cart
                self.repo.rollback()
                cart = self.repo.get_active_cart(user_id=user_id, session_id=session_id)
                if cart is None:
                    raise
                logger.warning(f"Concurrent cart creation detected, reusing cart {cart.id}")
                return cart

        owner = f"user {user_id}" if user_id is not None else f"session {session_id}"
        logger.info(f"Created cart {cart.id} for {owner}")
        return cart

    # =====================================================
    # COMMANDS
    # =====================================================
    def add_item(
        self,
        user: UserModel | None,
        variant_id: int,
        quantity: int,
        currency: str = DEFAULT_CURRENCY,
        session_id: str | None = None,
    ) -> Dict[str, Any]:
        if quantity <= 0:
            raise ValidationFailed("Quantity must be greater than 0.")

        variant = self.products.get_variant(variant_id)
        if not variant or not variant.is_purchasable:
            raise VariantUnavailable(details={"variantId": variant_id})

        available = variant.inventory.quantity if variant.inventory else 0
        if quantity > available:
            raise InsufficientInventory(
                details={"variantId": variant_id, "requested": quantity, "available": available}
            )

        cart = self.get_or_create_active(user.id if user else None, session_id, currency)

        try:
            existing_item = self.repo.get_cart_item_by_variant(cart.id, variant_id)

            if existing_item:
                next_quantity = existing_item.quantity + quantity
                if next_quantity > available:
                    raise InsufficientInventory(
                        details={
                            "variantId": variant_id,
                            "requested": next_quantity,
                            "available": available,
                        }
                    )
                logger.info(
                    f"Variant {variant_id} already in cart {cart.id}, quantity "
                    f"{existing_item.quantity} -> {next_quantity}"
                )
                # unit_price stays what it was when the line was created
                existing_item.quantity = next_quantity
            else:
                logger.info(f"Adding variant {variant_id} x{quantity} to cart {cart.id} at {variant.price}")
                cart.items.append(
                    CartItemModel(
                        variant_id=variant_id,
                        quantity=quantity,
                        unit_price=variant.price,
                    )
                )

            cart.updated_at = utcnow()
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        self.repo.refresh(cart)
        return serialize_cart(cart)

    def update_item_quantity(
        self,
        user: UserModel | None,
        item_id: int,
        quantity: int,
        session_id: str | None = None,
    ) -> Dict[str, Any]:
        item = self._owned_item(user, item_id, session_id)
        cart = item.cart

        if quantity == 0:
            return self._delete_item(cart, item)

        available = item.variant.inventory.quantity if item.variant.inventory else 0
        if quantity > available:
            raise InsufficientInventory(
                details={"variantId": item.variant_id, "requested": quantity, "available": available}
            )

        try:
            item.quantity = quantity
            cart.updated_at = utcnow()
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Cart item {item_id} in cart {cart.id} set to quantity {quantity}")
        self.repo.refresh(cart)
        return serialize_cart(cart)

    def remove_item(
        self,
        user: UserModel | None,
        item_id: int,
        session_id: str | None = None,
    ) -> Dict[str, Any]:
        item = self._owned_item(user, item_id, session_id)
        return self._delete_item(item.cart, item)

    def abandon_stale(self, now: datetime | None = None) -> int:
        """Mark ACTIVE carts untouched for CART_ABANDON_SECONDS as ABANDONED."""
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(seconds=CART_ABANDON_SECONDS)

        carts = self.repo.list_stale_active(cutoff)
        logger.info(f"Found {len(carts)} stale carts to abandon")

        try:
            for cart in carts:
                cart.status = CartStatus.ABANDONED
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        return len(carts)

    # =====================================================
    # HELPERS
    # =====================================================
    def _owned_item(self, user: UserModel | None, item_id: int, session_id: str | None) -> CartItemModel:
        item = self.repo.get_cart_item(item_id)
        if not item:
            raise CartItemNotFound(details={"itemId": item_id})

        cart = item.cart
        if cart.user_id is not None:
            if user is None or user.id != cart.user_id:
                raise Forbidden("Cannot modify another user's cart.")
        elif not session_id or cart.session_id != session_id:
            raise Forbidden("Cannot modify another session cart.")

        if cart.status != CartStatus.ACTIVE:
            raise CartNotActive(details={"cartId": cart.id, "status": cart.status.value})

        return item

    def _delete_item(self, cart: CartModel, item: CartItemModel) -> Dict[str, Any]:
        try:
            # delete-orphan cascade removes the row on commit
            cart.items.remove(item)
            cart.updated_at = utcnow()
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(f"Removed cart item {item.id} (variant {item.variant_id}) from cart {cart.id}")
        self.repo.refresh(cart)
        return serialize_cart(cart)
