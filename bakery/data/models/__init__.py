#import all models so SQLAlchemy registers them in Base.metadata

from bakery.data.models.user import UserModel
from bakery.data.models.product import ProductModel, ProductVariantModel
from bakery.data.models.inventory import InventoryLevelModel, InventoryTransactionModel
from bakery.data.models.cart import CartModel
from bakery.data.models.cart_item import CartItemModel
from bakery.data.models.order import (
    OrderAddressModel,
    OrderItemModel,
    OrderModel,
    OrderStatusEventModel,
)
from bakery.data.models.payment import PaymentModel
from bakery.data.models.shipment import ShipmentModel

__all__ = [
    "UserModel",
    "ProductModel",
    "ProductVariantModel",
    "InventoryLevelModel",
    "InventoryTransactionModel",
    "CartModel",
    "CartItemModel",
    "OrderAddressModel",
    "OrderModel",
    "OrderItemModel",
    "OrderStatusEventModel",
    "PaymentModel",
    "ShipmentModel",
]
