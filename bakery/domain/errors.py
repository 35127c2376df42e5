# bakery/domain/errors.py
"""
Application errors raised by the service layer.

Each error carries an HTTP status and a stable code; the API layer turns
them into `{"error": {"code", "message", "details"}}` responses.
"""
from typing import Any


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"
    message = "An unexpected error occurred."

    def __init__(
        self,
        message: str | None = None,
        status_code: int | None = None,
        code: str | None = None,
        details: Any = None,
    ):
        self.message = message or self.message
        if status_code is not None:
            self.status_code = status_code
        if code is not None:
            self.code = code
        self.details = details
        super().__init__(self.message)

    def to_dict(self) -> dict:
        body = {"code": self.code, "message": self.message}
        if self.details is not None:
            body["details"] = self.details
        return {"error": body}


# --- auth ---

class Unauthorized(AppError):
    status_code = 401
    code = "UNAUTHORIZED"
    message = "Authentication required."


class InvalidUser(AppError):
    status_code = 401
    code = "INVALID_USER"
    message = "Unknown user."


class Forbidden(AppError):
    status_code = 403
    code = "FORBIDDEN"
    message = "Access denied."


# --- not found ---

class NotFound(AppError):
    status_code = 404
    code = "NOT_FOUND"
    message = "Resource not found."


class UserNotFound(NotFound):
    code = "USER_NOT_FOUND"
    message = "User not found."


class ProductNotFound(NotFound):
    code = "PRODUCT_NOT_FOUND"
    message = "Product not found."


class VariantUnavailable(NotFound):
    code = "VARIANT_NOT_AVAILABLE"
    message = "Variant is not available for purchase."


class InventoryNotFound(NotFound):
    code = "INVENTORY_NOT_FOUND"
    message = "Inventory record not found for this variant."


class CartItemNotFound(NotFound):
    code = "CART_ITEM_NOT_FOUND"
    message = "Cart item not found."


class OrderNotFound(NotFound):
    code = "ORDER_NOT_FOUND"
    message = "Order not found."


# --- business rules ---

class BusinessRuleError(AppError):
    status_code = 400
    code = "BUSINESS_RULE_VIOLATION"


class ValidationFailed(BusinessRuleError):
    code = "VALIDATION_ERROR"
    message = "Invalid request payload."


class SessionRequired(BusinessRuleError):
    code = "SESSION_REQUIRED"
    message = "sessionId is required for guest carts."


class InvalidAdjustment(BusinessRuleError):
    code = "INVALID_INVENTORY_DELTA"
    message = "Inventory cannot go below zero."


class InsufficientInventory(BusinessRuleError):
    code = "INSUFFICIENT_INVENTORY"
    message = "Insufficient inventory."


class CartNotActive(BusinessRuleError):
    code = "CART_NOT_ACTIVE"
    message = "Cart can no longer be modified."


class CartNotCheckoutReady(BusinessRuleError):
    code = "CART_NOT_CHECKOUT_READY"
    message = "Cart is not available for checkout."


class EmptyCart(BusinessRuleError):
    code = "EMPTY_CART"
    message = "Cart is empty."


class InvalidPaymentAmount(BusinessRuleError):
    code = "INVALID_PAYMENT_AMOUNT"
    message = "Payment amount must match order total."


class DuplicateResource(BusinessRuleError):
    code = "DUPLICATE_RESOURCE"
    message = "Resource already exists."


# --- conflicts ---

class IllegalTransition(AppError):
    status_code = 409
    code = "ILLEGAL_STATUS_TRANSITION"
    message = "Order status transition is not allowed."


class ResourceBusy(AppError):
    status_code = 409
    code = "CART_BUSY"
    message = "Cart is being created by another request, retry shortly."
