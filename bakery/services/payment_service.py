# bakery/services/payment_service.py
import random
import time
from datetime import datetime, timezone
from decimal import Decimal
from typing import Any, Dict

from sqlalchemy.orm import Session

from bakery.data.models.order import OrderStatusEventModel
from bakery.data.models.payment import PaymentModel
from bakery.data.models.user import UserModel
from bakery.domain.enums import OrderStatus, PaymentMethod, PaymentStatus
from bakery.domain.errors import Forbidden, InvalidPaymentAmount, OrderNotFound
from bakery.domain.pricing import as_money
from bakery.repos.order_repo import OrderRepo
from bakery.repos.payment_repo import PaymentRepo
from bakery.utils.logging import get_logger
from bakery.utils.settings import PAYMENT_AMOUNT_TOLERANCE, PAYMENT_SUCCESS_RATE

logger = get_logger(__name__)


class MockPaymentGateway:
    """
    Stand-in for a card processor.

    `force_result` pins the outcome ("success" / "failure"), otherwise the
    charge succeeds with probability `success_rate`.
    """

    provider = "mock-gateway"

    def __init__(self, success_rate: float = PAYMENT_SUCCESS_RATE, rng: random.Random | None = None):
        self.success_rate = success_rate
        self.rng = rng or random.Random()

    def charge(self, amount: Decimal, currency: str, force_result: str | None = None) -> bool:
        if force_result == "success":
            return True
        if force_result == "failure":
            return False
        return self.rng.random() < self.success_rate

    def transaction_id(self) -> str:
        return f"mock_txn_{int(time.time() * 1000)}_{self.rng.randrange(16**6):06x}"


class PaymentService:
    def __init__(self, db: Session, gateway: MockPaymentGateway | None = None):
        self.orders = OrderRepo(db)
        self.repo = PaymentRepo(db)
        self.gateway = gateway or MockPaymentGateway()

    def process_payment(
        self,
        user: UserModel,
        order_id: int,
        method: PaymentMethod,
        amount: Decimal | None = None,
        force_result: str | None = None,
    ) -> Dict[str, Any]:
        order = self.orders.get_order(order_id)

        if not order:
            raise OrderNotFound(details={"orderId": order_id})

        if not user.is_admin and order.user_id != user.id:
            raise Forbidden("Cannot process payment for another user's order.")

        order_total = as_money(order.total)
        charged = as_money(amount) if amount is not None else order_total
        if abs(charged - order_total) > PAYMENT_AMOUNT_TOLERANCE:
            raise InvalidPaymentAmount(
                details={"expected": str(order_total), "received": str(charged)}
            )

        is_success = self.gateway.charge(charged, order.currency, force_result)
        status = PaymentStatus.CAPTURED if is_success else PaymentStatus.FAILED

        try:
            payment = self.repo.create_payment(
                PaymentModel(
                    order_id=order.id,
                    provider=self.gateway.provider,
                    method=method,
                    status=status,
                    amount=charged,
                    currency=order.currency,
                    transaction_id=self.gateway.transaction_id(),
                    requested_by_id=user.id,
                    processed_at=datetime.now(timezone.utc),
                )
            )

            if is_success and order.status == OrderStatus.PENDING:
                order.status = OrderStatus.CONFIRMED
            order.payment_status = status

            self.orders.add_status_event(
                OrderStatusEventModel(
                    order_id=order.id,
                    status=order.status,
                    note="Payment captured successfully." if is_success else "Payment failed.",
                    created_by_id=user.id,
                )
            )
            self.orders.commit()
        except Exception:
            self.orders.rollback()
            raise

        logger.info(
            f"Payment {payment.id} for order {order.id}: {status.value} "
            f"({charged} {order.currency}, {method.value})"
        )

        return {
            "payment": payment,
            "payment_result": "success" if is_success else "failure",
        }
