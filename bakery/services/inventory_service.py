# bakery/services/inventory_service.py
from typing import List, Type

from sqlalchemy.orm import Session

from bakery.data.models.inventory import InventoryLevelModel, InventoryTransactionModel
from bakery.domain.enums import InventoryReason
from bakery.domain.errors import (
    AppError,
    InsufficientInventory,
    InvalidAdjustment,
    InventoryNotFound,
)
from bakery.repos.inventory_repo import InventoryRepo
from bakery.utils.logging import get_logger

logger = get_logger(__name__)


class InventoryService:
    """
    Stock ledger for product variants.

    Every quantity change goes through `_apply`, which writes the guarded
    update and the matching InventoryTransaction in the caller's transaction.
    `adjust` is the standalone command and commits by itself; checkout uses
    `fulfil` and commits together with the order.
    """

    def __init__(self, db: Session):
        self.repo = InventoryRepo(db)

    # =====================================================
    # QUERIES
    # =====================================================
    def get_level(self, variant_id: int) -> InventoryLevelModel:
        level = self.repo.get_level(variant_id)
        if not level:
            raise InventoryNotFound(details={"variantId": variant_id})
        return level

    def available_quantity(self, variant_id: int) -> int:
        # reserved is informational and deliberately not subtracted here
        level = self.repo.get_level(variant_id)
        return level.quantity if level else 0

    def list_transactions(self, variant_id: int) -> List[InventoryTransactionModel]:
        self.get_level(variant_id)
        return self.repo.list_transactions(variant_id)

    def ledger_balance(self, variant_id: int) -> int:
        return self.repo.ledger_balance(variant_id)

    def low_stock(self) -> List[InventoryLevelModel]:
        return self.repo.list_low_stock()

    # =====================================================
    # COMMANDS
    # =====================================================
    def adjust(
        self,
        variant_id: int,
        delta: int,
        reason: InventoryReason,
        actor_id: int | None,
        reference: str | None = None,
    ) -> int:
        """Apply a signed stock change and return the new quantity."""
        try:
            new_quantity = self._apply(variant_id, delta, reason, actor_id, reference, InvalidAdjustment)
            self.repo.commit()
        except Exception:
            self.repo.rollback()
            raise

        logger.info(
            f"Inventory for variant {variant_id} adjusted by {delta} ({reason.value}), "
            f"now {new_quantity}"
        )
        return new_quantity

    def fulfil(self, variant_id: int, quantity: int, actor_id: int | None, reference: str) -> int:
        """Take ordered units out of stock. Does not commit."""
        return self._apply(
            variant_id,
            -quantity,
            InventoryReason.ORDER_FULFILLED,
            actor_id,
            reference,
            InsufficientInventory,
        )

    def initialize(
        self,
        variant_id: int,
        quantity: int,
        low_stock_threshold: int,
        actor_id: int | None,
        reference: str | None = None,
    ) -> InventoryLevelModel:
        """Create the stock row for a new variant with an INITIAL ledger entry. Does not commit."""
        if quantity < 0:
            raise InvalidAdjustment(details={"variantId": variant_id, "delta": quantity})

        level = self.repo.add_level(
            InventoryLevelModel(
                variant_id=variant_id,
                quantity=quantity,
                reserved=0,
                low_stock_threshold=low_stock_threshold,
            )
        )
        self.repo.add_transaction(
            InventoryTransactionModel(
                inventory_level_id=level.id,
                variant_id=variant_id,
                quantity=quantity,
                reason=InventoryReason.INITIAL,
                reference=reference,
                created_by_id=actor_id,
            )
        )
        return level

    def _apply(
        self,
        variant_id: int,
        delta: int,
        reason: InventoryReason,
        actor_id: int | None,
        reference: str | None,
        shortage_error: Type[AppError],
    ) -> int:
        level = self.get_level(variant_id)

        if delta == 0:
            raise InvalidAdjustment("Inventory delta must not be zero.", details={"variantId": variant_id})

        rowcount = self.repo.apply_delta(variant_id, delta)
        if rowcount == 0:
            current = self.repo.current_quantity(variant_id)
            raise shortage_error(
                details={"variantId": variant_id, "requestedDelta": delta, "available": current}
            )

        self.repo.add_transaction(
            InventoryTransactionModel(
                inventory_level_id=level.id,
                variant_id=variant_id,
                quantity=delta,
                reason=reason,
                reference=reference,
                created_by_id=actor_id,
            )
        )
        # the guarded UPDATE bypassed the identity map
        self.repo.refresh(level)
        return level.quantity
