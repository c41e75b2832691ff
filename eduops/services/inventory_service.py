# eduops/services/inventory_service.py
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .transactional_service import MAX_AMOUNT, TransactionalService
from ..core.audit import AuditSink
from ..core.config import Settings
from ..core.transactions import Rejected, lock_row
from ..models.tenant_specific.inventory import InventoryItem, InventorySale
from ..models.tenant_specific.student import Student
from ..schemas.operation_schemas import OperationResult

logger = logging.getLogger(__name__)

# Integer stock column
MAX_STOCK = 2147483647


class InsufficientStock(Rejected):
    def __init__(self, available: int, requested: int):
        super().__init__(
            f"Insufficient stock: {available} available, {requested} requested",
            {"reason": "insufficient_stock", "available": available, "requested": requested},
        )


class InventoryService(TransactionalService[InventoryItem]):
    module = "inventory"
    protected_fields = frozenset({"stock"})
    duplicate_message = "An item with this material code already exists"

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None,
                 audit: Optional[AuditSink] = None, actor: Optional[str] = None):
        super().__init__(InventoryItem, db, settings, audit, actor)

    async def get_sales(self, item_id: Optional[UUID] = None, student_id: Optional[UUID] = None) -> List[InventorySale]:
        stmt = select(InventorySale).where(InventorySale.is_deleted == False)
        if item_id:
            stmt = stmt.where(InventorySale.item_id == item_id)
        if student_id:
            stmt = stmt.where(InventorySale.student_id == student_id)
        result = await self.db.execute(stmt.order_by(InventorySale.sale_date.desc()))
        return result.scalars().all()

    async def sell(self, item_id: UUID, student_id: UUID, quantity: int) -> OperationResult:
        """Sell ``quantity`` units to a student.

        The stock check and the decrement happen under the item's row lock, so
        concurrent buyers can never drive stock below zero.
        """
        async def operation():
            if quantity <= 0:
                raise Rejected("Quantity must be greater than zero")

            item = await lock_row(self.db, InventoryItem, item_id)
            if item is None or item.is_deleted:
                raise Rejected("Inventory item not found")
            if not item.is_active:
                raise Rejected("Inventory item is not active")

            student = await self.db.get(Student, student_id)
            if student is None or student.is_deleted:
                raise Rejected("Student not found")

            if item.stock < quantity:
                raise InsufficientStock(item.stock, quantity)

            total_price = Decimal(str(item.unit_price)) * quantity
            if total_price > MAX_AMOUNT:
                raise Rejected(f"Sale total must not exceed {MAX_AMOUNT}")

            item.stock = item.stock - quantity
            sale = InventorySale(
                item_id=item.id,
                student_id=student_id,
                quantity=quantity,
                total_price=total_price,
            )
            self.db.add(sale)
            await self.db.flush()

            return OperationResult.ok(
                "Sale registered",
                sale_id=str(sale.id),
                total_price=float(total_price),
                remaining_stock=item.stock,
            )

        return await self.run_operation(
            "create",
            operation,
            duplicate_message="Sale already registered",
            metadata={"item_id": item_id, "student_id": student_id, "quantity": quantity},
        )

    async def restock(self, item_id: UUID, quantity: int) -> OperationResult:
        async def operation():
            if quantity <= 0:
                raise Rejected("Quantity must be greater than zero")
            item = await lock_row(self.db, InventoryItem, item_id)
            if item is None or item.is_deleted:
                raise Rejected("Inventory item not found")
            if item.stock + quantity > MAX_STOCK:
                raise Rejected(f"Stock must not exceed {MAX_STOCK}")
            item.stock = item.stock + quantity
            await self.db.flush()
            return OperationResult.ok("Stock updated", item_id=str(item.id), stock=item.stock)

        return await self.run_operation(
            "update",
            operation,
            duplicate_message="Stock update failed",
            metadata={"item_id": item_id, "quantity": quantity},
        )
