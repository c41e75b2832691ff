# eduops/services/fee_service.py
"""Payment plans, installments, payments and the per-student debt ledger.

Derived totals are never adjusted incrementally: every write recomputes them
from the installment rows while holding the locks of the rows it rewrites.
"""
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func, case
from sqlalchemy.ext.asyncio import AsyncSession

from .transactional_service import MAX_AMOUNT, TransactionalService, quantize
from ..core.audit import AuditSink
from ..core.config import Settings
from ..core.transactions import Rejected, ensure_row, lock_row, lock_row_by
from ..models.enums import InstallmentStatus, PaymentMethod, PaymentStatus
from ..models.tenant_specific.fee_management import DebtLedger, Installment, Payment, PaymentPlan
from ..models.tenant_specific.student import Student
from ..schemas.operation_schemas import OperationResult

logger = logging.getLogger(__name__)


def _money(value) -> Decimal:
    return quantize(Decimal(str(value or 0)), 2)


class FeeService(TransactionalService[PaymentPlan]):
    module = "payments"
    protected_fields = frozenset({"total_amount", "paid_amount", "remaining_amount"})
    duplicate_message = "Payment plan already exists"

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None,
                 audit: Optional[AuditSink] = None, actor: Optional[str] = None):
        super().__init__(PaymentPlan, db, settings, audit, actor)

    # Reads

    async def get_installments(self, plan_id: UUID) -> List[Installment]:
        stmt = select(Installment).where(
            Installment.plan_id == plan_id,
            Installment.is_deleted == False
        ).order_by(Installment.sequence_number)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_open_installments(self, student_id: UUID) -> List[Installment]:
        """Pending or overdue installments across the student's plans"""
        stmt = (
            select(Installment)
            .join(PaymentPlan, PaymentPlan.id == Installment.plan_id)
            .where(
                PaymentPlan.student_id == student_id,
                Installment.status.in_([InstallmentStatus.PENDING, InstallmentStatus.OVERDUE]),
                Installment.is_deleted == False
            )
            .order_by(Installment.due_date, Installment.sequence_number)
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_payment_history(
        self,
        student_id: UUID,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None
    ) -> List[Payment]:
        """Get payment history for a student"""
        stmt = select(Payment).where(
            Payment.student_id == student_id,
            Payment.is_deleted == False
        )
        if start_date:
            stmt = stmt.where(func.date(Payment.paid_at) >= start_date)
        if end_date:
            stmt = stmt.where(func.date(Payment.paid_at) <= end_date)
        result = await self.db.execute(stmt.order_by(Payment.paid_at.desc()))
        return result.scalars().all()

    async def get_ledger(self, student_id: UUID) -> Optional[DebtLedger]:
        stmt = select(DebtLedger).where(DebtLedger.student_id == student_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    # Plan building

    async def add_installment(
        self,
        plan_id: UUID,
        sequence_number: int,
        concept: str,
        amount: Decimal,
        due_date: Optional[date] = None,
    ) -> OperationResult:
        """Append an installment to a plan and refresh plan totals and the student's ledger"""
        async def operation():
            if amount <= 0:
                raise Rejected("Installment amount must be greater than zero")
            if amount > MAX_AMOUNT:
                raise Rejected(f"Installment amount must not exceed {MAX_AMOUNT}")

            plan = await lock_row(self.db, PaymentPlan, plan_id)
            if plan is None or plan.is_deleted:
                raise Rejected("Payment plan not found")
            if _money(plan.total_amount) + amount > MAX_AMOUNT:
                raise Rejected(f"Plan total must not exceed {MAX_AMOUNT}")

            taken = await self.db.execute(select(Installment.id).where(
                Installment.plan_id == plan_id,
                Installment.sequence_number == sequence_number
            ))
            if taken.first() is not None:
                raise Rejected(f"Installment {sequence_number} already exists in this plan")

            installment = Installment(
                plan_id=plan_id,
                sequence_number=sequence_number,
                concept=concept,
                amount=amount,
                due_date=due_date,
                status=InstallmentStatus.PENDING,
            )
            self.db.add(installment)
            await self.db.flush()

            await self._recompute_plan(plan)
            ledger = await self._recompute_ledger(plan.student_id)
            return OperationResult.ok(
                "Installment added",
                installment_id=str(installment.id),
                **self._totals(plan, ledger),
            )

        return await self.run_operation(
            "create",
            operation,
            duplicate_message=f"Installment {sequence_number} already exists in this plan",
            metadata={"plan_id": plan_id, "sequence_number": sequence_number},
        )

    async def remove_installment(self, installment_id: UUID) -> OperationResult:
        """Delete an unpaid installment that has no payment history"""
        async def operation():
            installment = await lock_row(self.db, Installment, installment_id)
            if installment is None or installment.is_deleted:
                raise Rejected("Installment not found")
            if installment.status == InstallmentStatus.PAID:
                raise Rejected("Paid installments cannot be removed")

            history = await self.db.execute(select(Payment.id).where(Payment.installment_id == installment_id))
            if history.first() is not None:
                raise Rejected("Installment has payment history and cannot be removed")

            plan = await lock_row(self.db, PaymentPlan, installment.plan_id)
            await self.db.delete(installment)
            await self.db.flush()

            await self._recompute_plan(plan)
            ledger = await self._recompute_ledger(plan.student_id)
            return OperationResult.ok("Installment removed", **self._totals(plan, ledger))

        return await self.run_operation(
            "delete",
            operation,
            duplicate_message="Installment could not be removed",
            metadata={"installment_id": installment_id},
        )

    # Payments

    async def process_payment(self, installment_id: UUID, payment_method: PaymentMethod = PaymentMethod.CASH) -> OperationResult:
        """Pay one installment.

        Marks it paid, records a payment, and recomputes the plan's paid and
        remaining totals and the student's ledger in the same transaction.
        """
        async def operation():
            installment = await lock_row(self.db, Installment, installment_id)
            if installment is None or installment.is_deleted:
                raise Rejected("Installment not found")
            if installment.status == InstallmentStatus.PAID:
                raise Rejected("Installment is already paid")

            plan = await lock_row(self.db, PaymentPlan, installment.plan_id)
            student = await self.db.get(Student, plan.student_id)

            now = datetime.now(timezone.utc)
            installment.status = InstallmentStatus.PAID
            installment.paid_at = now

            payment = Payment(
                student_id=plan.student_id,
                site_id=student.site_id,
                installment_id=installment.id,
                amount=installment.amount,
                concept=installment.concept,
                payment_method=payment_method,
                status=PaymentStatus.COMPLETED,
                paid_at=now,
            )
            self.db.add(payment)
            await self.db.flush()

            await self._recompute_plan(plan)
            ledger = await self._recompute_ledger(plan.student_id)
            return OperationResult.ok(
                "Payment processed successfully",
                payment_id=str(payment.id),
                installment_id=str(installment.id),
                amount=float(installment.amount),
                **self._totals(plan, ledger),
            )

        return await self.run_operation(
            "payment",
            operation,
            duplicate_message="Payment already registered",
            metadata={"installment_id": installment_id, "payment_method": payment_method.value},
        )

    async def reverse_payment(self, payment_id: UUID, as_of: Optional[date] = None) -> OperationResult:
        """Undo a payment.

        The installment goes back to overdue when its due date has passed and
        to pending otherwise. Reversing an already reversed payment succeeds
        without changing anything.
        """
        async def operation():
            payment = await lock_row(self.db, Payment, payment_id)
            if payment is None or payment.is_deleted:
                raise Rejected("Payment not found")
            if payment.status == PaymentStatus.REVERSED:
                return OperationResult.ok("Payment was already reversed", payment_id=str(payment.id))

            payment.status = PaymentStatus.REVERSED
            payment.reversed_at = datetime.now(timezone.utc)

            if payment.installment_id is None:
                await self.db.flush()
                return OperationResult.ok("Payment reversed", payment_id=str(payment.id))

            installment = await lock_row(self.db, Installment, payment.installment_id)
            today = as_of or date.today()
            if installment.due_date is not None and installment.due_date < today:
                installment.status = InstallmentStatus.OVERDUE
            else:
                installment.status = InstallmentStatus.PENDING
            installment.paid_at = None

            plan = await lock_row(self.db, PaymentPlan, installment.plan_id)
            await self.db.flush()

            await self._recompute_plan(plan)
            ledger = await self._recompute_ledger(plan.student_id)
            return OperationResult.ok(
                "Payment reversed",
                payment_id=str(payment.id),
                installment_id=str(installment.id),
                installment_status=installment.status.value,
                **self._totals(plan, ledger),
            )

        return await self.run_operation(
            "update",
            operation,
            duplicate_message="Payment could not be reversed",
            metadata={"payment_id": payment_id},
        )

    async def record_payment(
        self,
        student_id: UUID,
        site_id: UUID,
        amount: Decimal,
        concept: str,
        payment_method: PaymentMethod = PaymentMethod.CASH,
    ) -> OperationResult:
        """Record a standalone payment that is not tied to an installment"""
        async def operation():
            if amount <= 0:
                raise Rejected("Payment amount must be greater than zero")
            if amount > MAX_AMOUNT:
                raise Rejected(f"Payment amount must not exceed {MAX_AMOUNT}")
            student = await self.db.get(Student, student_id)
            if student is None or student.is_deleted:
                raise Rejected("Student not found")
            await self._require_site(site_id)

            payment = Payment(
                student_id=student_id,
                site_id=site_id,
                amount=amount,
                concept=concept,
                payment_method=payment_method,
                status=PaymentStatus.COMPLETED,
            )
            self.db.add(payment)
            await self.db.flush()
            return OperationResult.ok("Payment recorded", payment_id=str(payment.id), amount=float(amount))

        return await self.run_operation(
            "payment",
            operation,
            duplicate_message="Payment already registered",
            metadata={"student_id": student_id, "concept": concept},
        )

    async def mark_overdue(self, as_of: Optional[date] = None) -> OperationResult:
        """Flag pending installments whose due date has passed; safe to repeat"""
        cutoff = as_of or date.today()

        async def operation():
            stmt = (
                select(Installment)
                .where(
                    Installment.status == InstallmentStatus.PENDING,
                    Installment.due_date < cutoff,
                    Installment.is_deleted == False
                )
                .order_by(Installment.id)
                .with_for_update()
            )
            installments = (await self.db.execute(stmt)).scalars().all()
            if not installments:
                return OperationResult.ok("No installments became overdue", updated=0)

            for installment in installments:
                installment.status = InstallmentStatus.OVERDUE
            await self.db.flush()

            plan_ids = {i.plan_id for i in installments}
            students = await self.db.execute(
                select(PaymentPlan.student_id).where(PaymentPlan.id.in_(plan_ids)).distinct()
            )
            for student_id in sorted(students.scalars().all(), key=str):
                await self._recompute_ledger(student_id)

            return OperationResult.ok(f"{len(installments)} installments marked overdue", updated=len(installments))

        return await self.run_operation(
            "update",
            operation,
            duplicate_message="Overdue sweep failed",
            metadata={"as_of": cutoff.isoformat()},
        )

    # Derived state

    async def _recompute_plan(self, plan: PaymentPlan) -> None:
        """Caller holds the plan lock"""
        stmt = select(
            func.coalesce(func.sum(Installment.amount), 0),
            func.coalesce(func.sum(case((Installment.status == InstallmentStatus.PAID, Installment.amount), else_=0)), 0),
        ).where(
            Installment.plan_id == plan.id,
            Installment.is_deleted == False
        )
        total, paid = (await self.db.execute(stmt)).one()
        plan.total_amount = _money(total)
        plan.paid_amount = _money(paid)
        plan.remaining_amount = plan.total_amount - plan.paid_amount
        await self.db.flush()

    async def _recompute_ledger(self, student_id: UUID) -> DebtLedger:
        """Lock (creating if needed) and rewrite the student's ledger from installment rows"""
        await ensure_row(self.db, DebtLedger, "student_id", student_id)
        ledger = await lock_row_by(self.db, DebtLedger, student_id=student_id)

        stmt = (
            select(
                func.coalesce(func.sum(Installment.amount), 0),
                func.coalesce(func.sum(case((Installment.status != InstallmentStatus.PAID, Installment.amount), else_=0)), 0),
            )
            .join(PaymentPlan, PaymentPlan.id == Installment.plan_id)
            .where(
                PaymentPlan.student_id == student_id,
                PaymentPlan.is_deleted == False,
                Installment.is_deleted == False
            )
        )
        total, pending = (await self.db.execute(stmt)).one()
        ledger.total_debt = _money(total)
        ledger.pending_debt = _money(pending)
        ledger.last_updated = datetime.now(timezone.utc)
        await self.db.flush()
        return ledger

    @staticmethod
    def _totals(plan: PaymentPlan, ledger: DebtLedger) -> dict:
        return {
            "plan_total": float(plan.total_amount),
            "plan_paid": float(plan.paid_amount),
            "plan_remaining": float(plan.remaining_amount),
            "pending_debt": float(ledger.pending_debt),
            "total_debt": float(ledger.total_debt),
        }
