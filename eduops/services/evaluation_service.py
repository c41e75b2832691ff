# eduops/services/evaluation_service.py
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .transactional_service import TransactionalService, quantize
from ..core.audit import AuditSink
from ..core.config import Settings
from ..core.transactions import Rejected, ensure_row, lock_row, lock_row_by
from ..models.enums import AcademicState
from ..models.tenant_specific.enrollment import Enrollment
from ..models.tenant_specific.evaluation import AcademicStatus, Evaluation
from ..schemas.operation_schemas import OperationResult

logger = logging.getLogger(__name__)

# Numeric(6, 2) weight column
MAX_WEIGHT = Decimal("9999.99")


def weighted_average(pairs) -> Optional[Decimal]:
    """Σ(score·weight) / Σ(weight) over (score, weight) pairs; None when there are none"""
    total_weight = Decimal(0)
    weighted = Decimal(0)
    for score, weight in pairs:
        weighted += Decimal(str(score)) * Decimal(str(weight))
        total_weight += Decimal(str(weight))
    if total_weight == 0:
        return None
    return weighted / total_weight


class EvaluationService(TransactionalService[Evaluation]):
    module = "evaluations"

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None,
                 audit: Optional[AuditSink] = None, actor: Optional[str] = None):
        super().__init__(Evaluation, db, settings, audit, actor)

    async def get_by_enrollment(self, enrollment_id: UUID) -> List[Evaluation]:
        stmt = select(self.model).where(
            self.model.enrollment_id == enrollment_id,
            self.model.is_deleted == False
        ).order_by(self.model.evaluation_date, self.model.created_at)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_academic_status(self, enrollment_id: UUID) -> Optional[AcademicStatus]:
        stmt = select(AcademicStatus).where(AcademicStatus.enrollment_id == enrollment_id)
        result = await self.db.execute(stmt)
        return result.scalar_one_or_none()

    def _check_score(self, score: Decimal) -> None:
        if score < self.settings.score_min or score > self.settings.score_max:
            raise Rejected(
                f"Score must be between {self.settings.score_min} and {self.settings.score_max}"
            )

    @staticmethod
    def _check_weight(weight: Decimal) -> None:
        if weight <= 0:
            raise Rejected("Weight must be greater than zero")
        if weight > MAX_WEIGHT:
            raise Rejected(f"Weight must not exceed {MAX_WEIGHT}")

    def classify(self, average: Optional[Decimal]) -> AcademicState:
        if average is None:
            return AcademicState.NO_GRADES
        if average >= self.settings.passing_threshold:
            return AcademicState.APPROVED
        return AcademicState.FAILED

    async def record_evaluation(
        self,
        enrollment_id: UUID,
        evaluation_type: str,
        score: Decimal,
        weight: Decimal,
        evaluation_date: date,
        notes: Optional[str] = None,
    ) -> OperationResult:
        """Insert an evaluation and refresh the enrollment's weighted average."""
        async def operation():
            self._check_score(score)
            self._check_weight(weight)

            enrollment = await self.db.get(Enrollment, enrollment_id)
            if enrollment is None or enrollment.is_deleted:
                raise Rejected("Enrollment not found")

            status = await self._lock_status(enrollment_id)

            evaluation = Evaluation(
                enrollment_id=enrollment_id,
                evaluation_type=evaluation_type,
                score=score,
                weight=weight,
                evaluation_date=evaluation_date,
                notes=notes,
            )
            self.db.add(evaluation)
            await self.db.flush()

            await self._recompute(status)
            return OperationResult.ok(
                "Evaluation recorded",
                evaluation_id=str(evaluation.id),
                average=float(status.average) if status.average is not None else None,
                state=status.state.value,
            )

        return await self.run_operation(
            "create",
            operation,
            duplicate_message="Evaluation already exists",
            metadata={"enrollment_id": enrollment_id, "evaluation_type": evaluation_type},
        )

    async def update_evaluation(
        self,
        evaluation_id: UUID,
        evaluation_type: Optional[str] = None,
        score: Optional[Decimal] = None,
        weight: Optional[Decimal] = None,
        evaluation_date: Optional[date] = None,
        notes: Optional[str] = None,
    ) -> OperationResult:
        """Change an evaluation and refresh the enrollment's weighted average."""
        async def operation():
            if score is not None:
                self._check_score(score)
            if weight is not None:
                self._check_weight(weight)

            current = await self.get(evaluation_id)
            if current is None or current.is_deleted:
                raise Rejected("Evaluation not found")

            # Status row first, then the evaluation: same order as record_evaluation
            status = await self._lock_status(current.enrollment_id)
            evaluation = await lock_row(self.db, Evaluation, evaluation_id)

            if evaluation_type is not None:
                evaluation.evaluation_type = evaluation_type
            if score is not None:
                evaluation.score = score
            if weight is not None:
                evaluation.weight = weight
            if evaluation_date is not None:
                evaluation.evaluation_date = evaluation_date
            if notes is not None:
                evaluation.notes = notes
            await self.db.flush()

            await self._recompute(status)
            return OperationResult.ok(
                "Evaluation updated",
                evaluation_id=str(evaluation.id),
                average=float(status.average) if status.average is not None else None,
                state=status.state.value,
            )

        return await self.run_operation(
            "update",
            operation,
            duplicate_message="Evaluation already exists",
            metadata={"evaluation_id": evaluation_id},
        )

    async def _lock_status(self, enrollment_id: UUID) -> AcademicStatus:
        await ensure_row(self.db, AcademicStatus, "enrollment_id", enrollment_id)
        return await lock_row_by(self.db, AcademicStatus, enrollment_id=enrollment_id)

    async def _recompute(self, status: AcademicStatus) -> None:
        """Recompute the average from every evaluation of the enrollment; caller holds the status lock"""
        stmt = select(Evaluation.score, Evaluation.weight).where(
            Evaluation.enrollment_id == status.enrollment_id,
            Evaluation.is_deleted == False
        )
        pairs = (await self.db.execute(stmt)).all()
        average = weighted_average(pairs)
        if average is not None:
            average = quantize(average, self.settings.average_precision)

        status.average = average
        status.state = self.classify(average)
        status.last_updated = datetime.now(timezone.utc)
        await self.db.flush()
