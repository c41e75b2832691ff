# eduops/services/enrollment_service.py
from decimal import Decimal
from typing import List, Optional
from uuid import UUID
import logging

from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession

from .transactional_service import TransactionalService, quantize
from ..core.audit import AuditSink
from ..core.config import Settings
from ..core.transactions import Rejected, lock_row
from ..models.enums import AcademicState, RecordStatus
from ..models.tenant_specific.course import Course
from ..models.tenant_specific.enrollment import Enrollment
from ..models.tenant_specific.evaluation import AcademicStatus
from ..models.tenant_specific.fee_management import PaymentPlan
from ..models.tenant_specific.student import Student
from ..schemas.operation_schemas import OperationResult

logger = logging.getLogger(__name__)

ALREADY_ENROLLED = "Student is already enrolled in this course for the period"


class EnrollmentService(TransactionalService[Enrollment]):
    module = "enrollments"

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None,
                 audit: Optional[AuditSink] = None, actor: Optional[str] = None):
        super().__init__(Enrollment, db, settings, audit, actor)

    async def get_by_student(self, student_id: UUID) -> List[Enrollment]:
        """Get all enrollments for a specific student"""
        stmt = select(self.model).where(
            self.model.student_id == student_id,
            self.model.is_deleted == False
        ).order_by(self.model.enrollment_date.desc())
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_active_enrollment(self, student_id: UUID, course_id: UUID, academic_period: str) -> Optional[Enrollment]:
        stmt = select(self.model).where(
            self.model.student_id == student_id,
            self.model.course_id == course_id,
            self.model.academic_period == academic_period,
            self.model.status == RecordStatus.ACTIVE,
            self.model.is_deleted == False
        )
        result = await self.db.execute(stmt)
        return result.scalars().first()

    async def enroll(
        self,
        student_id: UUID,
        course_id: UUID,
        site_id: UUID,
        academic_period: str,
        payment_plan_id: Optional[UUID] = None,
    ) -> OperationResult:
        """Enroll a student in a course for one academic period.

        Validation order: active student, active course, existing site, no
        active enrollment for the same (student, course, period). The student
        row is locked first, so concurrent attempts for the same student run
        one after the other and the duplicate check always sees the committed
        winner.
        """
        async def operation():
            enrollment = await self._enroll(student_id, course_id, site_id, academic_period, payment_plan_id)
            return OperationResult.ok(
                "Student enrolled successfully",
                enrollment_id=str(enrollment.id),
            )

        return await self.run_operation(
            "create",
            operation,
            duplicate_message=ALREADY_ENROLLED,
            metadata={"student_id": student_id, "course_id": course_id, "academic_period": academic_period},
        )

    async def _enroll(
        self,
        student_id: UUID,
        course_id: UUID,
        site_id: UUID,
        academic_period: str,
        payment_plan_id: Optional[UUID],
    ) -> Enrollment:
        student = await lock_row(self.db, Student, student_id)
        if student is None or student.is_deleted:
            raise Rejected("Student not found")
        if student.status != RecordStatus.ACTIVE:
            raise Rejected("Student is not active")

        course = await self.db.get(Course, course_id)
        if course is None or course.is_deleted:
            raise Rejected("Course not found")
        if not course.is_active:
            raise Rejected("Course is not active")

        await self._require_site(site_id)

        existing = await self.get_active_enrollment(student_id, course_id, academic_period)
        if existing:
            raise Rejected(ALREADY_ENROLLED, {"enrollment_id": str(existing.id)})

        if payment_plan_id is not None:
            plan = await self.db.get(PaymentPlan, payment_plan_id)
            if plan is None:
                raise Rejected("Payment plan not found")
            if plan.student_id != student_id:
                raise Rejected("Payment plan belongs to another student")

        enrollment = Enrollment(
            student_id=student_id,
            course_id=course_id,
            site_id=site_id,
            academic_period=academic_period,
            payment_plan_id=payment_plan_id,
            status=RecordStatus.ACTIVE,
        )
        self.db.add(enrollment)
        await self.db.flush()
        return enrollment

    async def register_student_and_enroll(
        self,
        national_id: str,
        first_name: str,
        last_name: str,
        email: Optional[str],
        course_id: UUID,
        site_id: UUID,
        academic_period: str,
    ) -> OperationResult:
        """Create a student and enroll them in one unit; a rejected enrollment undoes the student."""
        async def operation():
            await self._require_site(site_id)
            taken = await self.db.execute(select(Student.id).where(Student.national_id == national_id))
            if taken.first() is not None:
                raise Rejected("A student with this national ID already exists")

            student = Student(
                national_id=national_id,
                first_name=first_name,
                last_name=last_name,
                email=email,
                site_id=site_id,
                status=RecordStatus.ACTIVE,
            )
            self.db.add(student)
            await self.db.flush()

            enrollment = await self._enroll(student.id, course_id, site_id, academic_period, None)
            return OperationResult.ok(
                "Student registered and enrolled successfully",
                student_id=str(student.id),
                enrollment_id=str(enrollment.id),
            )

        return await self.run_operation(
            "create",
            operation,
            duplicate_message="A student with this national ID already exists",
            metadata={"national_id": national_id, "course_id": course_id, "academic_period": academic_period},
        )

    async def set_status(self, enrollment_id: UUID, status: RecordStatus) -> OperationResult:
        """Activate or deactivate an enrollment without breaking the one-active rule"""
        async def operation():
            enrollment = await lock_row(self.db, Enrollment, enrollment_id)
            if enrollment is None or enrollment.is_deleted:
                raise Rejected("Enrollment not found")
            if enrollment.status == status:
                return OperationResult.ok(f"Enrollment already {status.value}", enrollment_id=str(enrollment.id))

            if status == RecordStatus.ACTIVE:
                await lock_row(self.db, Student, enrollment.student_id)
                other = await self.get_active_enrollment(
                    enrollment.student_id, enrollment.course_id, enrollment.academic_period
                )
                if other is not None:
                    raise Rejected(ALREADY_ENROLLED, {"enrollment_id": str(other.id)})

            enrollment.status = status
            await self.db.flush()
            return OperationResult.ok(f"Enrollment {status.value}", enrollment_id=str(enrollment.id))

        return await self.run_operation(
            "update",
            operation,
            duplicate_message=ALREADY_ENROLLED,
            metadata={"enrollment_id": enrollment_id, "status": status.value},
        )

    async def course_statistics(self, course_id: UUID) -> dict:
        """Active enrollment count and grading summary for a course"""
        total_stmt = select(func.count(Enrollment.id)).where(
            Enrollment.course_id == course_id,
            Enrollment.status == RecordStatus.ACTIVE,
            Enrollment.is_deleted == False
        )
        total = (await self.db.execute(total_stmt)).scalar() or 0

        status_stmt = (
            select(AcademicStatus.state, func.count(AcademicStatus.id))
            .join(Enrollment, Enrollment.id == AcademicStatus.enrollment_id)
            .where(
                Enrollment.course_id == course_id,
                Enrollment.status == RecordStatus.ACTIVE,
                AcademicStatus.average.is_not(None)
            )
            .group_by(AcademicStatus.state)
        )
        rows = (await self.db.execute(status_stmt)).all()
        counts = {state: count for state, count in rows}

        avg_stmt = (
            select(func.avg(AcademicStatus.average))
            .join(Enrollment, Enrollment.id == AcademicStatus.enrollment_id)
            .where(
                Enrollment.course_id == course_id,
                Enrollment.status == RecordStatus.ACTIVE,
                AcademicStatus.average.is_not(None)
            )
        )
        average = (await self.db.execute(avg_stmt)).scalar()

        return {
            "course_id": course_id,
            "total_students": total,
            "evaluated_students": sum(counts.values()),
            "approved": counts.get(AcademicState.APPROVED, 0),
            "failed": counts.get(AcademicState.FAILED, 0),
            "average": quantize(Decimal(str(average)), self.settings.average_precision) if average is not None else None,
        }
