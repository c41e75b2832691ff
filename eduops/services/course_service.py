# eduops/services/course_service.py
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .transactional_service import TransactionalService
from ..core.audit import AuditSink
from ..core.config import Settings
from ..core.transactions import Rejected, lock_row
from ..models.enums import RecordStatus
from ..models.tenant_specific.course import Course
from ..models.tenant_specific.teacher import Teacher
from ..schemas.operation_schemas import OperationResult


class CourseService(TransactionalService[Course]):
    module = "courses"
    protected_fields = frozenset({"teacher_id"})
    duplicate_message = "A course with this code already exists"

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None,
                 audit: Optional[AuditSink] = None, actor: Optional[str] = None):
        super().__init__(Course, db, settings, audit, actor)

    async def get_by_teacher(self, teacher_id: UUID) -> List[Course]:
        stmt = select(self.model).where(
            self.model.teacher_id == teacher_id,
            self.model.is_deleted == False
        ).order_by(self.model.code)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def assign_teacher(self, course_id: UUID, teacher_id: UUID) -> OperationResult:
        """Set the course's teacher; the last assignment wins and repeats are harmless"""
        async def operation():
            teacher = await self.db.get(Teacher, teacher_id)
            if teacher is None or teacher.is_deleted:
                raise Rejected("Teacher not found")
            if teacher.status != RecordStatus.ACTIVE:
                raise Rejected("Teacher is not active")

            course = await lock_row(self.db, Course, course_id)
            if course is None or course.is_deleted:
                raise Rejected("Course not found")

            previous = course.teacher_id
            course.teacher_id = teacher_id
            await self.db.flush()
            return OperationResult.ok(
                "Teacher assigned successfully",
                course_id=str(course.id),
                teacher_id=str(teacher_id),
                previous_teacher_id=str(previous) if previous else None,
            )

        return await self.run_operation(
            "update",
            operation,
            duplicate_message="Teacher assignment failed",
            metadata={"course_id": course_id, "teacher_id": teacher_id},
        )
