# eduops/services/class_service.py
from decimal import Decimal
from typing import List, Optional
from uuid import UUID

from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession

from .transactional_service import TransactionalService
from ..core.audit import AuditSink
from ..core.config import Settings
from ..core.transactions import Rejected, lock_row
from ..models.enums import RecordStatus
from ..models.tenant_specific.classroom import Classroom, ClassroomCourse, ClassroomStudent, Competency
from ..models.tenant_specific.course import Course
from ..models.tenant_specific.student import Student
from ..models.tenant_specific.teacher import Teacher
from ..schemas.operation_schemas import OperationResult

MAX_COMPETENCY_TOTAL = Decimal("100")


class ClassService(TransactionalService[Classroom]):
    module = "classrooms"
    duplicate_message = "A classroom with this level, grade and section already exists for the site and cycle"

    def __init__(self, db: AsyncSession, settings: Optional[Settings] = None,
                 audit: Optional[AuditSink] = None, actor: Optional[str] = None):
        super().__init__(Classroom, db, settings, audit, actor)

    async def get_courses(self, classroom_id: UUID) -> List[ClassroomCourse]:
        stmt = select(ClassroomCourse).where(
            ClassroomCourse.classroom_id == classroom_id,
            ClassroomCourse.is_deleted == False
        )
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_competencies(self, classroom_course_id: UUID) -> List[Competency]:
        stmt = select(Competency).where(
            Competency.classroom_course_id == classroom_course_id,
            Competency.is_deleted == False
        ).order_by(Competency.name)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def get_students(self, classroom_id: UUID) -> List[ClassroomStudent]:
        """Active roster of a classroom"""
        stmt = select(ClassroomStudent).where(
            ClassroomStudent.classroom_id == classroom_id,
            ClassroomStudent.is_active == True,
            ClassroomStudent.is_deleted == False
        ).order_by(ClassroomStudent.created_at)
        result = await self.db.execute(stmt)
        return result.scalars().all()

    async def _check_teacher(self, teacher_id: UUID) -> None:
        teacher = await self.db.get(Teacher, teacher_id)
        if teacher is None or teacher.is_deleted:
            raise Rejected("Teacher not found")
        if teacher.status != RecordStatus.ACTIVE:
            raise Rejected("Teacher is not active")

    async def assign_course(self, classroom_id: UUID, course_id: UUID, teacher_id: Optional[UUID] = None) -> OperationResult:
        """Pair a course with a classroom, optionally naming the teacher who delivers it"""
        async def operation():
            classroom = await lock_row(self.db, Classroom, classroom_id)
            if classroom is None or classroom.is_deleted:
                raise Rejected("Classroom not found")
            course = await self.db.get(Course, course_id)
            if course is None or course.is_deleted:
                raise Rejected("Course not found")
            if teacher_id is not None:
                await self._check_teacher(teacher_id)

            existing = await self.db.execute(select(ClassroomCourse.id).where(
                ClassroomCourse.classroom_id == classroom_id,
                ClassroomCourse.course_id == course_id
            ))
            if existing.first() is not None:
                raise Rejected("Course is already assigned to this classroom")

            pairing = ClassroomCourse(classroom_id=classroom_id, course_id=course_id, teacher_id=teacher_id)
            self.db.add(pairing)
            await self.db.flush()
            return OperationResult.ok("Course assigned to classroom", classroom_course_id=str(pairing.id))

        return await self.run_operation(
            "create",
            operation,
            duplicate_message="Course is already assigned to this classroom",
            metadata={"classroom_id": classroom_id, "course_id": course_id},
        )

    async def set_competencies(self, classroom_course_id: UUID, competencies: List[dict]) -> OperationResult:
        """Replace the competency weighting of a classroom-course pairing.

        Each percentage must be within 0-100 and their sum may not exceed 100.
        """
        async def operation():
            percentages = [Decimal(str(c["percentage"])) for c in competencies]
            if any(p < 0 or p > MAX_COMPETENCY_TOTAL for p in percentages):
                raise Rejected("Each competency percentage must be between 0 and 100")
            total = sum(percentages, Decimal(0))
            if total > MAX_COMPETENCY_TOTAL:
                raise Rejected(f"Competency percentages add up to {total}, the maximum is 100")

            pairing = await lock_row(self.db, ClassroomCourse, classroom_course_id)
            if pairing is None or pairing.is_deleted:
                raise Rejected("Classroom course assignment not found")

            await self.db.execute(delete(Competency).where(Competency.classroom_course_id == classroom_course_id))
            for item, percentage in zip(competencies, percentages):
                self.db.add(Competency(
                    classroom_course_id=classroom_course_id,
                    name=item["name"],
                    percentage=percentage,
                ))
            await self.db.flush()
            return OperationResult.ok(
                "Competencies saved",
                classroom_course_id=str(classroom_course_id),
                count=len(competencies),
                total_percentage=float(total),
            )

        return await self.run_operation(
            "update",
            operation,
            duplicate_message="Competencies could not be saved",
            metadata={"classroom_course_id": classroom_course_id},
        )

    async def set_students(self, classroom_id: UUID, student_ids: List[UUID]) -> OperationResult:
        """Replace the active roster of a classroom.

        The classroom row is locked while the roster is rewritten, so two
        replacements never interleave. The roster may not exceed the
        classroom's capacity and every student must exist and be active.
        Students left out are deactivated rather than deleted.
        """
        wanted = list(dict.fromkeys(student_ids))

        async def operation():
            classroom = await lock_row(self.db, Classroom, classroom_id)
            if classroom is None or classroom.is_deleted:
                raise Rejected("Classroom not found")
            if len(wanted) > classroom.capacity:
                raise Rejected(
                    f"Classroom capacity is {classroom.capacity}, {len(wanted)} students requested",
                    {"reason": "capacity_exceeded", "capacity": classroom.capacity, "requested": len(wanted)},
                )

            if wanted:
                found = await self.db.execute(select(Student).where(Student.id.in_(wanted)))
                students = {s.id: s for s in found.scalars().all()}
                missing = [str(i) for i in wanted if i not in students or students[i].is_deleted]
                if missing:
                    raise Rejected("Student not found", {"student_ids": missing})
                inactive = [str(i) for i in wanted if students[i].status != RecordStatus.ACTIVE]
                if inactive:
                    raise Rejected("Student is not active", {"student_ids": inactive})

            existing = await self.db.execute(select(ClassroomStudent).where(
                ClassroomStudent.classroom_id == classroom_id
            ))
            entries = {e.student_id: e for e in existing.scalars().all()}
            for student_id, entry in entries.items():
                entry.is_active = student_id in wanted
            for student_id in wanted:
                if student_id not in entries:
                    self.db.add(ClassroomStudent(classroom_id=classroom_id, student_id=student_id, is_active=True))
            await self.db.flush()

            return OperationResult.ok(
                "Classroom roster saved",
                classroom_id=str(classroom_id),
                count=len(wanted),
                capacity=classroom.capacity,
            )

        return await self.run_operation(
            "update",
            operation,
            duplicate_message="Student is already on this classroom roster",
            metadata={"classroom_id": classroom_id, "count": len(wanted)},
        )
