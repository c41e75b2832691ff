# tests/test_enrollment.py
import asyncio
from datetime import date
from decimal import Decimal
from uuid import UUID, uuid4

import pytest
from sqlalchemy import func, select

from eduops.models import Enrollment, Student
from eduops.models.enums import RecordStatus
from eduops.services import EnrollmentService, EvaluationService
from eduops.services.enrollment_service import ALREADY_ENROLLED

pytestmark = pytest.mark.anyio


async def _count_enrollments(database, student_id, course_id) -> int:
    async with database.session() as s:
        stmt = select(func.count(Enrollment.id)).where(
            Enrollment.student_id == student_id,
            Enrollment.course_id == course_id,
        )
        return (await s.execute(stmt)).scalar()


async def test_enroll_creates_active_enrollment(session, settings, seed, audit_sink):
    site = await seed.site()
    student = await seed.student(site)
    course = await seed.course()

    result = await EnrollmentService(session, settings=settings, audit=audit_sink, actor="admin-1").enroll(
        student.id, course.id, site.id, "2025-I"
    )

    assert result.success is True
    assert result.data["enrollment_id"]
    enrollment = await EnrollmentService(session).get(UUID(result.data["enrollment_id"]))
    assert enrollment.status == RecordStatus.ACTIVE
    assert enrollment.academic_period == "2025-I"

    record = audit_sink.records[-1]
    assert record.module == "enrollments"
    assert record.action_type == "create"
    assert record.success is True
    assert record.actor == "admin-1"


async def test_second_enrollment_same_period_is_rejected(session, settings, seed, database):
    site = await seed.site()
    student = await seed.student(site)
    course = await seed.course()
    service = EnrollmentService(session, settings=settings)

    first = await service.enroll(student.id, course.id, site.id, "2025-I")
    second = await service.enroll(student.id, course.id, site.id, "2025-I")

    assert first.success is True
    assert second.success is False
    assert second.message == ALREADY_ENROLLED
    assert await _count_enrollments(database, student.id, course.id) == 1


async def test_enrollment_in_another_period_is_allowed(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)
    course = await seed.course()
    service = EnrollmentService(session, settings=settings)

    assert (await service.enroll(student.id, course.id, site.id, "2025-I")).success
    assert (await service.enroll(student.id, course.id, site.id, "2025-II")).success


async def test_concurrent_enrollments_leave_one_row(database, settings, seed):
    site = await seed.site()
    student = await seed.student(site)
    course = await seed.course()

    async def attempt():
        async with database.session() as s:
            return await EnrollmentService(s, settings=settings).enroll(student.id, course.id, site.id, "2025-I")

    results = await asyncio.gather(*[attempt() for _ in range(6)])

    assert sum(r.success for r in results) == 1
    assert all(r.message == ALREADY_ENROLLED for r in results if not r.success)
    assert await _count_enrollments(database, student.id, course.id) == 1


async def test_enroll_rejects_inactive_student_and_course(session, settings, seed):
    site = await seed.site()
    inactive_student = await seed.student(site, status=RecordStatus.INACTIVE)
    student = await seed.student(site)
    course = await seed.course()
    closed_course = await seed.course(is_active=False)
    service = EnrollmentService(session, settings=settings)

    result = await service.enroll(inactive_student.id, course.id, site.id, "2025-I")
    assert result.success is False
    assert result.message == "Student is not active"

    result = await service.enroll(student.id, closed_course.id, site.id, "2025-I")
    assert result.success is False
    assert result.message == "Course is not active"


async def test_enroll_rejects_plan_of_another_student(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)
    other = await seed.student(site)
    course = await seed.course()
    plan = await seed.plan(other, await seed.cycle())

    result = await EnrollmentService(session, settings=settings).enroll(
        student.id, course.id, site.id, "2025-I", payment_plan_id=plan.id
    )

    assert result.success is False
    assert result.message == "Payment plan belongs to another student"


async def test_enroll_rejects_unknown_site(session, settings, seed, database):
    site = await seed.site()
    student = await seed.student(site)
    course = await seed.course()

    result = await EnrollmentService(session, settings=settings).enroll(student.id, course.id, uuid4(), "2025-I")

    assert result.success is False
    assert result.message == "Site not found"
    assert await _count_enrollments(database, student.id, course.id) == 0


async def test_register_and_enroll_rejects_unknown_site(session, settings, seed, database):
    course = await seed.course()

    result = await EnrollmentService(session, settings=settings).register_student_and_enroll(
        national_id="70112235",
        first_name="Rosa",
        last_name="Huaman",
        email=None,
        course_id=course.id,
        site_id=uuid4(),
        academic_period="2025-I",
    )

    assert result.success is False
    assert result.message == "Site not found"
    async with database.session() as s:
        found = await s.execute(select(Student).where(Student.national_id == "70112235"))
        assert found.first() is None


async def test_register_and_enroll_rolls_back_student_on_rejection(session, settings, seed, database):
    site = await seed.site()
    closed_course = await seed.course(is_active=False)

    result = await EnrollmentService(session, settings=settings).register_student_and_enroll(
        national_id="70112233",
        first_name="Rosa",
        last_name="Huaman",
        email=None,
        course_id=closed_course.id,
        site_id=site.id,
        academic_period="2025-I",
    )

    assert result.success is False
    async with database.session() as s:
        found = await s.execute(select(Student).where(Student.national_id == "70112233"))
        assert found.first() is None


async def test_register_and_enroll_creates_both(session, settings, seed):
    site = await seed.site()
    course = await seed.course()

    result = await EnrollmentService(session, settings=settings).register_student_and_enroll(
        national_id="70112234",
        first_name="Rosa",
        last_name="Huaman",
        email="rosa@example.com",
        course_id=course.id,
        site_id=site.id,
        academic_period="2025-I",
    )

    assert result.success is True
    assert result.data["student_id"]
    assert result.data["enrollment_id"]


async def test_reactivating_enrollment_respects_one_active_rule(session, settings, seed):
    site = await seed.site()
    student = await seed.student(site)
    course = await seed.course()
    service = EnrollmentService(session, settings=settings)

    first = await service.enroll(student.id, course.id, site.id, "2025-I")
    assert (await service.set_status(UUID(first.data["enrollment_id"]), RecordStatus.INACTIVE)).success
    second = await service.enroll(student.id, course.id, site.id, "2025-I")
    assert second.success is True

    result = await service.set_status(UUID(first.data["enrollment_id"]), RecordStatus.ACTIVE)
    assert result.success is False
    assert result.message == ALREADY_ENROLLED


async def test_course_statistics(session, settings, seed):
    site = await seed.site()
    course = await seed.course()
    enrollments = EnrollmentService(session, settings=settings)
    evaluations = EvaluationService(session, settings=settings)

    scores = [Decimal("16"), Decimal("8"), Decimal("12")]
    for score in scores:
        student = await seed.student(site)
        enrolled = await enrollments.enroll(student.id, course.id, site.id, "2025-I")
        await evaluations.record_evaluation(
            UUID(enrolled.data["enrollment_id"]), "exam", score, Decimal("1"), date(2025, 5, 10)
        )
    await enrollments.enroll((await seed.student(site)).id, course.id, site.id, "2025-I")

    stats = await enrollments.course_statistics(course.id)

    assert stats["total_students"] == 4
    assert stats["evaluated_students"] == 3
    assert stats["approved"] == 2
    assert stats["failed"] == 1
    assert str(stats["average"]) == "12.00"
