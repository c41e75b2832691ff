# eduops/routers/enrollments.py
from datetime import date
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..models.enums import RecordStatus
from ..schemas.entity_schemas import AcademicStatusOut, EnrollmentOut, EvaluationOut
from ..schemas.pagination import PaginatedResponse, to_page
from ..services import EnrollmentService, EvaluationService

router = APIRouter(prefix="/api/v1/enrollments", tags=["Enrollments and Evaluations"])


@router.get("/", response_model=PaginatedResponse[EnrollmentOut])
async def get_enrollments(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    student_id: Optional[UUID] = Query(None),
    course_id: Optional[UUID] = Query(None),
    site_id: Optional[UUID] = Query(None),
    academic_period: Optional[str] = Query(None),
    status: Optional[RecordStatus] = Query(None),
    enrolled_from: Optional[date] = Query(None),
    enrolled_to: Optional[date] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Get paginated enrollments with filtering"""
    result = await EnrollmentService(db).get_paginated(
        page=page,
        size=size,
        order_by="enrollment_date",
        sort="desc",
        date_field="enrollment_date",
        date_from=enrolled_from,
        date_to=enrolled_to,
        student_id=student_id,
        course_id=course_id,
        site_id=site_id,
        academic_period=academic_period,
        status=status,
    )
    return to_page(result, EnrollmentOut)


@router.get("/{enrollment_id}", response_model=EnrollmentOut)
async def get_enrollment(enrollment_id: UUID, db: AsyncSession = Depends(get_db)):
    enrollment = await EnrollmentService(db).get(enrollment_id)
    if not enrollment:
        raise NotFoundError("Enrollment", enrollment_id)
    return enrollment


@router.get("/{enrollment_id}/evaluations", response_model=List[EvaluationOut])
async def get_evaluations(enrollment_id: UUID, db: AsyncSession = Depends(get_db)):
    return await EvaluationService(db).get_by_enrollment(enrollment_id)


@router.get("/{enrollment_id}/academic-status", response_model=AcademicStatusOut)
async def get_academic_status(enrollment_id: UUID, db: AsyncSession = Depends(get_db)):
    status = await EvaluationService(db).get_academic_status(enrollment_id)
    if not status:
        raise NotFoundError("Academic status for enrollment", enrollment_id)
    return status
