# eduops/routers/students.py
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..models.enums import RecordStatus
from ..schemas.entity_schemas import EnrollmentOut, StatusUpdate, StudentCreate, StudentOut, StudentUpdate
from ..schemas.pagination import PaginatedResponse, to_page
from ..services import EnrollmentService, StudentService

router = APIRouter(prefix="/api/v1/students", tags=["Students"])


@router.get("/", response_model=PaginatedResponse[StudentOut])
async def get_students(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    site_id: Optional[UUID] = Query(None),
    status: Optional[RecordStatus] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Get paginated students with filtering"""
    result = await StudentService(db).get_paginated(
        page=page, size=size, order_by="last_name", site_id=site_id, status=status
    )
    return to_page(result, StudentOut)


@router.get("/by-national-id/{national_id}", response_model=StudentOut)
async def get_student_by_national_id(national_id: str, db: AsyncSession = Depends(get_db)):
    student = await StudentService(db).get_by_national_id(national_id)
    if not student:
        raise NotFoundError("Student", national_id)
    return student


@router.get("/{student_id}", response_model=StudentOut)
async def get_student(student_id: UUID, db: AsyncSession = Depends(get_db)):
    student = await StudentService(db).get(student_id)
    if not student:
        raise NotFoundError("Student", student_id)
    return student


@router.post("/", response_model=StudentOut, status_code=201)
async def create_student(body: StudentCreate, db: AsyncSession = Depends(get_db)):
    return await StudentService(db).create(body.model_dump())


@router.patch("/{student_id}", response_model=StudentOut)
async def update_student(student_id: UUID, body: StudentUpdate, db: AsyncSession = Depends(get_db)):
    student = await StudentService(db).update(student_id, body.model_dump(exclude_unset=True))
    if not student:
        raise NotFoundError("Student", student_id)
    return student


@router.put("/{student_id}/status", response_model=StudentOut)
async def set_student_status(student_id: UUID, body: StatusUpdate, db: AsyncSession = Depends(get_db)):
    student = await StudentService(db).set_status(student_id, body.status)
    if not student:
        raise NotFoundError("Student", student_id)
    return student


@router.get("/{student_id}/enrollments", response_model=List[EnrollmentOut])
async def get_student_enrollments(student_id: UUID, db: AsyncSession = Depends(get_db)):
    """All enrollments of a student, newest first"""
    if not await StudentService(db).get(student_id):
        raise NotFoundError("Student", student_id)
    return await EnrollmentService(db).get_by_student(student_id)
