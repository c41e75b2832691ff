# eduops/routers/teachers.py
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..models.enums import RecordStatus
from ..schemas.entity_schemas import CourseOut, StatusUpdate, TeacherCreate, TeacherOut, TeacherUpdate
from ..schemas.pagination import PaginatedResponse, to_page
from ..services import CourseService, TeacherService

router = APIRouter(prefix="/api/v1/teachers", tags=["Teachers"])


@router.get("/", response_model=PaginatedResponse[TeacherOut])
async def get_teachers(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    site_id: Optional[UUID] = Query(None),
    status: Optional[RecordStatus] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    """Get paginated teachers with filtering"""
    result = await TeacherService(db).get_paginated(
        page=page, size=size, order_by="last_name", site_id=site_id, status=status
    )
    return to_page(result, TeacherOut)


@router.get("/by-national-id/{national_id}", response_model=TeacherOut)
async def get_teacher_by_national_id(national_id: str, db: AsyncSession = Depends(get_db)):
    teacher = await TeacherService(db).get_by_national_id(national_id)
    if not teacher:
        raise NotFoundError("Teacher", national_id)
    return teacher


@router.get("/{teacher_id}", response_model=TeacherOut)
async def get_teacher(teacher_id: UUID, db: AsyncSession = Depends(get_db)):
    teacher = await TeacherService(db).get(teacher_id)
    if not teacher:
        raise NotFoundError("Teacher", teacher_id)
    return teacher


@router.post("/", response_model=TeacherOut, status_code=201)
async def create_teacher(body: TeacherCreate, db: AsyncSession = Depends(get_db)):
    return await TeacherService(db).create(body.model_dump())


@router.patch("/{teacher_id}", response_model=TeacherOut)
async def update_teacher(teacher_id: UUID, body: TeacherUpdate, db: AsyncSession = Depends(get_db)):
    teacher = await TeacherService(db).update(teacher_id, body.model_dump(exclude_unset=True))
    if not teacher:
        raise NotFoundError("Teacher", teacher_id)
    return teacher


@router.put("/{teacher_id}/status", response_model=TeacherOut)
async def set_teacher_status(teacher_id: UUID, body: StatusUpdate, db: AsyncSession = Depends(get_db)):
    teacher = await TeacherService(db).set_status(teacher_id, body.status)
    if not teacher:
        raise NotFoundError("Teacher", teacher_id)
    return teacher


@router.get("/{teacher_id}/courses", response_model=List[CourseOut])
async def get_teacher_courses(teacher_id: UUID, db: AsyncSession = Depends(get_db)):
    if not await TeacherService(db).get(teacher_id):
        raise NotFoundError("Teacher", teacher_id)
    return await CourseService(db).get_by_teacher(teacher_id)
