# eduops/routers/courses.py
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..schemas.entity_schemas import CourseCreate, CourseOut, CourseStatistics, CourseUpdate
from ..schemas.pagination import PaginatedResponse, to_page
from ..services import CourseService, EnrollmentService

router = APIRouter(prefix="/api/v1/courses", tags=["Courses"])


@router.get("/", response_model=PaginatedResponse[CourseOut])
async def get_courses(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    teacher_id: Optional[UUID] = Query(None),
    level: Optional[str] = Query(None),
    is_active: Optional[bool] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    result = await CourseService(db).get_paginated(
        page=page, size=size, order_by="code", teacher_id=teacher_id, level=level, is_active=is_active
    )
    return to_page(result, CourseOut)


@router.get("/{course_id}", response_model=CourseOut)
async def get_course(course_id: UUID, db: AsyncSession = Depends(get_db)):
    course = await CourseService(db).get(course_id)
    if not course:
        raise NotFoundError("Course", course_id)
    return course


@router.get("/{course_id}/statistics", response_model=CourseStatistics)
async def get_course_statistics(course_id: UUID, db: AsyncSession = Depends(get_db)):
    """Enrollment count and grading summary for a course"""
    if not await CourseService(db).get(course_id):
        raise NotFoundError("Course", course_id)
    return await EnrollmentService(db).course_statistics(course_id)


@router.post("/", response_model=CourseOut, status_code=201)
async def create_course(body: CourseCreate, db: AsyncSession = Depends(get_db)):
    return await CourseService(db).create(body.model_dump())


@router.patch("/{course_id}", response_model=CourseOut)
async def update_course(course_id: UUID, body: CourseUpdate, db: AsyncSession = Depends(get_db)):
    course = await CourseService(db).update(course_id, body.model_dump(exclude_unset=True))
    if not course:
        raise NotFoundError("Course", course_id)
    return course
