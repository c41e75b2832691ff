# eduops/routers/classrooms.py
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_db
from ..core.exceptions import NotFoundError
from ..schemas.entity_schemas import (
    ClassroomCourseOut, ClassroomCreate, ClassroomOut, ClassroomStudentOut, ClassroomUpdate, CompetencyOut,
)
from ..schemas.pagination import PaginatedResponse, to_page
from ..services import ClassService

router = APIRouter(prefix="/api/v1/classrooms", tags=["Classrooms"])


@router.get("/", response_model=PaginatedResponse[ClassroomOut])
async def get_classrooms(
    page: int = Query(1, ge=1),
    size: int = Query(20, ge=1, le=100),
    site_id: Optional[UUID] = Query(None),
    cycle_id: Optional[UUID] = Query(None),
    level: Optional[str] = Query(None),
    db: AsyncSession = Depends(get_db)
):
    result = await ClassService(db).get_paginated(
        page=page, size=size, order_by="grade", site_id=site_id, cycle_id=cycle_id, level=level
    )
    return to_page(result, ClassroomOut)


@router.post("/", response_model=ClassroomOut, status_code=201)
async def create_classroom(body: ClassroomCreate, db: AsyncSession = Depends(get_db)):
    return await ClassService(db).create(body.model_dump())


@router.patch("/{classroom_id}", response_model=ClassroomOut)
async def update_classroom(classroom_id: UUID, body: ClassroomUpdate, db: AsyncSession = Depends(get_db)):
    classroom = await ClassService(db).update(classroom_id, body.model_dump(exclude_unset=True))
    if not classroom:
        raise NotFoundError("Classroom", classroom_id)
    return classroom


@router.get("/{classroom_id}/courses", response_model=List[ClassroomCourseOut])
async def get_classroom_courses(classroom_id: UUID, db: AsyncSession = Depends(get_db)):
    return await ClassService(db).get_courses(classroom_id)


@router.get("/{classroom_id}/students", response_model=List[ClassroomStudentOut])
async def get_classroom_students(classroom_id: UUID, db: AsyncSession = Depends(get_db)):
    """Active roster of the classroom"""
    return await ClassService(db).get_students(classroom_id)


@router.get("/courses/{classroom_course_id}/competencies", response_model=List[CompetencyOut])
async def get_competencies(classroom_course_id: UUID, db: AsyncSession = Depends(get_db)):
    return await ClassService(db).get_competencies(classroom_course_id)
